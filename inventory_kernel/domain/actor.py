"""Who performed a mutation, as reported by the calling controller."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ActorContext:
    """
    Request metadata recorded on every audit entry and tracked row.

    All fields are optional: imports and maintenance scripts run without
    a request.
    """

    user_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


SYSTEM_ACTOR = ActorContext()
