"""
Module ORM Registry (``inventory_modules._orm_registry``).

Responsibility
--------------
Ensure kernel and module SQLAlchemy ORM models are imported so that
``Base.metadata`` contains every table before ``create_all()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Imported lazily by
``inventory_kernel.db.engine.create_tables``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``inventory_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import inventory_kernel.models  # noqa: F401
    import inventory_kernel.services.sequence_service  # noqa: F401
    import inventory_modules.assets.orm  # noqa: F401
