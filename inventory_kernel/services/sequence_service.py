"""
SequenceAllocator -- gap-filling asset code sequence allocation.

Responsibility:
    Finds the smallest free sequence number (or the lowest contiguous free
    range) across every asset code already issued.  Sequence numbers are
    the last segment of a structured code ``LLL.CC.P.YY.SSS`` and are
    global, not scoped by location/category/year.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by the asset service, the bulk provisioner and the importer.
    The allocator only reads codes; it never writes assets.

Invariants enforced:
    - Gap filling: numbers freed by deletes are handed out again, lowest
      first.  The full code set is re-read on every call.
    - Idempotent: with no intervening writes, repeated calls return the
      same answer.
    - Serialization: ``lock()`` takes a row lock (``SELECT ... FOR UPDATE``)
      on the ``asset_code`` counter row.  Callers take it before allocating
      and hold it until the transaction that persists the new codes
      commits, so concurrent allocators cannot hand out the same number.

Failure modes:
    - InvalidQuantityError: range size < 1.
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).

Audit relevance:
    Allocation is logged at DEBUG level with the value or range returned.
"""

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from inventory_kernel.db.base import Base
from inventory_kernel.exceptions import InvalidQuantityError
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.sequence")

CODE_SEGMENT_COUNT = 5


class SequenceCounter(Base):
    """
    Named lock row.

    ``current_value`` is a generation counter bumped on every ``lock()``;
    it is never used as a sequence number itself.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


@dataclass(frozen=True)
class SequenceRange:
    """Inclusive range of reserved sequence numbers."""

    start: int
    end: int

    @property
    def count(self) -> int:
        return self.end - self.start + 1

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))


# ---------------------------------------------------------------------------
# Pure scans
# ---------------------------------------------------------------------------


def parse_sequence(code: str) -> int | None:
    """
    Extract the sequence segment of a structured code.

    Returns None unless the code has exactly five dot-separated segments
    and the last one consists of ASCII digits only.  Fallback codes
    (``AST-...``) and malformed codes therefore never occupy a number.
    """
    parts = code.split(".")
    if len(parts) != CODE_SEGMENT_COUNT:
        return None
    last = parts[-1]
    if not last or not (last.isascii() and last.isdigit()):
        return None
    return int(last)


def compute_used_set(codes: Iterable[str]) -> frozenset[int]:
    """Collect the sequence numbers occupied by ``codes``."""
    used = set()
    for code in codes:
        if not code:
            continue
        seq = parse_sequence(code)
        if seq is not None:
            used.add(seq)
    return frozenset(used)


def first_free(used: frozenset[int] | set[int]) -> int:
    """Smallest positive integer not in ``used``."""
    candidate = 1
    while candidate in used:
        candidate += 1
    return candidate


def first_free_range(used: frozenset[int] | set[int], count: int) -> tuple[int, int]:
    """
    Smallest ``start`` such that ``start .. start+count-1`` are all free.

    When a used value is met inside the candidate window the scan restarts
    just past it, so each used value is passed over at most once.
    """
    if count < 1:
        raise InvalidQuantityError(count)

    start = 1
    while True:
        blocker = None
        for candidate in range(start, start + count):
            if candidate in used:
                blocker = candidate
        if blocker is None:
            return start, start + count - 1
        start = blocker + 1


# ---------------------------------------------------------------------------
# Allocator
# ---------------------------------------------------------------------------


class SequenceAllocator:
    """
    Allocates sequence numbers from the set of issued asset codes.

    Contract:
        ``code_source`` returns every asset code currently stored.  The
        allocator does not commit; the caller owns the transaction.

    Usage:
        allocator = SequenceAllocator(session, repository.list_all_codes)
        allocator.lock()
        seq = allocator.next_sequence()
        # insert asset with code ending in seq, then commit
    """

    ASSET_CODE_LOCK = "asset_code"

    def __init__(
        self,
        session: Session,
        code_source: Callable[[], Iterable[str]],
    ):
        self._session = session
        self._code_source = code_source

    def _used(self) -> frozenset[int]:
        return compute_used_set(self._code_source())

    def next_sequence(self) -> int:
        """Smallest positive integer not used by any stored code."""
        value = first_free(self._used())
        logger.debug("sequence_allocated", extra={"value": value})
        return value

    def next_sequence_range(self, count: int) -> SequenceRange:
        """
        Lowest contiguous run of ``count`` free sequence numbers.

        Raises:
            InvalidQuantityError: If count < 1.
        """
        if count < 1:
            raise InvalidQuantityError(count)
        start, end = first_free_range(self._used(), count)
        logger.debug(
            "sequence_range_allocated",
            extra={"start": start, "end": end, "count": count},
        )
        return SequenceRange(start=start, end=end)

    def lock(self) -> int:
        """
        Lock the allocation counter row for the rest of the transaction.

        Creates the row on first use.  Returns the new generation number.
        On backends without row locks (SQLite) the database-level write
        lock gives the same serialization.
        """
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == self.ASSET_CODE_LOCK)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if counter is None:
            # Another transaction may create the row at the same time
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=self.ASSET_CODE_LOCK, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_lock_acquired",
                    extra={"lock_name": self.ASSET_CODE_LOCK, "generation": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"lock_name": self.ASSET_CODE_LOCK},
                )
                savepoint.rollback()
                counter = self._session.execute(
                    select(SequenceCounter)
                    .where(SequenceCounter.name == self.ASSET_CODE_LOCK)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one()

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_lock_acquired",
            extra={
                "lock_name": self.ASSET_CODE_LOCK,
                "generation": counter.current_value,
            },
        )
        return counter.current_value
