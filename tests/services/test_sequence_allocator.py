"""
Tests for SequenceAllocator and its pure scans.

Covers gap filling, contiguous range reservation, idempotence, code
parsing edge cases and the allocation lock row.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from sqlalchemy import select

from inventory_kernel.exceptions import InvalidQuantityError
from inventory_kernel.services.sequence_service import (
    SequenceAllocator,
    SequenceCounter,
    SequenceRange,
    compute_used_set,
    first_free,
    first_free_range,
    parse_sequence,
)


def _codes(*sequences: int) -> list[str]:
    return [f"001.10.1.24.{s:03d}" for s in sequences]


def _allocator(session, codes: list[str]) -> SequenceAllocator:
    return SequenceAllocator(session, lambda: list(codes))


# ---------------------------------------------------------------------------
# Pure scans
# ---------------------------------------------------------------------------


class TestParseSequence:
    def test_structured_code(self):
        assert parse_sequence("012.05.2.24.007") == 7

    def test_four_digit_sequence(self):
        assert parse_sequence("001.10.1.24.1000") == 1000

    def test_fallback_code_ignored(self):
        assert parse_sequence("AST-1A2B3C4D") is None

    def test_wrong_segment_count_ignored(self):
        assert parse_sequence("001.10.1.007") is None
        assert parse_sequence("001.10.1.24.007.1") is None

    def test_non_digit_tail_ignored(self):
        assert parse_sequence("001.10.1.24.00a") is None
        assert parse_sequence("001.10.1.24.") is None

    def test_non_ascii_digits_ignored(self):
        assert parse_sequence("001.10.1.24.٣") is None


class TestComputeUsedSet:
    def test_mixed_codes(self):
        used = compute_used_set(
            ["001.10.1.24.001", "AST-DEADBEEF", "", "bad", "002.05.3.23.004"]
        )
        assert used == frozenset({1, 4})

    def test_sequences_are_global_across_prefixes(self):
        used = compute_used_set(["001.10.1.24.001", "012.05.2.23.001"])
        assert used == frozenset({1})


class TestFirstFree:
    def test_empty(self):
        assert first_free(frozenset()) == 1

    def test_fills_gap(self):
        assert first_free(frozenset({1, 2, 4})) == 3

    def test_after_contiguous_block(self):
        assert first_free(frozenset({1, 2, 3})) == 4


class TestFirstFreeRange:
    def test_skips_gap_too_small(self):
        assert first_free_range(frozenset({1, 2, 4}), 3) == (5, 7)

    def test_uses_gap_big_enough(self):
        assert first_free_range(frozenset({1, 5, 6}), 3) == (2, 4)

    def test_empty(self):
        assert first_free_range(frozenset(), 4) == (1, 4)

    def test_zero_count_rejected(self):
        with pytest.raises(InvalidQuantityError):
            first_free_range(frozenset(), 0)

    @settings(max_examples=200)
    @given(
        used=st.frozensets(st.integers(min_value=1, max_value=60), max_size=40),
        count=st.integers(min_value=1, max_value=8),
    )
    def test_range_is_lowest_free_window(self, used, count):
        start, end = first_free_range(used, count)
        assert end - start + 1 == count
        assert all(n not in used for n in range(start, end + 1))
        for earlier in range(1, start):
            assert any(n in used for n in range(earlier, earlier + count))

    @given(used=st.frozensets(st.integers(min_value=1, max_value=60), max_size=40))
    def test_single_range_matches_first_free(self, used):
        assert first_free_range(used, 1) == (first_free(used), first_free(used))


# ---------------------------------------------------------------------------
# Allocator
# ---------------------------------------------------------------------------


class TestSequenceAllocator:
    def test_next_sequence_fills_gap(self, session):
        allocator = _allocator(session, _codes(1, 2, 4))
        assert allocator.next_sequence() == 3

    def test_next_sequence_range(self, session):
        allocator = _allocator(session, _codes(1, 2, 4))
        assert allocator.next_sequence_range(3) == SequenceRange(5, 7)

    def test_idempotent_without_writes(self, session):
        allocator = _allocator(session, _codes(1, 3))
        assert allocator.next_sequence() == allocator.next_sequence() == 2
        assert allocator.next_sequence_range(2) == allocator.next_sequence_range(2)

    def test_code_source_reread_every_call(self, session):
        codes = _codes(1)
        allocator = SequenceAllocator(session, lambda: codes)
        assert allocator.next_sequence() == 2
        codes.extend(_codes(2))
        assert allocator.next_sequence() == 3

    def test_invalid_range_size(self, session):
        allocator = _allocator(session, [])
        with pytest.raises(InvalidQuantityError) as exc_info:
            allocator.next_sequence_range(0)
        assert exc_info.value.kind == "validation"

    def test_range_iteration(self):
        seq_range = SequenceRange(5, 7)
        assert list(seq_range) == [5, 6, 7]
        assert seq_range.count == 3

    def test_allocation_logged(self, session, captured_logs):
        _allocator(session, _codes(1)).next_sequence()
        logs = captured_logs()
        allocated = [r for r in logs if r["message"] == "sequence_allocated"]
        assert allocated and allocated[0]["value"] == 2


class TestAllocationLock:
    def test_first_lock_creates_counter_row(self, session):
        allocator = _allocator(session, [])
        assert allocator.lock() == 1

        counter = session.execute(
            select(SequenceCounter).where(
                SequenceCounter.name == SequenceAllocator.ASSET_CODE_LOCK
            )
        ).scalar_one()
        assert counter.current_value == 1

    def test_lock_bumps_generation(self, session):
        allocator = _allocator(session, [])
        allocator.lock()
        session.commit()
        assert allocator.lock() == 2
        session.commit()
        assert allocator.lock() == 3

    def test_lock_does_not_change_allocation(self, session):
        allocator = _allocator(session, _codes(1, 2))
        allocator.lock()
        assert allocator.next_sequence() == 3
