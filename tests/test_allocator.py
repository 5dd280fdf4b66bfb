"""
Tests for the id allocation session.
"""

import pytest

from dommerger.domain.entity_types import EntityRange, EntityType
from dommerger.resolver.allocator import AllocationSession, RangeExhaustedError


@pytest.fixture
def small_session():
    """Monster modding range 10-14, preferred start 12."""
    return AllocationSession({EntityType.MONSTER: EntityRange(9, 14, 12)})


class TestAllocate:
    """Single-id allocation."""

    def test_first_request_uses_preferred_start(self):
        session = AllocationSession()
        assert session.allocate(EntityType.MONSTER) == 13500
        assert session.allocate(EntityType.WEAPON) == 2250

    def test_subsequent_requests_scan_forward(self):
        session = AllocationSession()
        session.allocate(EntityType.MONSTER)
        assert session.allocate(EntityType.MONSTER) == 13501

    def test_no_preferred_start_begins_at_range_start(self):
        session = AllocationSession()
        assert session.allocate(EntityType.EVENT_CODE) == 1
        assert session.allocate(EntityType.MONTAG) == 1000

    def test_used_and_reserved_ids_skipped(self):
        session = AllocationSession()
        session.claim(EntityType.MONSTER, 13500)
        session.reserve(EntityType.MONSTER, [13501])
        assert session.allocate(EntityType.MONSTER) == 13502

    def test_wraps_to_range_start(self, small_session):
        assert [small_session.allocate(EntityType.MONSTER) for _ in range(5)] == [12, 13, 14, 10, 11]

    def test_exhaustion_raises(self, small_session):
        for _ in range(5):
            small_session.allocate(EntityType.MONSTER)
        with pytest.raises(RangeExhaustedError) as excinfo:
            small_session.allocate(EntityType.MONSTER)
        assert excinfo.value.entity_type is EntityType.MONSTER
        assert excinfo.value.start == 10
        assert excinfo.value.end == 14

    def test_never_outside_modding_range(self, small_session):
        ids = [small_session.allocate(EntityType.MONSTER) for _ in range(5)]
        assert all(10 <= i <= 14 for i in ids)


class TestAllocateBlock:
    """Contiguous blocks."""

    def test_block_is_contiguous(self):
        session = AllocationSession()
        assert session.allocate_block(EntityType.MONSTER, 3) == [13500, 13501, 13502]

    def test_block_skips_partial_gaps(self):
        session = AllocationSession()
        session.claim(EntityType.MONSTER, 13502)
        assert session.allocate_block(EntityType.MONSTER, 3) == [13503, 13504, 13505]

    def test_block_that_does_not_fit_raises(self, small_session):
        small_session.claim(EntityType.MONSTER, 12)
        with pytest.raises(RangeExhaustedError):
            small_session.allocate_block(EntityType.MONSTER, 3)

    def test_sessions_are_independent(self):
        first = AllocationSession()
        first.allocate(EntityType.MONSTER)
        second = AllocationSession()
        assert second.allocate(EntityType.MONSTER) == 13500
