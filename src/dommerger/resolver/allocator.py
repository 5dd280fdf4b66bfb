"""
Id Allocation Session

One AllocationSession per merge. It owns, per entity type, the set of ids
already claimed, the set of ids reserved for content some mod authored
explicitly, and a cursor for fresh allocations. Nothing here is global; two
merges never share a session.

Usage:
    session = AllocationSession()
    session.reserve(EntityType.MONSTER, [5000, 5001])
    new_id = session.allocate(EntityType.MONSTER)      # 13500 if free
    block = session.allocate_block(EntityType.MONSTER, 3)
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set

from dommerger.core.result import MergeError
from dommerger.domain.entity_types import ENTITY_RANGES, EntityRange, EntityType

logger = logging.getLogger(__name__)


class RangeExhaustedError(MergeError):
    """No free id (or contiguous block) is left in a type's modding range."""

    def __init__(self, entity_type: EntityType, start: int, end: int, used: int, requested: int = 1):
        self.entity_type = entity_type
        self.start = start
        self.end = end
        self.used = used
        self.requested = requested
        what = "id" if requested == 1 else f"block of {requested} ids"
        super().__init__(
            f"No available {entity_type.label} {what} in range {start}-{end} ({used} in use)"
        )


class IdAllocator:
    """Free-id search for one entity type."""

    def __init__(self, entity_type: EntityType, id_range: EntityRange):
        self.entity_type = entity_type
        self.range = id_range
        self.used: Set[int] = set()
        self.reserved: Set[int] = set()
        self.cursor = id_range.preferred_start or id_range.modding_start
        self._first_request = True

    def is_available(self, entity_id: int) -> bool:
        return (
            self.range.is_modding(entity_id)
            and entity_id not in self.used
            and entity_id not in self.reserved
        )

    def claim(self, entity_id: int) -> None:
        self.used.add(entity_id)

    def _candidates(self, size: int) -> Iterator[int]:
        """Block start positions: cursor to range end, then wrap from range start."""
        start = self.range.modding_start
        last = self.range.modding_end - size + 1
        cursor = self.cursor if start <= self.cursor <= last else start
        yield from range(cursor, last + 1)
        yield from range(start, cursor)

    def allocate_block(self, size: int = 1) -> List[int]:
        """Claim `size` consecutive free ids and advance the cursor past them."""
        if size < 1:
            raise ValueError("block size must be positive")

        preferred = self.range.preferred_start
        if self._first_request and preferred is not None:
            self._first_request = False
            if self._block_free(preferred, size):
                return self._take(preferred, size)
        self._first_request = False

        for candidate in self._candidates(size):
            if self._block_free(candidate, size):
                return self._take(candidate, size)

        raise RangeExhaustedError(
            self.entity_type,
            self.range.modding_start,
            self.range.modding_end,
            len(self.used | self.reserved),
            requested=size,
        )

    def _block_free(self, start: int, size: int) -> bool:
        return all(self.is_available(start + offset) for offset in range(size))

    def _take(self, start: int, size: int) -> List[int]:
        ids = list(range(start, start + size))
        self.used.update(ids)
        self.cursor = start + size
        return ids


class AllocationSession:
    """Allocation state for one merge, across all entity types."""

    def __init__(self, ranges: Optional[Dict[EntityType, EntityRange]] = None):
        self.ranges = dict(ranges or ENTITY_RANGES)
        self._allocators: Dict[EntityType, IdAllocator] = {}

    def allocator(self, entity_type: EntityType) -> IdAllocator:
        existing = self._allocators.get(entity_type)
        if existing is None:
            existing = IdAllocator(entity_type, self.ranges[entity_type])
            self._allocators[entity_type] = existing
        return existing

    def range_of(self, entity_type: EntityType) -> EntityRange:
        return self.ranges[entity_type]

    def reserve(self, entity_type: EntityType, ids: Iterable[int]) -> None:
        """Keep fresh allocations away from ids some mod authored explicitly."""
        self.allocator(entity_type).reserved.update(ids)

    def release(self, entity_type: EntityType, ids: Iterable[int]) -> None:
        """Drop reservations nobody will claim."""
        self.allocator(entity_type).reserved.difference_update(ids)

    def is_used(self, entity_type: EntityType, entity_id: int) -> bool:
        return entity_id in self.allocator(entity_type).used

    def claim(self, entity_type: EntityType, entity_id: int) -> None:
        self.allocator(entity_type).claim(entity_id)

    def allocate(self, entity_type: EntityType) -> int:
        new_id = self.allocator(entity_type).allocate_block(1)[0]
        logger.debug("Allocated %s %d", entity_type.label, new_id)
        return new_id

    def allocate_block(self, entity_type: EntityType, size: int) -> List[int]:
        ids = self.allocator(entity_type).allocate_block(size)
        logger.debug("Allocated %s block %d-%d", entity_type.label, ids[0], ids[-1])
        return ids
