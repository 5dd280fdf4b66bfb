"""
Id Mapper

Global allocation across every mod of a merge. Mods are processed in name
order; the first mod to claim an id keeps it, later claimants are remapped.

Order of work:
    1. Reserve every explicit modding-range id any mod authored, so fresh
       ids never land on content another mod wrote by number.
    2. Give each mod's implicit definitions a block of fresh ids.
    3. Walk explicit ids. A contiguous run of ids (5000, 5001, 5002) moves
       as a whole to a new contiguous block if any member is already taken.
    4. Report vanilla ids edited by more than one mod.
    5. Resolve each mod's #name bindings to concrete ids.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from dommerger.core.result import MergeWarning
from dommerger.domain.entity_types import EntityRange, EntityType
from dommerger.domain.models import (
    ConflictKind,
    MappedModDefinition,
    ModConflict,
    ModDefinition,
)
from dommerger.resolver.allocator import AllocationSession, RangeExhaustedError
from dommerger.resolver.report import format_id_ranges

logger = logging.getLogger(__name__)


@dataclass
class AllocationResult:
    """Per-mod mappings plus everything worth telling the user about."""
    mappings: Dict[str, MappedModDefinition] = field(default_factory=dict)
    conflicts: List[ModConflict] = field(default_factory=list)
    warnings: List[MergeWarning] = field(default_factory=list)

    def mapping_for(self, mod_name: str) -> MappedModDefinition:
        return self.mappings[mod_name]

    @property
    def remap_count(self) -> int:
        return sum(m.mapping_count for m in self.mappings.values())

    @property
    def vanilla_conflicts(self) -> List[ModConflict]:
        return [c for c in self.conflicts if c.is_warning]

    @property
    def remap_conflicts(self) -> List[ModConflict]:
        return [c for c in self.conflicts if c.kind is ConflictKind.REMAPPED]


def contiguous_runs(ids: Iterable[int]) -> List[List[int]]:
    """Split sorted ids into maximal runs of consecutive values."""
    runs: List[List[int]] = []
    for entity_id in sorted(ids):
        if runs and entity_id == runs[-1][-1] + 1:
            runs[-1].append(entity_id)
        else:
            runs.append([entity_id])
    return runs


class IdMapper:
    """Allocates ids for one merge. Create a new mapper (or call allocate) per merge."""

    def __init__(self, ranges: Optional[Dict[EntityType, EntityRange]] = None):
        self.session = AllocationSession(ranges)
        self._owners: Dict[EntityType, Dict[int, str]] = {}
        self._reservations: Dict[EntityType, Dict[int, int]] = {}
        self._remapped: Dict[Tuple[EntityType, str, str], List[int]] = {}
        self._vanilla_users: Dict[EntityType, Dict[int, List[str]]] = {}
        self._result = AllocationResult()

    def allocate(self, definitions: Iterable[ModDefinition]) -> AllocationResult:
        ordered = sorted(definitions, key=lambda d: d.mod_name)
        result = self._result
        for definition in ordered:
            result.mappings[definition.mod_name] = MappedModDefinition(definition.mod_name)

        self._reserve_explicit(ordered)
        for definition in ordered:
            self._allocate_implicit(definition)
        for definition in ordered:
            self._map_explicit(definition)
            self._track_vanilla(definition)

        self._collect_remap_conflicts()
        self._collect_vanilla_conflicts()

        for definition in ordered:
            mapped = result.mappings[definition.mod_name]
            self._resolve_names(definition, mapped)
            mapped.freeze()
            if mapped.mapping_count:
                logger.info("%s: %d id(s) remapped", definition.mod_name, mapped.mapping_count)

        return result

    # =========================================================================
    # Passes
    # =========================================================================

    def _reserve_explicit(self, ordered: List[ModDefinition]) -> None:
        for definition in ordered:
            for entity_type in definition.entity_types():
                id_range = self.session.range_of(entity_type)
                ids = [
                    i for i in definition.definition(entity_type).defined_ids
                    if id_range.is_modding(i)
                ]
                self.session.reserve(entity_type, ids)
                counts = self._reservations.setdefault(entity_type, {})
                for entity_id in ids:
                    counts[entity_id] = counts.get(entity_id, 0) + 1

    def _allocate_implicit(self, definition: ModDefinition) -> None:
        mapped = self._result.mappings[definition.mod_name]
        for entity_type in definition.entity_types():
            count = definition.definition(entity_type).implicit_count
            if not count:
                continue
            for new_id in self._allocate_ids(entity_type, count):
                index = mapped.add_implicit_id(entity_type, new_id)
                self._owners.setdefault(entity_type, {})[new_id] = definition.mod_name
                logger.debug(
                    "%s: implicit %s #%d -> %d",
                    definition.mod_name, entity_type.label, index, new_id,
                )

    def _map_explicit(self, definition: ModDefinition) -> None:
        mod_name = definition.mod_name
        mapped = self._result.mappings[mod_name]

        for entity_type in definition.entity_types():
            id_range = self.session.range_of(entity_type)
            owners = self._owners.setdefault(entity_type, {})
            ids = definition.definition(entity_type).defined_ids

            valid = [i for i in ids if id_range.is_modding(i)]
            invalid = [i for i in ids if not id_range.is_modding(i)]

            for run in contiguous_runs(valid):
                colliding = [i for i in run if self.session.is_used(entity_type, i)]
                if not colliding:
                    for entity_id in run:
                        self.session.claim(entity_type, entity_id)
                        owners[entity_id] = mod_name
                    continue

                for entity_id in colliding:
                    key = (entity_type, owners.get(entity_id, "?"), mod_name)
                    self._remapped.setdefault(key, []).append(entity_id)

                new_ids = self._allocate_ids(entity_type, len(run))
                for old_id, new_id in zip(run, new_ids):
                    mapped.add_mapping(entity_type, old_id, new_id)
                    owners[new_id] = mod_name
                logger.info(
                    "%s: %s %s remapped to %s",
                    mod_name, entity_type.label,
                    format_id_ranges(run), format_id_ranges(new_ids),
                )
                if new_ids[-1] - new_ids[0] != len(run) - 1:
                    message = (
                        f"{mod_name}: no contiguous block of {len(run)} free {entity_type.label} ids; "
                        f"run {format_id_ranges(run)} was split to {format_id_ranges(new_ids)}"
                    )
                    logger.warning(message)
                    self._result.warnings.append(MergeWarning.validation(message, (mod_name,)))
                self._release_reservations(entity_type, run)

            if invalid:
                for old_id in invalid:
                    new_id = self.session.allocate(entity_type)
                    mapped.add_mapping(entity_type, old_id, new_id)
                    owners[new_id] = mod_name
                message = (
                    f"{mod_name}: {entity_type.label} ids {format_id_ranges(invalid)} lie outside "
                    f"the modding range {id_range.modding_start}-{id_range.modding_end} and were remapped"
                )
                logger.warning(message)
                self._result.warnings.append(MergeWarning.validation(message, (mod_name,)))

    def _release_reservations(self, entity_type: EntityType, ids: List[int]) -> None:
        """Give back ids a moved run no longer needs, unless another mod authored them too."""
        counts = self._reservations.get(entity_type, {})
        freed = []
        for entity_id in ids:
            counts[entity_id] -= 1
            if counts[entity_id] == 0 and not self.session.is_used(entity_type, entity_id):
                freed.append(entity_id)
        self.session.release(entity_type, freed)

    def _track_vanilla(self, definition: ModDefinition) -> None:
        for entity_type in definition.entity_types():
            users = self._vanilla_users.setdefault(entity_type, {})
            for entity_id in definition.definition(entity_type).vanilla_edited_ids:
                users.setdefault(entity_id, []).append(definition.mod_name)

    def _allocate_ids(self, entity_type: EntityType, count: int) -> List[int]:
        """A contiguous block if one exists, otherwise scattered single ids."""
        if count == 1:
            return [self.session.allocate(entity_type)]
        try:
            return self.session.allocate_block(entity_type, count)
        except RangeExhaustedError:
            logger.warning(
                "No contiguous block of %d %s ids left; allocating individually",
                count, entity_type.label,
            )
            return [self.session.allocate(entity_type) for _ in range(count)]

    # =========================================================================
    # Conflicts
    # =========================================================================

    def _collect_remap_conflicts(self) -> None:
        for (entity_type, owner, claimant), ids in self._remapped.items():
            self._result.conflicts.append(ModConflict(
                ConflictKind.REMAPPED, entity_type, tuple(sorted(ids)), (owner, claimant),
            ))

    def _collect_vanilla_conflicts(self) -> None:
        for entity_type in EntityType:
            grouped: Dict[Tuple[str, ...], List[int]] = {}
            for entity_id, mods in sorted(self._vanilla_users.get(entity_type, {}).items()):
                if len(mods) > 1:
                    grouped.setdefault(tuple(mods), []).append(entity_id)

            for mods, ids in grouped.items():
                self._result.conflicts.append(
                    ModConflict(ConflictKind.VANILLA_EDIT, entity_type, tuple(ids), mods)
                )
                message = (
                    f"Vanilla {entity_type.label} ids {format_id_ranges(ids)} "
                    f"modified by: {', '.join(mods)}"
                )
                logger.warning(message)
                self._result.warnings.append(MergeWarning.conflict(message, mods))

    # =========================================================================
    # Names
    # =========================================================================

    @staticmethod
    def _resolve_names(definition: ModDefinition, mapped: MappedModDefinition) -> None:
        for name, binding in definition.name_bindings():
            if binding.is_implicit:
                entity_id = mapped.implicit_id(binding.entity_type, binding.implicit_index)
            else:
                entity_id = mapped.get_mapping(binding.entity_type, binding.entity_id)
            if entity_id is not None:
                mapped.bind_name(binding.entity_type, name, entity_id)


def allocate(
    definitions: Union[Iterable[ModDefinition], Mapping[str, ModDefinition]],
    ranges: Optional[Dict[EntityType, EntityRange]] = None,
) -> AllocationResult:
    """Allocate ids for every mod of one merge with a fresh session."""
    if isinstance(definitions, Mapping):
        definitions = definitions.values()
    return IdMapper(ranges).allocate(definitions)
