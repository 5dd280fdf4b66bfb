"""
Mod Definition Model

What a single mod defines, edits and names, and how its ids end up mapped
after allocation. A ModDefinition is produced by the parser, frozen before
allocation, and released once the mod's content has been rewritten.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional, Set, Tuple

from dommerger.core.result import MergeError
from dommerger.domain.entity_types import EntityType


class FrozenDefinitionError(MergeError):
    """Raised when a frozen definition or mapping is mutated."""


# =============================================================================
# Per-type definition sets
# =============================================================================

class EntityDefinition:
    """
    Ids of one entity type touched by one mod.

    defined_ids hold content the mod creates or owns (modding range, or beyond
    it when the author used an invalid id). vanilla_edited_ids hold base-game
    content the mod modifies. Implicit definitions (#newmonster with no id)
    are counted here and receive concrete ids after allocation.
    """

    def __init__(self, entity_type: EntityType):
        self.entity_type = entity_type
        self._defined: Set[int] = set()
        self._vanilla_edited: Set[int] = set()
        self._implicit_count = 0
        self._frozen = False
        self._sorted_defined: Optional[Tuple[int, ...]] = None
        self._sorted_vanilla: Optional[Tuple[int, ...]] = None

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenDefinitionError(
                f"{self.entity_type.label} definition is frozen"
            )

    def add_defined(self, entity_id: int) -> None:
        self._check_mutable()
        self._defined.add(entity_id)

    def add_vanilla_edited(self, entity_id: int) -> None:
        self._check_mutable()
        self._vanilla_edited.add(entity_id)

    def add_implicit(self) -> int:
        """Register an implicit definition and return its index."""
        self._check_mutable()
        index = self._implicit_count
        self._implicit_count += 1
        return index

    def freeze(self) -> None:
        if self._frozen:
            return
        self._sorted_defined = tuple(sorted(self._defined))
        self._sorted_vanilla = tuple(sorted(self._vanilla_edited))
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def defined_ids(self) -> Tuple[int, ...]:
        if self._sorted_defined is not None:
            return self._sorted_defined
        return tuple(sorted(self._defined))

    @property
    def vanilla_edited_ids(self) -> Tuple[int, ...]:
        if self._sorted_vanilla is not None:
            return self._sorted_vanilla
        return tuple(sorted(self._vanilla_edited))

    @property
    def implicit_count(self) -> int:
        return self._implicit_count

    def is_empty(self) -> bool:
        return not (self._defined or self._vanilla_edited or self._implicit_count)

    def clear(self) -> None:
        self._defined.clear()
        self._vanilla_edited.clear()
        self._implicit_count = 0
        self._sorted_defined = None
        self._sorted_vanilla = None

    def __repr__(self) -> str:
        return (
            f"EntityDefinition({self.entity_type.value}, defined={len(self._defined)}, "
            f"vanilla={len(self._vanilla_edited)}, implicit={self._implicit_count})"
        )


@dataclass(frozen=True)
class NameBinding:
    """A #name bound to either an explicit id or an implicit definition index."""
    entity_type: EntityType
    entity_id: Optional[int] = None
    implicit_index: Optional[int] = None

    @property
    def is_implicit(self) -> bool:
        return self.implicit_index is not None


class ModDefinition:
    """Everything one mod defines, keyed by entity type."""

    def __init__(self, mod_name: str):
        self.mod_name = mod_name
        self.display_name: Optional[str] = None
        self.warnings: List[str] = []
        self._definitions: Dict[EntityType, EntityDefinition] = {}
        self._names: Dict[Tuple[EntityType, str], NameBinding] = {}
        self._name_references: List[Tuple[EntityType, str]] = []
        self._frozen = False

    def definition(self, entity_type: EntityType) -> EntityDefinition:
        """Get (creating on first use) the definition set for a type."""
        existing = self._definitions.get(entity_type)
        if existing is not None:
            return existing
        if self._frozen:
            # Read access after freeze: hand back an empty frozen set.
            empty = EntityDefinition(entity_type)
            empty.freeze()
            return empty
        created = EntityDefinition(entity_type)
        self._definitions[entity_type] = created
        return created

    def bind_name(self, name: str, binding: NameBinding) -> None:
        if self._frozen:
            raise FrozenDefinitionError(f"definition of {self.mod_name} is frozen")
        self._names[(binding.entity_type, name.strip().lower())] = binding

    def name_binding(self, entity_type: EntityType, name: str) -> Optional[NameBinding]:
        return self._names.get((entity_type, name.strip().lower()))

    def name_bindings(self) -> Iterator[Tuple[str, NameBinding]]:
        for (_, name), binding in self._names.items():
            yield name, binding

    def add_name_reference(self, entity_type: EntityType, name: str) -> None:
        """Queue a by-name reference whose target is resolved after parsing."""
        if self._frozen:
            raise FrozenDefinitionError(f"definition of {self.mod_name} is frozen")
        self._name_references.append((entity_type, name.strip().lower()))

    @property
    def name_references(self) -> List[Tuple[EntityType, str]]:
        return list(self._name_references)

    def unresolved_name_references(self) -> List[Tuple[EntityType, str]]:
        """By-name references that do not match any name bound in this mod."""
        return [ref for ref in self._name_references if ref not in self._names]

    def entity_types(self) -> List[EntityType]:
        """Types with any content, in canonical EntityType order."""
        return [t for t in EntityType if t in self._definitions and not self._definitions[t].is_empty()]

    def freeze(self) -> None:
        for entity_def in self._definitions.values():
            entity_def.freeze()
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def release(self) -> None:
        """Drop all collected state once the mod has been written."""
        for entity_def in self._definitions.values():
            entity_def.clear()
        self._definitions.clear()
        self._names.clear()
        self._name_references.clear()

    def __repr__(self) -> str:
        return f"ModDefinition({self.mod_name!r}, types={[t.value for t in self.entity_types()]})"


# =============================================================================
# Allocation output
# =============================================================================

@dataclass(frozen=True)
class ModMapping:
    """One remapped id: original -> new, for one type in one mod."""
    entity_type: EntityType
    original_id: int
    new_id: int


class MappedModDefinition:
    """
    Allocation outcome for one mod.

    Only ids that change are stored; get_mapping() returns the original id
    for anything without an entry.
    """

    def __init__(self, mod_name: str):
        self.mod_name = mod_name
        self._mappings: Dict[EntityType, Dict[int, int]] = {}
        self._implicit: Dict[EntityType, List[int]] = {}
        self._names: Dict[Tuple[EntityType, str], int] = {}
        self._frozen = False

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenDefinitionError(f"mapping for {self.mod_name} is frozen")

    def add_mapping(self, entity_type: EntityType, original_id: int, new_id: int) -> None:
        self._check_mutable()
        if original_id == new_id:
            return
        self._mappings.setdefault(entity_type, {})[original_id] = new_id

    def add_implicit_id(self, entity_type: EntityType, new_id: int) -> int:
        """Bind the next implicit index of a type to a concrete id; returns the index."""
        self._check_mutable()
        ids = self._implicit.setdefault(entity_type, [])
        ids.append(new_id)
        return len(ids) - 1

    def bind_name(self, entity_type: EntityType, name: str, entity_id: int) -> None:
        self._check_mutable()
        self._names[(entity_type, name.strip().lower())] = entity_id

    def get_mapping(self, entity_type: EntityType, entity_id: int) -> int:
        return self._mappings.get(entity_type, {}).get(entity_id, entity_id)

    def has_mapping(self, entity_type: EntityType, entity_id: int) -> bool:
        return entity_id in self._mappings.get(entity_type, {})

    def implicit_id(self, entity_type: EntityType, index: int) -> Optional[int]:
        ids = self._implicit.get(entity_type, [])
        if 0 <= index < len(ids):
            return ids[index]
        return None

    def implicit_ids(self, entity_type: EntityType) -> Tuple[int, ...]:
        return tuple(self._implicit.get(entity_type, ()))

    def resolve_name(self, entity_type: EntityType, name: str) -> Optional[int]:
        """Concrete id of an entity this mod named, after remapping."""
        return self._names.get((entity_type, name.strip().lower()))

    def mappings(self, entity_type: Optional[EntityType] = None) -> List[ModMapping]:
        """All remaps, sorted by type order then original id."""
        types = [entity_type] if entity_type else list(EntityType)
        result = []
        for t in types:
            for original, new in sorted(self._mappings.get(t, {}).items()):
                result.append(ModMapping(t, original, new))
        return result

    @property
    def mapping_count(self) -> int:
        return sum(len(m) for m in self._mappings.values())

    def freeze(self) -> None:
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def release(self) -> None:
        self._mappings.clear()
        self._implicit.clear()
        self._names.clear()

    def __repr__(self) -> str:
        return f"MappedModDefinition({self.mod_name!r}, mappings={self.mapping_count})"


class ConflictKind(Enum):
    """Why a conflict record exists."""
    REMAPPED = auto()       # later mod's ids moved out of an earlier mod's way
    VANILLA_EDIT = auto()   # several mods modify the same base-game content


@dataclass(frozen=True)
class ModConflict:
    """Ids of one type claimed by more than one mod."""
    kind: ConflictKind
    entity_type: EntityType
    ids: Tuple[int, ...]
    mods: Tuple[str, ...]

    @property
    def is_warning(self) -> bool:
        return self.kind is ConflictKind.VANILLA_EDIT
