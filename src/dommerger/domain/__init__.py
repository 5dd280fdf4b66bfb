"""Domain model: entity types, id ranges, per-mod definitions and mappings."""

from dommerger.domain.entity_types import (
    ENTITY_RANGES,
    EntityRange,
    EntityType,
    get_range,
    is_modding_id,
    is_vanilla_id,
)
from dommerger.domain.models import (
    ConflictKind,
    EntityDefinition,
    FrozenDefinitionError,
    MappedModDefinition,
    ModConflict,
    ModDefinition,
    ModMapping,
    NameBinding,
)

__all__ = [
    "ENTITY_RANGES",
    "EntityRange",
    "EntityType",
    "get_range",
    "is_modding_id",
    "is_vanilla_id",
    "ConflictKind",
    "EntityDefinition",
    "FrozenDefinitionError",
    "MappedModDefinition",
    "ModConflict",
    "ModDefinition",
    "ModMapping",
    "NameBinding",
]
