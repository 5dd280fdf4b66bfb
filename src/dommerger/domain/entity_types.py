"""
Entity Types and Id Ranges

Dominions numbers every piece of content. Each entity type splits its id space
into a vanilla range [0, vanilla_end] owned by the base game and a modding
range [vanilla_end + 1, modding_end] where mods may create new content.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional


class EntityType(Enum):
    """Every id-bearing content category the merger tracks."""

    WEAPON = "weapon"
    ARMOR = "armor"
    MONSTER = "monster"
    SPELL = "spell"
    ITEM = "item"
    SITE = "site"
    NATION = "nation"
    NAME_TYPE = "nametype"
    ENCHANTMENT = "enchantment"
    EVENT_CODE = "eventcode"
    POP_TYPE = "poptype"
    MONTAG = "montag"
    RESTRICTED_ITEM = "restricteditem"

    @property
    def label(self) -> str:
        """Display name used in generated comments and reports."""
        return _LABELS[self]


_LABELS = {
    EntityType.WEAPON: "Weapon",
    EntityType.ARMOR: "Armor",
    EntityType.MONSTER: "Monster",
    EntityType.SPELL: "Spell",
    EntityType.ITEM: "Item",
    EntityType.SITE: "Site",
    EntityType.NATION: "Nation",
    EntityType.NAME_TYPE: "Name type",
    EntityType.ENCHANTMENT: "Enchantment",
    EntityType.EVENT_CODE: "Event code",
    EntityType.POP_TYPE: "Pop type",
    EntityType.MONTAG: "Montag",
    EntityType.RESTRICTED_ITEM: "Restricted item",
}


@dataclass(frozen=True)
class EntityRange:
    """Vanilla/modding split of one entity type's id space."""

    # Last id owned by the base game; vanilla range is [0, vanilla_end]
    vanilla_end: int

    # Last id a mod may use; modding range is [vanilla_end + 1, modding_end]
    modding_end: int

    # Where fresh allocation starts, if the community has a conventional spot
    preferred_start: Optional[int] = None

    def __post_init__(self):
        if self.modding_end <= self.vanilla_end:
            raise ValueError(
                f"modding_end {self.modding_end} must exceed vanilla_end {self.vanilla_end}"
            )
        if self.preferred_start is not None and not self.is_modding(self.preferred_start):
            raise ValueError(f"preferred_start {self.preferred_start} outside modding range")

    @property
    def modding_start(self) -> int:
        return self.vanilla_end + 1

    def is_vanilla(self, entity_id: int) -> bool:
        return 0 <= entity_id <= self.vanilla_end

    def is_modding(self, entity_id: int) -> bool:
        return self.modding_start <= entity_id <= self.modding_end


ENTITY_RANGES: Dict[EntityType, EntityRange] = {
    EntityType.WEAPON: EntityRange(999, 3999, 2250),
    EntityType.ARMOR: EntityRange(399, 1999, 1250),
    EntityType.MONSTER: EntityRange(4999, 19999, 13500),
    EntityType.SPELL: EntityRange(1999, 7999, 5750),
    EntityType.ITEM: EntityRange(699, 1999, 1450),
    EntityType.SITE: EntityRange(1699, 3999, 2150),
    EntityType.NATION: EntityRange(149, 499, 330),
    EntityType.NAME_TYPE: EntityRange(169, 399, 250),
    EntityType.ENCHANTMENT: EntityRange(199, 9999, 7750),
    EntityType.EVENT_CODE: EntityRange(0, 5000),
    EntityType.POP_TYPE: EntityRange(124, 249, 205),
    EntityType.MONTAG: EntityRange(999, 100000),
    EntityType.RESTRICTED_ITEM: EntityRange(0, 10000),
}


def get_range(entity_type: EntityType) -> EntityRange:
    """Get the id range for an entity type."""
    return ENTITY_RANGES[entity_type]


def is_vanilla_id(entity_type: EntityType, entity_id: int) -> bool:
    return ENTITY_RANGES[entity_type].is_vanilla(entity_id)


def is_modding_id(entity_type: EntityType, entity_id: int) -> bool:
    return ENTITY_RANGES[entity_type].is_modding(entity_id)


# =============================================================================
# Spell effects
# =============================================================================

_SUMMON_BASE = (1, 10, 21, 31, 37, 38, 43, 50, 54, 62, 89, 93, 119, 126, 130, 137)

# #damage of a spell with one of these effects is a monster id (or -montag)
SUMMONING_EFFECTS: FrozenSet[int] = frozenset(
    list(_SUMMON_BASE) + [e + 10000 for e in _SUMMON_BASE]
)

# #damage of a spell with one of these effects is an enchantment id
ENCHANTMENT_EFFECTS: FrozenSet[int] = frozenset({81, 10081, 10082, 10084, 10085, 10086})

# Vanilla summoning spells; copying or selecting one makes #damage a monster id
KNOWN_SUMMON_SPELL_IDS: FrozenSet[int] = frozenset(
    {721, 724, 733, 795, 805, 813, 818, 847, 875, 893, 900, 920, 1091}
)

KNOWN_SUMMON_SPELL_NAMES: FrozenSet[str] = frozenset({
    "animate skeleton",
    "horde of skeletons",
    "raise skeletons",
    "reanimation",
    "pale riders",
    "revive lictor",
    "living mercury",
    "king of elemental earth",
    "summon fire elemental",
    "pack of wolves",
    "contact forest giant",
    "infernal disease",
    "hannya pact",
    "swarm",
    "creeping doom",
})


def is_summoning_effect(effect: int) -> bool:
    return effect in SUMMONING_EFFECTS


def is_enchantment_effect(effect: int) -> bool:
    return effect in ENCHANTMENT_EFFECTS


def is_known_summon_spell(spell_id: Optional[int] = None, name: Optional[str] = None) -> bool:
    """True if the referenced vanilla spell is a summoning spell."""
    if spell_id is not None and spell_id in KNOWN_SUMMON_SPELL_IDS:
        return True
    if name is not None and name.strip().lower() in KNOWN_SUMMON_SPELL_NAMES:
        return True
    return False
