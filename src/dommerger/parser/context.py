"""
Parse Context

Explicit finite-state context shared by the parser and the rewriter while they
walk a mod line by line.

States:
    IDLE            - top level, or inside a non-spell entity block
    IN_DESCRIPTION  - inside a multi-line #description "..." string
    IN_SPELL_BLOCK  - between #newspell/#selectspell and #end

Alongside the state the context tracks the active entity (the block most
recently opened, which #name binds to and which disambiguates shared
directives) and, inside spell blocks, a SpellBlock accumulator.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional, Tuple

from dommerger.domain.entity_types import (
    EntityType,
    is_enchantment_effect,
    is_known_summon_spell,
    is_summoning_effect,
)
from dommerger.domain.models import NameBinding


class ParseState(Enum):
    IDLE = auto()
    IN_DESCRIPTION = auto()
    IN_SPELL_BLOCK = auto()


class InvalidTransition(Exception):
    """A line arrived that the current state cannot accept."""


def interpret_damage(
    effect: Optional[int],
    damage: int,
    known_summon: bool = False,
) -> Optional[Tuple[EntityType, int]]:
    """
    What a spell's #damage value refers to, given its #effect.

    Summoning effects take a monster id, or a montag as a negative number.
    Enchantment effects take an enchantment id. Anything else is a plain
    number. A block with no #effect that copies or selects a known vanilla
    summoning spell counts as summoning.
    """
    summoning = (effect is not None and is_summoning_effect(effect)) or (
        effect is None and known_summon
    )
    if summoning:
        if damage > 0:
            return EntityType.MONSTER, damage
        if damage < 0:
            return EntityType.MONTAG, -damage
        return None
    if effect is not None and is_enchantment_effect(effect) and damage > 0:
        return EntityType.ENCHANTMENT, damage
    return None


@dataclass
class SpellBlock:
    """Accumulates the lines of one spell block that give #damage its meaning."""
    start_line: int
    select_id: Optional[int] = None
    select_name: Optional[str] = None
    copy_id: Optional[int] = None
    copy_name: Optional[str] = None
    effect: Optional[int] = None
    damage: Optional[int] = None
    resolved: bool = False

    @property
    def is_known_summon(self) -> bool:
        return (
            is_known_summon_spell(self.select_id, self.select_name)
            or is_known_summon_spell(self.copy_id, self.copy_name)
        )

    @property
    def ready(self) -> bool:
        """Both halves seen and not yet acted upon."""
        return not self.resolved and self.effect is not None and self.damage is not None

    def damage_target(self) -> Optional[Tuple[EntityType, int]]:
        if self.damage is None:
            return None
        return interpret_damage(self.effect, self.damage, self.is_known_summon)


class ParseContext:
    """Mutable state machine for one pass over one mod."""

    def __init__(self):
        self.state = ParseState.IDLE
        self.active: Optional[NameBinding] = None
        self.active_block_type: Optional[EntityType] = None
        self.spell: Optional[SpellBlock] = None
        self.block_line: Optional[int] = None
        self.description_line: Optional[int] = None

    @property
    def in_description(self) -> bool:
        return self.state is ParseState.IN_DESCRIPTION

    @property
    def in_spell_block(self) -> bool:
        return self.state is ParseState.IN_SPELL_BLOCK

    @property
    def in_block(self) -> bool:
        return self.block_line is not None

    @property
    def active_type(self) -> Optional[EntityType]:
        return self.active_block_type

    # =========================================================================
    # Transitions
    # =========================================================================

    def enter_description(self, line_no: int) -> None:
        if self.state is not ParseState.IDLE:
            raise InvalidTransition(f"#description inside {self.state.name.lower()}")
        self.state = ParseState.IN_DESCRIPTION
        self.description_line = line_no

    def leave_description(self) -> None:
        self.state = ParseState.IDLE
        self.description_line = None

    def open_block(
        self,
        entity_type: EntityType,
        binding: Optional[NameBinding],
        line_no: int,
    ) -> Optional[int]:
        """
        Enter an entity block.

        Returns the start line of a non-spell block that was still open, so the
        caller can report the missing #end.
        """
        if self.in_spell_block:
            raise InvalidTransition(
                f"block opened while the spell block from line {self.spell.start_line} is still open"
            )
        unclosed = self.block_line
        self.active = binding
        self.active_block_type = entity_type
        self.block_line = line_no
        if entity_type is EntityType.SPELL:
            self.state = ParseState.IN_SPELL_BLOCK
            self.spell = SpellBlock(start_line=line_no)
        return unclosed

    def close_block(self) -> Optional[SpellBlock]:
        """Handle #end. Returns the finished spell block, if one was open."""
        finished = self.spell
        self.state = ParseState.IDLE
        self.active = None
        self.active_block_type = None
        self.spell = None
        self.block_line = None
        return finished
