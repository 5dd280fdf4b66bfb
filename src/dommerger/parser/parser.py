"""
Mod Parser

Walks one mod's text and records which ids it defines, which vanilla ids it
edits, how many implicit (id-less) definitions it makes, and which names it
binds. Content is never modified here; the rewriter does a second pass once
ids have been allocated.
"""

import logging
from typing import Optional

from dommerger.core.result import MergeError
from dommerger.domain.entity_types import EntityType, is_vanilla_id
from dommerger.domain.models import ModDefinition, NameBinding
from dommerger.parser.classifier import (
    DAMAGE_DIRECTIVES,
    ClassifiedLine,
    LineClassifier,
    LineKind,
    normalize_line,
)
from dommerger.parser.context import ParseContext, SpellBlock
from dommerger.parser.directives import DirectiveRef, Role

logger = logging.getLogger(__name__)


class ModParseError(MergeError):
    """A mod could not be parsed. Carries the mod, 1-based line and offending text."""

    def __init__(
        self,
        mod_name: str,
        line_number: int,
        line: str,
        reason: Optional[str] = None,
    ):
        self.mod_name = mod_name
        self.line_number = line_number
        self.line = line
        self.reason = reason
        message = f"Error in {mod_name} at line {line_number}: {line.strip()}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ModParser:
    """
    Single-pass parser producing a ModDefinition.

    Usage:
        parser = ModParser()
        definition = parser.parse(text, "MyMod")
        definition.definition(EntityType.MONSTER).defined_ids
    """

    def __init__(self):
        self.classifier = LineClassifier()

    def parse(self, text: str, mod_name: str) -> ModDefinition:
        definition = ModDefinition(mod_name)
        context = ParseContext()
        lines = text.splitlines()

        for index, raw in enumerate(lines):
            line_no = index + 1
            line = normalize_line(raw, first=index == 0)
            try:
                self._process_line(line, line_no, context, definition)
            except ModParseError:
                raise
            except Exception as e:
                raise ModParseError(mod_name, line_no, raw, str(e)) from e

        self._finish(context, definition, lines)
        logger.debug("Parsed %s: %r", mod_name, definition)
        return definition

    # =========================================================================
    # Line handling
    # =========================================================================

    def _process_line(
        self,
        line: str,
        line_no: int,
        context: ParseContext,
        definition: ModDefinition,
    ) -> None:
        classified = self.classifier.classify(line, context)
        kind = classified.kind

        if kind is LineKind.METADATA:
            self._metadata(classified, line_no, context, definition)
        elif kind is LineKind.BLOCK_START:
            self._block_start(classified, line_no, context, definition)
        elif kind is LineKind.BLOCK_END:
            finished = context.close_block()
            if finished is not None:
                self._finish_spell(finished, definition)
        elif kind is LineKind.BLOCK_CONTENT:
            self._spell_content(classified, context, definition)
        elif kind is LineKind.NAME:
            if context.active is not None and classified.name:
                definition.bind_name(classified.name, context.active)
        elif kind is LineKind.ENTITY:
            if classified.ref.role.is_definition:
                self._record(classified.ref, classified, definition)

    def _metadata(
        self,
        classified: ClassifiedLine,
        line_no: int,
        context: ParseContext,
        definition: ModDefinition,
    ) -> None:
        if context.in_description:
            if classified.closes_description:
                context.leave_description()
        elif classified.directive == "modname" and classified.name:
            definition.display_name = classified.name
        elif classified.opens_description:
            context.enter_description(line_no)

    def _block_start(
        self,
        classified: ClassifiedLine,
        line_no: int,
        context: ParseContext,
        definition: ModDefinition,
    ) -> None:
        ref = classified.ref
        binding = self._record(ref, classified, definition)
        if binding is None and classified.name:
            binding = definition.name_binding(ref.entity_type, classified.name)

        unclosed = context.open_block(ref.entity_type, binding, line_no)
        if unclosed is not None:
            definition.warnings.append(
                f"Block opened at line {unclosed} was not closed before line {line_no}"
            )

        if context.in_spell_block and ref.role is Role.SELECT:
            context.spell.select_id = classified.number
            context.spell.select_name = classified.name

    def _spell_content(
        self,
        classified: ClassifiedLine,
        context: ParseContext,
        definition: ModDefinition,
    ) -> None:
        spell = context.spell
        if classified.directive == "effect":
            spell.effect = classified.number
        elif classified.directive in DAMAGE_DIRECTIVES:
            if classified.number is None:
                return
            spell.damage = classified.number
        elif classified.directive == "copyspell":
            spell.copy_id = classified.number
            spell.copy_name = classified.name

        if spell.ready:
            self._resolve_damage(spell, definition)

    def _finish_spell(self, spell: SpellBlock, definition: ModDefinition) -> None:
        if not spell.resolved and spell.damage is not None:
            self._resolve_damage(spell, definition)

    def _resolve_damage(self, spell: SpellBlock, definition: ModDefinition) -> None:
        spell.resolved = True
        target = spell.damage_target()
        if target is not None:
            self._record_id(definition, *target)

    # =========================================================================
    # Recording
    # =========================================================================

    def _record(
        self,
        ref: DirectiveRef,
        classified: ClassifiedLine,
        definition: ModDefinition,
    ) -> Optional[NameBinding]:
        """Record a NEW/SELECT line; returns the binding a later #name attaches to."""
        if classified.number is not None:
            resolved = ref.resolve(classified.number)
            if resolved is None:
                return None
            entity_type, entity_id = resolved
            self._record_id(definition, entity_type, entity_id)
            return NameBinding(entity_type, entity_id=entity_id)

        if classified.name is not None:
            definition.add_name_reference(ref.entity_type, classified.name)
            return None

        if ref.role is Role.NEW:
            index = definition.definition(ref.entity_type).add_implicit()
            return NameBinding(ref.entity_type, implicit_index=index)

        return None

    @staticmethod
    def _record_id(definition: ModDefinition, entity_type: EntityType, entity_id: int) -> None:
        entity_def = definition.definition(entity_type)
        if is_vanilla_id(entity_type, entity_id):
            entity_def.add_vanilla_edited(entity_id)
        else:
            entity_def.add_defined(entity_id)

    def _finish(self, context: ParseContext, definition: ModDefinition, lines) -> None:
        if context.in_description:
            line_no = context.description_line
            raise ModParseError(
                definition.mod_name, line_no, lines[line_no - 1],
                "description is never closed",
            )
        if context.in_block:
            definition.warnings.append(
                f"Block opened at line {context.block_line} is never closed"
            )
            finished = context.close_block()
            if finished is not None:
                self._finish_spell(finished, definition)

        for entity_type, name in definition.unresolved_name_references():
            logger.debug(
                "%s: %s \"%s\" refers to content outside this mod",
                definition.mod_name, entity_type.label, name,
            )


def parse(text: str, mod_name: str) -> ModDefinition:
    """Parse one mod's text into a ModDefinition."""
    return ModParser().parse(text, mod_name)
