"""
Content Rewriter

Second pass over each mod: strips mod metadata, substitutes remapped ids,
writes assigned ids into implicit definitions and re-interprets spell
#damage values once the block's #effect is known. Every changed line is
preceded by exactly one "-- MOD MERGER:" comment.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from dommerger.core.result import MergeError
from dommerger.domain.entity_types import EntityType
from dommerger.domain.models import MappedModDefinition, ModDefinition
from dommerger.parser.classifier import (
    DAMAGE_DIRECTIVES,
    ClassifiedLine,
    LineClassifier,
    LineKind,
    normalize_line,
)
from dommerger.parser.context import ParseContext
from dommerger.parser.directives import DirectiveRef, Role

logger = logging.getLogger(__name__)


COMMENT_PREFIX = "-- MOD MERGER:"
END_MARKER = f"{COMMENT_PREFIX} End merged content"

_ARGUMENT_RE = re.compile(r"^(#\w+\s+)(-?\d+)")
_DIRECTIVE_REST_RE = re.compile(r"^#\w+(.*)$")


class RewriteError(MergeError):
    """Rewrite pass disagrees with the parse pass (implicit definitions out of step)."""


@dataclass
class RewrittenMod:
    """Rewritten body of one mod."""
    mod_name: str
    lines: List[str] = field(default_factory=list)
    changed_lines: int = 0

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def replace_argument(stripped: str, new_value: int) -> str:
    """Swap the first numeric argument of a directive line, keeping the rest."""
    return _ARGUMENT_RE.sub(lambda m: f"{m.group(1)}{new_value}", stripped, count=1)


def _indent(raw: str) -> str:
    return raw[: len(raw) - len(raw.lstrip())]


class _ModRewrite:
    """State for rewriting one mod."""

    def __init__(self, mod_name: str, mapped: MappedModDefinition, classifier: LineClassifier):
        self.mod_name = mod_name
        self.mapped = mapped
        self.classifier = classifier
        self.context = ParseContext()
        self.out = RewrittenMod(mod_name)
        self.implicit_index: Dict[EntityType, int] = defaultdict(int)
        self.pending_damage: Optional[Tuple[int, str, str]] = None

    # =========================================================================
    # Output helpers
    # =========================================================================

    def emit(self, line: str) -> None:
        lines = self.out.lines
        if not line.strip():
            if lines and not lines[-1].strip():
                return
            lines.append("")
            return
        if line.strip().lower() == "#end":
            last = next((l for l in reversed(lines) if l.strip()), None)
            if last is not None and last.strip().lower() == "#end":
                logger.debug("%s: dropped redundant #end", self.mod_name)
                return
        lines.append(line)

    def emit_changed(self, indent: str, comment: str, line: str) -> None:
        self.out.lines.append(f"{indent}{COMMENT_PREFIX} {comment}")
        self.out.lines.append(f"{indent}{line}")
        self.out.changed_lines += 1

    def remap(self, ref: DirectiveRef, number: int) -> Optional[Tuple[EntityType, int, int, int]]:
        """(type, old id, new id, new argument) if the argument must change."""
        resolved = ref.resolve(number)
        if resolved is None:
            return None
        entity_type, old_id = resolved
        new_id = self.mapped.get_mapping(entity_type, old_id)
        if new_id == old_id:
            return None
        return entity_type, old_id, new_id, -new_id if number < 0 else new_id

    # =========================================================================
    # Walk
    # =========================================================================

    def run(self, text: str) -> RewrittenMod:
        for index, raw in enumerate(text.splitlines()):
            line = normalize_line(raw, first=index == 0).rstrip()
            classified = self.classifier.classify(line, self.context)
            self.handle(classified, line, index + 1)

        if self.context.in_spell_block:
            self.finish_spell()
        while self.out.lines and not self.out.lines[-1].strip():
            self.out.lines.pop()
        while self.out.lines and not self.out.lines[0].strip():
            self.out.lines.pop(0)
        return self.out

    def handle(self, classified: ClassifiedLine, line: str, line_no: int) -> None:
        kind = classified.kind
        context = self.context

        if kind is LineKind.METADATA:
            if context.in_description:
                if classified.closes_description:
                    context.leave_description()
            elif classified.opens_description:
                context.enter_description(line_no)
            return

        if kind is LineKind.BLOCK_START:
            self.block_start(classified, line, line_no)
        elif kind is LineKind.BLOCK_END:
            if context.in_spell_block:
                self.finish_spell()
            context.close_block()
            self.emit(line)
        elif kind is LineKind.BLOCK_CONTENT:
            self.spell_content(classified, line)
        elif kind is LineKind.ENTITY and classified.number is not None:
            self.entity(classified, line)
        else:
            self.emit(line)

    def entity(self, classified: ClassifiedLine, line: str) -> None:
        change = self.remap(classified.ref, classified.number)
        if change is None:
            self.emit(line)
            return
        entity_type, old_id, new_id, new_value = change
        self.emit_changed(
            _indent(line),
            f"Remapped {entity_type.label} {old_id} -> {new_id}",
            replace_argument(classified.text, new_value),
        )

    def block_start(self, classified: ClassifiedLine, line: str, line_no: int) -> None:
        ref = classified.ref
        entity_type = ref.entity_type
        indent = _indent(line)

        if classified.number is not None:
            self.entity(classified, line)
        elif classified.name is None and ref.role is Role.NEW:
            index = self.implicit_index[entity_type]
            self.implicit_index[entity_type] += 1
            new_id = self.mapped.implicit_id(entity_type, index)
            if new_id is None:
                raise RewriteError(
                    f"{self.mod_name} line {line_no}: no id assigned to implicit "
                    f"{entity_type.label} #{index + 1}"
                )
            rest = _DIRECTIVE_REST_RE.match(classified.text).group(1)
            if ref.rule.implicit_select:
                self.emit_changed(
                    indent,
                    f"Converted #{classified.directive} to #{ref.rule.implicit_select} "
                    f"with assigned ID {new_id}",
                    f"#{ref.rule.implicit_select} {new_id}{rest}",
                )
            else:
                self.emit_changed(
                    indent,
                    f"Assigned new ID {new_id} to implicit {entity_type.label} definition",
                    f"#{classified.directive} {new_id}{rest}",
                )
        else:
            self.emit(line)

        self.context.open_block(entity_type, None, line_no)
        if self.context.in_spell_block and ref.role is Role.SELECT:
            self.context.spell.select_id = classified.number
            self.context.spell.select_name = classified.name

    # =========================================================================
    # Spell blocks
    # =========================================================================

    def spell_content(self, classified: ClassifiedLine, line: str) -> None:
        spell = self.context.spell
        directive = classified.directive

        if directive == "effect":
            spell.effect = classified.number
            self.emit(line)
            if spell.ready and self.pending_damage is not None:
                self.resolve_pending()
        elif directive in DAMAGE_DIRECTIVES and classified.number is not None:
            spell.damage = classified.number
            if spell.ready:
                spell.resolved = True
                self.damage_line(line)
            else:
                self.out.lines.append(line)
                self.pending_damage = (len(self.out.lines) - 1, _indent(line), classified.text)
        elif directive == "copyspell":
            spell.copy_id = classified.number
            spell.copy_name = classified.name
            if classified.number is not None:
                self.entity(classified, line)
            else:
                self.emit(line)
        else:
            self.emit(line)

    def finish_spell(self) -> None:
        spell = self.context.spell
        if spell is not None and not spell.resolved and self.pending_damage is not None:
            self.resolve_pending()
        self.pending_damage = None

    def resolve_pending(self) -> None:
        """#damage came before #effect: rewrite the line already emitted."""
        spell = self.context.spell
        spell.resolved = True
        position, indent, text = self.pending_damage
        self.pending_damage = None
        replacement = self._damage_rewrite(spell, text)
        if replacement is None:
            return
        comment, new_line = replacement
        self.out.lines[position] = f"{indent}{new_line}"
        self.out.lines.insert(position, f"{indent}{COMMENT_PREFIX} {comment}")
        self.out.changed_lines += 1

    def damage_line(self, line: str) -> None:
        replacement = self._damage_rewrite(self.context.spell, line.strip())
        if replacement is None:
            self.emit(line)
            return
        comment, new_line = replacement
        self.emit_changed(_indent(line), comment, new_line)

    def _damage_rewrite(self, spell, text: str) -> Optional[Tuple[str, str]]:
        target = spell.damage_target()
        if target is None:
            return None
        entity_type, old_id = target
        new_id = self.mapped.get_mapping(entity_type, old_id)
        if new_id == old_id:
            return None
        new_value = -new_id if spell.damage < 0 else new_id
        kind = "Enchantment" if entity_type is EntityType.ENCHANTMENT else "Summoning"
        return (
            f"{kind} => Remapped {entity_type.label} {old_id} -> {new_id}",
            replace_argument(text, new_value),
        )


class ContentRewriter:
    """
    Rewrites mod bodies against their allocation result.

    Usage:
        rewriter = ContentRewriter()
        rewritten = rewriter.rewrite_mod(source.text, definition, mapped)
        print(rewritten.text)
    """

    def __init__(self):
        self.classifier = LineClassifier()

    def rewrite_mod(
        self,
        text: str,
        definition: ModDefinition,
        mapped: MappedModDefinition,
    ) -> RewrittenMod:
        rewritten = _ModRewrite(definition.mod_name, mapped, self.classifier).run(text)
        logger.debug(
            "%s: rewrote %d line(s)", definition.mod_name, rewritten.changed_lines
        )
        return rewritten

    def rewrite_all(
        self,
        items: Iterable[Tuple[str, ModDefinition, MappedModDefinition]],
    ) -> List[str]:
        """
        Rewrite several mods into one merged body.

        Each item is (text, definition, mapped). Definitions and mappings are
        released as soon as their mod has been written.
        """
        lines: List[str] = []
        for text, definition, mapped in items:
            name = definition.mod_name
            rewritten = self.rewrite_mod(text, definition, mapped)
            lines.append("")
            lines.append(f"-- Begin content from mod: {name}")
            lines.extend(rewritten.lines)
            lines.append(f"-- End content from mod: {name}")
            definition.release()
            mapped.release()
        lines.append("")
        lines.append(END_MARKER)
        return lines


def rewrite(text: str, definition: ModDefinition, mapped: MappedModDefinition) -> str:
    """Rewrite one mod's text; returns the new body without mod metadata."""
    return ContentRewriter().rewrite_mod(text, definition, mapped).text
