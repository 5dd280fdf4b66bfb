"""
Line Classifier

Turns one line of a Dominions mod script into a ClassifiedLine. The decision
depends on the parse context: inside a multi-line description every line is
metadata, inside a spell block #effect/#damage/#copyspell are block content.

Usage:
    classifier = LineClassifier()
    context = ParseContext()
    for line in text.splitlines():
        result = classifier.classify(normalize_line(line), context)
        print(result.kind, result.number)
"""

import re
from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional, Tuple

from dommerger.parser.context import ParseContext
from dommerger.parser.directives import DirectiveRef, block_start_ref, lookup, pick_ref


class LineKind(Enum):
    """Classification of a single mod line."""
    BLANK = auto()
    COMMENT = auto()          # -- comment
    METADATA = auto()         # #modname, #description (and its continuation), #icon, ...
    BLOCK_START = auto()      # #newmonster, #selectspell 1234, ...
    BLOCK_END = auto()        # #end
    BLOCK_CONTENT = auto()    # #effect / #damage / #copyspell inside a spell block
    NAME = auto()             # #name "..."
    ENTITY = auto()           # any other id-bearing directive
    TEXT = auto()             # anything else, passed through untouched


METADATA_DIRECTIVES = frozenset({"modname", "description", "icon", "version", "domversion"})

SPELL_CONTENT_DIRECTIVES = frozenset({"effect", "damage", "damagemon", "copyspell"})

# Both take the value whose meaning the block's #effect decides
DAMAGE_DIRECTIVES = frozenset({"damage", "damagemon"})

# Editor artifacts that break the game's parser; replaced on every line.
TEXT_CORRECTIONS: Tuple[Tuple[str, str], ...] = (
    ("\u201c", '"'),   # left double quotation mark
    ("\u201d", '"'),   # right double quotation mark
    ("\u00a0", " "),   # no-break space
)

BOM = "\ufeff"

_DIRECTIVE_RE = re.compile(r"^#([A-Za-z0-9_]+)(.*)$")
_NUMBER_ARG_RE = re.compile(r"^\s+(-?\d+)")
_NAME_ARG_RE = re.compile(r'^\s+"([^"]*)"')
_MODNAME_RE = re.compile(r'^\s+"([^"]+)"')


def _closes_description(stripped: str) -> bool:
    """Whether a description continuation line ends the string; comments never count."""
    if stripped.startswith("--"):
        return False
    return stripped.split("--", 1)[0].count('"') % 2 == 1


def normalize_line(line: str, first: bool = False) -> str:
    """Apply the fixed text corrections; drop a byte-order mark on the first line."""
    if first and line.startswith(BOM):
        line = line[len(BOM):]
    for bad, good in TEXT_CORRECTIONS:
        if bad in line:
            line = line.replace(bad, good)
    return line


@dataclass
class ClassifiedLine:
    """Result of classifying one line."""
    kind: LineKind
    text: str
    directive: Optional[str] = None
    ref: Optional[DirectiveRef] = None
    number: Optional[int] = None
    name: Optional[str] = None

    # Multi-line description bookkeeping
    opens_description: bool = False
    closes_description: bool = False

    def __repr__(self) -> str:
        extra = f" {self.number}" if self.number is not None else ""
        if self.name is not None:
            extra += f' "{self.name}"'
        return f"ClassifiedLine({self.kind.name}, #{self.directive or ''}{extra})"


class LineClassifier:
    """Stateless classifier; all state lives in the ParseContext passed in."""

    def classify(self, line: str, context: ParseContext) -> ClassifiedLine:
        stripped = line.strip()

        if context.in_description:
            return ClassifiedLine(
                LineKind.METADATA, stripped,
                directive="description",
                closes_description=_closes_description(stripped),
            )

        if not stripped:
            return ClassifiedLine(LineKind.BLANK, stripped)
        if stripped.startswith("--"):
            return ClassifiedLine(LineKind.COMMENT, stripped)

        match = _DIRECTIVE_RE.match(stripped)
        if not match:
            return ClassifiedLine(LineKind.TEXT, stripped)

        directive = match.group(1).lower()
        rest = match.group(2)
        number, name = self._argument(rest)

        if directive in METADATA_DIRECTIVES:
            return self._metadata(stripped, directive, rest)

        if directive == "end":
            return ClassifiedLine(LineKind.BLOCK_END, stripped, directive=directive)

        start_ref = block_start_ref(directive)
        if start_ref is not None:
            return ClassifiedLine(
                LineKind.BLOCK_START, stripped,
                directive=directive, ref=start_ref, number=number, name=name,
            )

        if context.in_spell_block and directive in SPELL_CONTENT_DIRECTIVES:
            ref = pick_ref(lookup(directive), context.active_type)
            return ClassifiedLine(
                LineKind.BLOCK_CONTENT, stripped,
                directive=directive, ref=ref, number=number, name=name,
            )

        if directive == "name":
            return ClassifiedLine(LineKind.NAME, stripped, directive=directive, name=name)

        ref = pick_ref(lookup(directive), context.active_type)
        if ref is not None:
            return ClassifiedLine(
                LineKind.ENTITY, stripped,
                directive=directive, ref=ref, number=number, name=name,
            )

        return ClassifiedLine(LineKind.TEXT, stripped, directive=directive)

    @staticmethod
    def _argument(rest: str) -> Tuple[Optional[int], Optional[str]]:
        number_match = _NUMBER_ARG_RE.match(rest)
        if number_match:
            return int(number_match.group(1)), None
        name_match = _NAME_ARG_RE.match(rest)
        if name_match:
            return None, name_match.group(1)
        return None, None

    @staticmethod
    def _metadata(stripped: str, directive: str, rest: str) -> ClassifiedLine:
        result = ClassifiedLine(LineKind.METADATA, stripped, directive=directive)
        if directive == "modname":
            name_match = _MODNAME_RE.match(rest)
            if name_match:
                result.name = name_match.group(1)
        elif directive == "description":
            # An odd number of quotes leaves the string open onto later lines.
            result.opens_description = rest.count('"') % 2 == 1
        return result
