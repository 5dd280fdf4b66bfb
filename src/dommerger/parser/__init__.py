"""
Dominions mod script parsing.

Line classification, the parse-context state machine and the single-pass
parser that records what each mod defines.
"""

from dommerger.parser.classifier import ClassifiedLine, LineClassifier, LineKind, normalize_line
from dommerger.parser.context import ParseContext, ParseState, SpellBlock, interpret_damage
from dommerger.parser.directives import DIRECTIVE_TABLE, DirectiveRef, DirectiveRule, Role, lookup
from dommerger.parser.parser import ModParseError, ModParser, parse

__all__ = [
    "ClassifiedLine",
    "LineClassifier",
    "LineKind",
    "normalize_line",
    "ParseContext",
    "ParseState",
    "SpellBlock",
    "interpret_damage",
    "DIRECTIVE_TABLE",
    "DirectiveRef",
    "DirectiveRule",
    "Role",
    "lookup",
    "ModParseError",
    "ModParser",
    "parse",
]
