"""
dommerger - Dominions 6 Mod Merger

Combines several Dominions mods into one, moving colliding entity ids out of
each other's way and rewriting every reference to match.
"""

__version__ = "0.1.0"
__author__ = "dommerger contributors"

from dommerger.parser import parse
from dommerger.resolver import allocate
from dommerger.writer import rewrite
