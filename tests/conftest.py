"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
from textwrap import dedent

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dommerger.parser import parse
from dommerger.resolver import allocate
from dommerger.sources import ModSource


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def mods_dir(fixtures_dir):
    """Directory holding the two well-formed sample mods."""
    return fixtures_dir / "mods"


@pytest.fixture
def sample_sources(mods_dir):
    """ModA and ModB loaded from disk."""
    return [ModSource.from_file(p) for p in sorted(mods_dir.glob("*.dm"))]


# =============================================================================
# ENVIRONMENT
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep user config files and DOMMERGER_* variables out of tests."""
    monkeypatch.setattr("dommerger.config.CONFIG_SEARCH_PATHS", [])
    for var in ("DOMMERGER_OUTPUT_DIR", "DOMMERGER_MOD_NAME", "DOMMERGER_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# HELPERS
# =============================================================================

def mod_text(text: str) -> str:
    """Dedent an inline mod body."""
    return dedent(text).strip("\n") + "\n"


def parse_all(**mods):
    """Parse keyword mods {name: text} into definitions keyed by name."""
    return {name: parse(mod_text(text), name) for name, text in mods.items()}


def parse_and_allocate(**mods):
    """Parse and allocate; returns (definitions, allocation result)."""
    definitions = parse_all(**mods)
    for definition in definitions.values():
        definition.freeze()
    return definitions, allocate(definitions)
