"""Header block of the merged mod: name, description, icon and version."""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from dommerger.config import MergeConfig
from dommerger.core.result import MergeWarning


def _quote_safe(text: str) -> str:
    # The game has no escape for '"' inside strings.
    return text.replace('"', "'")


def build_header(
    config: MergeConfig,
    mod_names: Sequence[str],
    generated_at: Optional[datetime] = None,
) -> Tuple[List[str], List[MergeWarning]]:
    """Header lines for the merged mod, plus any warnings (missing icon)."""
    warnings: List[MergeWarning] = []
    timestamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

    lines = [f'#modname "{_quote_safe(config.display_name)}"']
    lines.append(f'#description "{_quote_safe(config.description)}')
    lines.append("")
    lines.append("Merged from:")
    lines.extend(f"- {_quote_safe(name)}" for name in mod_names)
    lines.append("")
    lines.append(f'Generated: {timestamp}"')

    icon = config.icon
    if icon is not None:
        if icon.exists():
            lines.append(f'#icon "{icon.name}"')
        else:
            warnings.append(MergeWarning.resource(f"Icon file not found: {icon}"))

    lines.append(f'#version "{_quote_safe(config.version)}"')
    lines.append("")
    lines.append("-- Begin merged content")
    return lines, warnings
