"""
Allocation Reports

Human-readable summaries of what an allocation did: which ids each mod had
moved, and which vanilla content several mods touch.
"""

from datetime import datetime
from typing import Iterable, List, Sequence


MAX_MAPPINGS_PER_MOD = 50


def format_id_ranges(ids: Iterable[int]) -> str:
    """Compact ids into ranges: [1, 2, 3, 7, 9, 10] -> '1-3, 7, 9-10'."""
    ordered = sorted(set(ids))
    if not ordered:
        return ""

    parts: List[str] = []
    start = prev = ordered[0]
    for entity_id in ordered[1:]:
        if entity_id == prev + 1:
            prev = entity_id
            continue
        parts.append(_span(start, prev))
        start = prev = entity_id
    parts.append(_span(start, prev))
    return ", ".join(parts)


def _span(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"


def render_text_report(result) -> str:
    """Plain-text report for console output."""
    lines = []
    lines.append(f"Remapped ids: {result.remap_count}")
    lines.append(f"Vanilla conflicts: {len(result.vanilla_conflicts)}")

    for mod_name, mapped in sorted(result.mappings.items()):
        mappings = mapped.mappings()
        if not mappings:
            continue
        lines.append("")
        lines.append(f"{mod_name}:")
        for mapping in mappings:
            lines.append(
                f"  {mapping.entity_type.label} {mapping.original_id} -> {mapping.new_id}"
            )

    if result.vanilla_conflicts:
        lines.append("")
        lines.append("Vanilla content modified by several mods:")
        for conflict in result.vanilla_conflicts:
            lines.append(
                f"  {conflict.entity_type.label} {format_id_ranges(conflict.ids)}: "
                f"{', '.join(conflict.mods)}"
            )

    return "\n".join(lines)


def render_markdown_report(result, mod_order: Sequence[str] = ()) -> str:
    """Generate a markdown report of remaps and conflicts."""
    lines = []
    lines.append("# Dominions Mod Merge Report")
    lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")
    lines.append("## Summary")
    lines.append(f"- Mods: {len(result.mappings)}")
    lines.append(f"- Remapped ids: {result.remap_count}")
    lines.append(f"- Id collisions between mods: {len(result.remap_conflicts)}")
    lines.append(f"- Vanilla conflicts: {len(result.vanilla_conflicts)}")
    lines.append("")

    if not result.remap_conflicts and not result.vanilla_conflicts:
        lines.append("*No conflicts detected.*")
        return "\n".join(lines)

    if result.remap_conflicts:
        lines.append("## Id Collisions")
        lines.append("")
        lines.append("| Type | Ids | Kept by | Moved in |")
        lines.append("|------|-----|---------|----------|")
        for conflict in result.remap_conflicts:
            owner, claimant = conflict.mods
            lines.append(
                f"| {conflict.entity_type.label} | {format_id_ranges(conflict.ids)} "
                f"| {owner} | {claimant} |"
            )
        lines.append("")

        lines.append("## Remapped Ids")
        lines.append("")
        names = list(mod_order) or sorted(result.mappings)
        for mod_name in names:
            mappings = result.mappings[mod_name].mappings()
            if not mappings:
                continue
            lines.append(f"### {mod_name}")
            for mapping in mappings[:MAX_MAPPINGS_PER_MOD]:
                lines.append(
                    f"- {mapping.entity_type.label} `{mapping.original_id}` -> `{mapping.new_id}`"
                )
            if len(mappings) > MAX_MAPPINGS_PER_MOD:
                lines.append(f"- ... and {len(mappings) - MAX_MAPPINGS_PER_MOD} more")
            lines.append("")

    if result.vanilla_conflicts:
        lines.append("## Vanilla Conflicts")
        lines.append("")
        lines.append("Only the last mod's version of these entries takes effect in game.")
        lines.append("")
        for conflict in result.vanilla_conflicts:
            lines.append(
                f"- {conflict.entity_type.label} {format_id_ranges(conflict.ids)}: "
                f"{', '.join(conflict.mods)}"
            )
        lines.append("")

    return "\n".join(lines)
