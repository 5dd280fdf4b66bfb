"""
Mod Merger

Runs the whole pipeline for one merge:

    parse (parallel, per mod) -> freeze -> allocate (global) -> rewrite -> write

The merged file only appears once everything has succeeded; it is written to
a temporary sibling and renamed into place.

Usage:
    config = MergeConfig(overrides={"mod_name": "MyMerge", "output_dir": "out"})
    result = ModMerger(config).merge([ModSource.from_file(p) for p in paths])
    if result.is_success:
        print(result.output_path)
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from dommerger.config import MergeConfig
from dommerger.core.result import MergeResult, MergeWarning
from dommerger.parser.parser import ModParseError
from dommerger.parser.pool import parse_mods
from dommerger.resolver.allocator import RangeExhaustedError
from dommerger.resolver.mapper import allocate
from dommerger.resolver.report import render_markdown_report
from dommerger.sources import ModSource
from dommerger.writer.header import build_header
from dommerger.writer.rewriter import ContentRewriter, RewriteError

logger = logging.getLogger(__name__)


def write_atomic(path: Path, text: str) -> None:
    """Write text to path via a temporary file renamed into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
    except OSError:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


class ModMerger:
    """Merges several mods into one according to a MergeConfig."""

    def __init__(self, config: MergeConfig):
        self.config = config
        self.rewriter = ContentRewriter()

    def merge(
        self,
        sources: Iterable[ModSource],
        report_path: Optional[Path] = None,
    ) -> MergeResult:
        sources = list(sources)

        if not sources:
            return MergeResult.failure("MERGE-INPUT-E-001", "No mods to merge")

        names = [s.name for s in sources]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            return MergeResult.failure(
                "MERGE-INPUT-E-002",
                f"Duplicate mod names: {', '.join(duplicates)}",
                data={"duplicates": duplicates},
            )

        config_errors = self.config.validate()
        if config_errors:
            return MergeResult.failure(
                "MERGE-CONFIG-E-001",
                "Invalid configuration: " + "; ".join(config_errors),
                data={"errors": config_errors},
            )

        ordered = sorted(sources, key=lambda s: s.name)
        warnings: List[MergeWarning] = []
        logger.info("Merging %d mod(s): %s", len(ordered), ", ".join(s.name for s in ordered))

        # Parse
        try:
            definitions = parse_mods(ordered, max_workers=self.config.parse_workers)
        except ModParseError as e:
            logger.error("Parse failed: %s", e)
            return MergeResult.failure(
                "MERGE-PARSE-E-001", str(e),
                data={"mod": e.mod_name, "line": e.line_number},
            )

        for definition in definitions.values():
            for message in definition.warnings:
                warnings.append(MergeWarning.content(
                    f"{definition.mod_name}: {message}", (definition.mod_name,)
                ))
            definition.freeze()

        # Allocate
        try:
            allocation = allocate(definitions)
        except RangeExhaustedError as e:
            logger.error("Allocation failed: %s", e)
            return MergeResult.failure(
                "MERGE-ALLOC-E-001", str(e),
                warnings=warnings,
                data={"entity_type": e.entity_type.value},
            )
        warnings.extend(allocation.warnings)

        report = None
        if report_path is not None:
            report = render_markdown_report(allocation, [s.name for s in ordered])
        remapped = allocation.remap_count
        collisions = len(allocation.remap_conflicts)

        # Rewrite
        header, header_warnings = build_header(self.config, [s.name for s in ordered])
        warnings.extend(header_warnings)
        try:
            body = self.rewriter.rewrite_all(
                (source.text, definitions[source.name], allocation.mapping_for(source.name))
                for source in ordered
            )
        except RewriteError as e:
            logger.error("Rewrite failed: %s", e)
            return MergeResult.failure("MERGE-WRITE-E-002", str(e), warnings=warnings)

        # Write
        output_path = self.config.output_path
        try:
            write_atomic(output_path, "\n".join(header + body) + "\n")
            if report is not None:
                write_atomic(Path(report_path), report)
        except OSError as e:
            logger.error("Could not write %s: %s", output_path, e)
            return MergeResult.failure(
                "MERGE-WRITE-E-001",
                f"Could not write {output_path}: {e}",
                warnings=warnings,
            )

        logger.info("Wrote %s (%d id(s) remapped, %d warning(s))", output_path, remapped, len(warnings))
        return MergeResult.success(
            f"Merged {len(ordered)} mod(s) into {output_path}",
            warnings,
            output_path=output_path,
            data={
                "mods": [s.name for s in ordered],
                "remapped": remapped,
                "collisions": collisions,
            },
        )
