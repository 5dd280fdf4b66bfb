"""
Tests for the full merge pipeline.
"""

from datetime import datetime

import pytest

from dommerger.config import MergeConfig
from dommerger.core.result import WarningCategory
from dommerger.sources import ModSource
from dommerger.writer.header import build_header
from dommerger.writer.merge import ModMerger, write_atomic
from dommerger.writer.rewriter import END_MARKER


@pytest.fixture
def config(tmp_path):
    return MergeConfig(overrides={
        "mod_name": "TestMerge",
        "display_name": "Test Merge",
        "output_dir": str(tmp_path / "out"),
    })


class TestMergeSuccess:
    """A clean merge of the sample mods."""

    def test_output_written(self, config, sample_sources):
        result = ModMerger(config).merge(sample_sources)
        assert result.is_success
        assert result.code == "MERGE-OK-S-001"
        assert result.output_path == config.output_path
        assert config.output_path.exists()
        assert config.output_path.parent.name == "TestMerge"

    def test_output_layout(self, config, sample_sources):
        ModMerger(config).merge(sample_sources)
        text = config.output_path.read_text(encoding="utf-8")
        lines = text.splitlines()
        assert lines[0] == '#modname "Test Merge"'
        assert "Merged from:" in lines
        assert "- ModA" in lines
        assert "-- Begin content from mod: ModA" in lines
        assert "-- End content from mod: ModB" in lines
        assert lines[-1] == END_MARKER
        # only the generated header carries metadata
        assert text.count("#modname") == 1
        assert "#newmonster 13503" in lines

    def test_result_data(self, config, sample_sources):
        result = ModMerger(config).merge(sample_sources)
        assert result.data["mods"] == ["ModA", "ModB"]
        assert result.data["remapped"] == 1
        assert result.data["collisions"] == 1

    def test_vanilla_conflict_is_warning(self, config, sample_sources):
        result = ModMerger(config).merge(sample_sources)
        conflicts = result.warnings_of(WarningCategory.CONFLICT)
        assert len(conflicts) == 1
        assert "Monster" in conflicts[0].message

    def test_argument_order_does_not_matter(self, config, sample_sources, tmp_path):
        ModMerger(config).merge(sample_sources)
        first = config.output_path.read_text(encoding="utf-8")
        other = MergeConfig(overrides={
            "mod_name": "TestMerge",
            "display_name": "Test Merge",
            "output_dir": str(tmp_path / "other"),
        })
        ModMerger(other).merge(list(reversed(sample_sources)))
        second = other.output_path.read_text(encoding="utf-8")
        strip = lambda t: [l for l in t.splitlines() if not l.startswith("Generated:")]
        assert strip(first) == strip(second)

    def test_report_written(self, config, sample_sources, tmp_path):
        report = tmp_path / "report.md"
        ModMerger(config).merge(sample_sources, report_path=report)
        assert "Remapped ids: 1" in report.read_text(encoding="utf-8")

    def test_unclosed_block_warning(self, config):
        sources = [ModSource.from_text("Loose", "#newmonster 5000\n#hp 10\n")]
        result = ModMerger(config).merge(sources)
        assert result.is_success
        assert result.warnings_of(WarningCategory.CONTENT)


class TestMergeFailure:
    """Failures leave nothing behind."""

    def test_parse_error(self, config, fixtures_dir, sample_sources):
        broken = ModSource.from_file(fixtures_dir / "broken" / "Broken.dm")
        result = ModMerger(config).merge(sample_sources + [broken])
        assert result.is_failure
        assert result.code == "MERGE-PARSE-E-001"
        assert result.data["mod"] == "Broken"
        assert "Broken" in result.message
        assert not config.output_path.exists()

    def test_no_input(self, config):
        result = ModMerger(config).merge([])
        assert result.code == "MERGE-INPUT-E-001"

    def test_duplicate_names(self, config):
        sources = [
            ModSource.from_text("Same", "#newmonster 5000\n#end\n"),
            ModSource.from_text("Same", "#newmonster 5001\n#end\n"),
        ]
        result = ModMerger(config).merge(sources)
        assert result.code == "MERGE-INPUT-E-002"
        assert result.data["duplicates"] == ["Same"]

    def test_invalid_mod_name(self, tmp_path, sample_sources):
        config = MergeConfig(overrides={"mod_name": "bad name!", "output_dir": str(tmp_path)})
        result = ModMerger(config).merge(sample_sources)
        assert result.code == "MERGE-CONFIG-E-001"
        assert not any(tmp_path.iterdir())

    def test_previous_output_kept_on_failure(self, config, sample_sources):
        ModMerger(config).merge(sample_sources)
        before = config.output_path.read_text(encoding="utf-8")
        bad = [ModSource.from_text("Bad", '#description "open\n')]
        assert ModMerger(config).merge(bad).is_failure
        assert config.output_path.read_text(encoding="utf-8") == before


class TestHeader:

    def test_header_lines(self, config):
        lines, warnings = build_header(config, ["ModA", "ModB"], datetime(2024, 1, 2, 3, 4, 5))
        assert lines[0] == '#modname "Test Merge"'
        assert lines[1] == '#description "A merged mod combining multiple mods'
        assert 'Generated: 2024-01-02 03:04:05"' in lines
        assert '#version "1.0"' in lines
        assert lines[-1] == "-- Begin merged content"
        assert warnings == []

    def test_missing_icon_warns(self, tmp_path):
        config = MergeConfig(overrides={"icon": str(tmp_path / "missing.tga")})
        lines, warnings = build_header(config, ["ModA"])
        assert not any(l.startswith("#icon") for l in lines)
        assert warnings[0].category is WarningCategory.RESOURCE

    def test_existing_icon(self, tmp_path):
        icon = tmp_path / "banner.tga"
        icon.write_bytes(b"\0")
        config = MergeConfig(overrides={"icon": str(icon)})
        lines, warnings = build_header(config, ["ModA"])
        assert '#icon "banner.tga"' in lines

    def test_quotes_in_names_replaced(self, config):
        lines, _ = build_header(config, ['Mod "Q"'])
        assert "- Mod 'Q'" in lines


class TestWriteAtomic:

    def test_creates_parents_and_leaves_no_temp(self, tmp_path):
        path = tmp_path / "a" / "b" / "Mod.dm"
        write_atomic(path, "#end\n")
        assert path.read_text(encoding="utf-8") == "#end\n"
        assert list(path.parent.iterdir()) == [path]
