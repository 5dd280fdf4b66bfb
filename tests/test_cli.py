"""
Tests for the command line interface.
"""

from dommerger.cli import collect_sources, main


class TestMergeCommand:

    def test_merge_directory(self, mods_dir, tmp_path, capsys):
        code = main(["merge", str(mods_dir), "-n", "CliMerge", "-o", str(tmp_path), "-q"])
        assert code == 0
        assert (tmp_path / "CliMerge" / "CliMerge.dm").exists()
        out = capsys.readouterr().out
        assert "Remapped ids: 1" in out

    def test_display_name_derives_mod_name(self, mods_dir, tmp_path):
        code = main(["merge", str(mods_dir), "--display-name", "My Merge", "-o", str(tmp_path), "-q"])
        assert code == 0
        assert (tmp_path / "My_Merge" / "My_Merge.dm").exists()

    def test_parse_failure_exit_code(self, fixtures_dir, tmp_path, capsys):
        code = main(["merge", str(fixtures_dir / "broken"), "-o", str(tmp_path), "-q"])
        assert code == 1
        assert "Broken" in capsys.readouterr().err

    def test_not_a_mod_file(self, tmp_path, capsys):
        other = tmp_path / "notes.txt"
        other.write_text("hi", encoding="utf-8")
        assert main(["merge", str(other), "-o", str(tmp_path)]) == 1


class TestReadOnlyCommands:

    def test_scan(self, mods_dir, capsys):
        assert main(["scan", str(mods_dir)]) == 0
        out = capsys.readouterr().out
        assert "ModB (Mod B)" in out
        assert "Monster: 1 defined, 1 vanilla edited, 1 implicit" in out

    def test_conflicts(self, mods_dir, capsys):
        assert main(["conflicts", str(mods_dir)]) == 0
        out = capsys.readouterr().out
        assert "Remapped ids: 1" in out
        assert "Monster 13501 -> 13503" in out

    def test_conflicts_markdown(self, mods_dir, capsys):
        assert main(["conflicts", str(mods_dir), "--markdown"]) == 0
        assert "# Dominions Mod Merge Report" in capsys.readouterr().out

    def test_init_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        assert main(["init-config", str(path)]) == 0
        assert path.exists()

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "merge" in capsys.readouterr().out


def test_collect_sources_mixes_files_and_dirs(mods_dir):
    sources = collect_sources([str(mods_dir / "ModA.dm"), str(mods_dir)])
    assert [s.name for s in sources] == ["ModA", "ModA", "ModB"]
