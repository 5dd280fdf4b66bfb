"""
Tests for the content rewriter.
"""

import pytest

from dommerger.domain.models import MappedModDefinition
from dommerger.parser import parse
from dommerger.writer.rewriter import (
    END_MARKER,
    ContentRewriter,
    RewriteError,
    replace_argument,
    rewrite,
)

from conftest import mod_text, parse_and_allocate


def merged_body(**mods):
    """Parse, allocate and rewrite keyword mods; returns {name: rewritten lines}."""
    definitions, result = parse_and_allocate(**mods)
    return {
        name: rewrite(mod_text(text), definitions[name], result.mapping_for(name)).splitlines()
        for name, text in mods.items()
    }


class TestReplaceArgument:

    def test_keeps_trailing_text(self):
        assert replace_argument("#newmonster 5000 -- troll", 13500) == "#newmonster 13500 -- troll"

    def test_negative_value(self):
        assert replace_argument("#damage -1005", -1000) == "#damage -1000"


class TestPassThrough:
    """Lines that need no change."""

    def test_metadata_stripped(self):
        lines = merged_body(ModA='''
            #modname "Mod A"
            #description "Two
            lines"
            #icon "a.tga"
            #version 1.0
            #domversion 6.0
            #newmonster 5000
            #end
        ''')["ModA"]
        assert lines == ["#newmonster 5000", "#end"]

    def test_unchanged_content_verbatim(self):
        lines = merged_body(ModA="""
            -- my units
            #selectmonster 50
            #hp 20
            #end
        """)["ModA"]
        assert lines == ["-- my units", "#selectmonster 50", "#hp 20", "#end"]

    def test_blank_runs_collapsed(self):
        lines = merged_body(ModA="#newmonster 5000\n\n\n\n#end\n")["ModA"]
        assert lines == ["#newmonster 5000", "", "#end"]

    def test_redundant_end_dropped(self):
        lines = merged_body(ModA="#newmonster 5000\n#end\n\n#end\n")["ModA"]
        assert lines == ["#newmonster 5000", "#end"]

    def test_bom_and_typographic_quotes_corrected(self):
        lines = merged_body(ModA="\ufeff#newmonster 5000\n#name \u201cTroll\u201d\n#end\n")["ModA"]
        assert lines == ["#newmonster 5000", '#name "Troll"', "#end"]


class TestRemapping:
    """Explicit ids that moved."""

    def test_fixture_mod_b(self, sample_sources):
        sources = {s.name: s.text for s in sample_sources}
        definitions, result = parse_and_allocate(**sources)
        lines = rewrite(
            sources["ModB"], definitions["ModB"], result.mapping_for("ModB")
        ).splitlines()
        assert lines == [
            "-- MOD MERGER: Remapped Monster 13501 -> 13503",
            "#newmonster 13503",
            '#name "Beta Brute"',
            "-- MOD MERGER: Remapped Monster 13501 -> 13503",
            "#copyspr 13503",
            "#end",
            "",
            "-- MOD MERGER: Assigned new ID 13502 to implicit Monster definition",
            "#newmonster 13502",
            '#name "Custom Troll"',
            "#end",
            "",
            "#selectmonster 50",
            "#str 15",
            "#end",
            "",
            "#selectspell 2100",
            '#name "Call Brute"',
            "#effect 10001",
            "-- MOD MERGER: Summoning => Remapped Monster 13501 -> 13503",
            "#damage 13503",
            "#end",
        ]

    def test_first_mod_untouched(self, sample_sources):
        sources = {s.name: s.text for s in sample_sources}
        definitions, result = parse_and_allocate(**sources)
        text = rewrite(sources["ModA"], definitions["ModA"], result.mapping_for("ModA"))
        assert "MOD MERGER" not in text
        assert "#newmonster 13501" in text

    def test_indent_preserved(self):
        lines = merged_body(
            ModA="#newweapon 1200\n#end",
            ModB="#newweapon 1200\n  #end\n#newmonster 5000\n    #copyweapon 1200\n#end",
        )["ModB"]
        assert "    -- MOD MERGER: Remapped Weapon 1200 -> 2250" in lines
        assert "    #copyweapon 2250" in lines

    def test_usage_of_remapped_id(self):
        lines = merged_body(
            ModA="#newmonster 5000\n#end",
            ModB="#newmonster 5000\n#end\n#selectmonster 50\n#summon1 5000\n#end",
        )["ModB"]
        assert "#summon1 13500" in lines

    def test_vanilla_id_usage_untouched(self):
        lines = merged_body(
            ModA="#newmonster 5000\n#end",
            ModB="#newmonster 5000\n#copystats 20\n#end",
        )["ModB"]
        assert "#copystats 20" in lines

    def test_event_codes_negative(self):
        lines = merged_body(
            ModA="#code -300",
            ModB="#code -300\n#req_code -300",
        )["ModB"]
        assert lines == [
            "-- MOD MERGER: Remapped Event code 300 -> 1",
            "#code -1",
            "-- MOD MERGER: Remapped Event code 300 -> 1",
            "#req_code -1",
        ]


class TestImplicit:
    """Definitions written without an id."""

    def test_implicit_monster_gets_id_inline(self):
        lines = merged_body(ModA="#newmonster\n#name \"Troll\"\n#end")["ModA"]
        assert lines[:2] == [
            "-- MOD MERGER: Assigned new ID 13500 to implicit Monster definition",
            "#newmonster 13500",
        ]

    def test_newspell_becomes_selectspell(self):
        lines = merged_body(ModA="#newspell\n#name \"Bolt\"\n#end")["ModA"]
        assert lines[:2] == [
            "-- MOD MERGER: Converted #newspell to #selectspell with assigned ID 5750",
            "#selectspell 5750",
        ]

    def test_newitem_becomes_selectitem(self):
        lines = merged_body(ModA="#newitem\n#end")["ModA"]
        assert lines[1] == "#selectitem 1450"

    def test_mismatched_mapping_raises(self):
        definition = parse(mod_text("#newmonster\n#end"), "ModA")
        with pytest.raises(RewriteError):
            rewrite(mod_text("#newmonster\n#end"), definition, MappedModDefinition("ModA"))


class TestSpellDamage:
    """#damage rewritten through the block's #effect."""

    def test_summoning_damage_follows_monster(self):
        lines = merged_body(
            Other="#newmonster 5300\n#end",
            Spells="#selectspell 150\n#effect 10010\n#damage 5300\n#end",
        )["Spells"]
        assert lines == [
            "#selectspell 150",
            "#effect 10010",
            "-- MOD MERGER: Summoning => Remapped Monster 5300 -> 13500",
            "#damage 13500",
            "#end",
        ]

    def test_damage_before_effect(self):
        lines = merged_body(
            Other="#newmonster 5300\n#end",
            Spells="#selectspell 150\n#damage 5300\n#effect 10010\n#end",
        )["Spells"]
        assert lines == [
            "#selectspell 150",
            "-- MOD MERGER: Summoning => Remapped Monster 5300 -> 13500",
            "#damage 13500",
            "#effect 10010",
            "#end",
        ]

    def test_non_summoning_damage_untouched(self):
        lines = merged_body(
            Other="#newmonster 5300\n#end",
            Spells="#newmonster 5300\n#end\n#selectspell 150\n#effect 2\n#damage 5300\n#end",
        )["Spells"]
        assert "#damage 5300" in lines

    def test_montag_damage_and_summon(self):
        lines = merged_body(
            ModA="#newmonster 5000\n#montag 1005\n#end",
            ModB="#selectspell 150\n#effect 1\n#damage -1005\n#end\n#selectmonster 50\n#summon1 -1005\n#end",
        )["ModB"]
        assert "-- MOD MERGER: Summoning => Remapped Montag 1005 -> 1000" in lines
        assert "#damage -1000" in lines
        assert "-- MOD MERGER: Remapped Montag 1005 -> 1000" in lines
        assert "#summon1 -1000" in lines

    def test_enchantment_damage(self):
        lines = merged_body(
            ModA="#selectspell 150\n#effect 10081\n#damage 300\n#end",
            ModB="#selectspell 151\n#effect 10081\n#damage 300\n#end",
        )["ModB"]
        assert "-- MOD MERGER: Enchantment => Remapped Enchantment 300 -> 7750" in lines
        assert "#damage 7750" in lines

    def test_damagemon_follows_monster_remap(self):
        lines = merged_body(
            ModA="#newmonster 5000\n#end",
            ModB="#newmonster 5000\n#end\n#newspell\n#effect 10001\n#damagemon 5000\n#end",
        )["ModB"]
        assert "-- MOD MERGER: Summoning => Remapped Monster 5000 -> 13500" in lines
        assert "#damagemon 13500" in lines
        assert "#damagemon 5000" not in lines


class TestRewriteAll:
    """Merged body with per-mod markers."""

    def test_markers_and_end(self, sample_sources):
        sources = {s.name: s.text for s in sample_sources}
        definitions, result = parse_and_allocate(**sources)
        lines = ContentRewriter().rewrite_all(
            (sources[name], definitions[name], result.mapping_for(name))
            for name in ("ModA", "ModB")
        )
        assert lines.index("-- Begin content from mod: ModA") < lines.index("-- End content from mod: ModA")
        assert lines.index("-- End content from mod: ModA") < lines.index("-- Begin content from mod: ModB")
        assert lines[-1] == END_MARKER
        assert definitions["ModA"].entity_types() == []
