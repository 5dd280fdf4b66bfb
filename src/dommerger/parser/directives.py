"""
Directive Vocabulary

Declarative table of every id-bearing directive, grouped by entity type and
role. The classifier, parser and rewriter all read this one table; adding a
directive means adding a word here.

Roles:
    NEW     - creates content (#newmonster 5000, or #newmonster with no id)
    SELECT  - opens existing content for editing (#selectmonster 50)
    USAGE   - refers to content by id (#copystats 50, #summon1 5000)

Usage:
    refs = lookup("copyspr")
    for ref in refs:
        print(ref.entity_type, ref.rule.role)
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from dommerger.domain.entity_types import EntityType


class Role(Enum):
    """What a directive does to the entity it names."""
    NEW = auto()
    SELECT = auto()
    USAGE = auto()

    @property
    def is_definition(self) -> bool:
        return self is not Role.USAGE


@dataclass(frozen=True)
class DirectiveRule:
    """One group of directives sharing a type, role and argument convention."""

    role: Role

    # Directive words without the leading '#'
    directives: Tuple[str, ...]

    # Opens a block closed by #end
    opens_block: bool = False

    # A negative argument names an id of this type by absolute value
    negative_type: Optional[EntityType] = None

    # Plain non-negative arguments are accepted
    accepts_positive: bool = True

    # How an id-less NEW line is written once an id is assigned:
    # None keeps the directive and appends the id, otherwise the line
    # becomes "#<implicit_select> <id>"
    implicit_select: Optional[str] = None


@dataclass(frozen=True)
class DirectiveRef:
    """A directive word resolved to its type and rule."""
    entity_type: EntityType
    rule: DirectiveRule

    @property
    def role(self) -> Role:
        return self.rule.role

    def resolve(self, value: int) -> Optional[Tuple[EntityType, int]]:
        """
        Interpret a numeric argument.

        Returns the (type, id) it denotes, or None if this directive does not
        take an argument of that sign.
        """
        if value < 0:
            if self.rule.negative_type is None:
                return None
            return self.rule.negative_type, -value
        if not self.rule.accepts_positive:
            return None
        return self.entity_type, value


# =============================================================================
# Table
# =============================================================================

_MONSTER_USAGE = (
    "copyspr", "monpresentrec", "ownsmonrec", "raiseshape", "shapechange",
    "prophetshape", "firstshape", "secondshape", "secondtmpshape", "forestshape",
    "plainshape", "foreignshape", "homeshape", "springshape", "summershape",
    "autumnshape", "wintershape", "landshape", "watershape", "twiceborn",
    "domsummon", "domsummon2", "domsummon20", "raredomsummon", "templetrainer",
    "makemonsters1", "makemonsters2", "makemonsters3", "makemonsters4", "makemonsters5",
    "summon1", "summon2", "summon3", "summon4", "summon5",
    "battlesum1", "battlesum2", "battlesum3", "battlesum4", "battlesum5",
    "batstartsum1", "batstartsum2", "batstartsum3", "batstartsum4", "batstartsum5",
    "batstartsum1d3", "batstartsum1d6", "batstartsum2d6", "batstartsum3d6",
    "batstartsum4d6", "batstartsum5d6", "batstartsum6d6", "batstartsum7d6",
    "batstartsum8d6", "batstartsum9d6",
    "farsumcom", "onlymnr", "homemon", "homecom", "mon", "com", "summon",
    "summonlvl2", "summonlvl3", "summonlvl4", "startcom", "coastcom1", "coastcom2",
    "addforeignunit", "addforeigncom", "forestrec", "mountainrec", "swamprec",
    "wasterec", "caverec", "startscout", "forestcom", "mountaincom", "swampcom",
    "wastecom", "cavecom", "startunittype1", "startunittype2", "addrecunit",
    "addreccom", "uwrec", "uwcom", "coastunit1", "coastunit2", "coastunit3",
    "landrec", "landcom",
    "hero1", "hero2", "hero3", "hero4", "hero5", "hero6", "hero7", "hero8", "hero9", "hero10",
    "multihero1", "multihero2", "multihero3", "multihero4", "multihero5",
    "multihero6", "multihero7",
    "defcom1", "defcom2", "defunit1", "defunit1b", "defunit1c", "defunit1d",
    "defunit2", "defunit2b", "addgod", "delgod", "cheapgod20", "cheapgod40",
    "guardspirit", "transform", "fireboost", "airboost", "waterboost", "earthboost",
    "astralboost", "deathboost", "natureboost", "bloodboost", "holyboost",
    "req_monster", "req_2monsters", "req_5monsters", "req_nomonster", "req_mnr",
    "req_nomnr", "req_deadmnr", "req_targmnr", "req_targnomnr", "assassin",
    "stealthcom", "2com", "4com", "5com", "1unit", "1d3units", "2d3units",
    "3d3units", "4d3units", "1d6units", "2d6units", "3d6units", "4d6units",
    "5d6units", "6d7units", "7d6units", "8d6units", "9d6units", "10d6units",
    "11d6units", "12d6units", "13d6units", "14d6units", "15d6units", "16d6units",
    "killmon", "kill2d6mon", "killcom", "copystats", "xpshapemon", "coridermnr",
    "mountmnr", "lich", "battleshape", "worldshape", "animated", "domshape",
    "notdomshape", "slaver", "natmon", "natcom", "wallcom", "wallunit",
    "uwwallunit", "uwwallcom", "defcom", "defunit", "farmrec", "driprec",
    "coastrec", "searec", "deeprec", "kelprec", "forestfortrec", "mountainfortrec",
    "swampfortrec", "wastefortrec", "farmfortrec", "cavefortrec", "dripfortrec",
    "coastfortrec", "seafortrec", "deepfortrec", "kelpfortrec", "farmcom",
    "dripcom", "coastcom", "seacom", "deepcom", "kelpcom", "forestfortcom",
    "mountainfortcom", "swampfortcom", "wastefortcom", "farmfortcom",
    "cavefortcom", "dripfortcom", "coastfortcom", "seafortcom", "deepfortcom",
    "kelpfortcom", "req_godismnr", "req_godisnotmnr", "guardcom", "guardunit",
    "notmnr", "uwdefcom1", "uwdefcom2", "uwdefunit1", "uwdefunit1b", "uwdefunit1c",
    "uwdefunit1d", "uwdefunit2", "uwdefunit2b",
)

DIRECTIVE_TABLE: Dict[EntityType, List[DirectiveRule]] = {
    EntityType.WEAPON: [
        DirectiveRule(Role.NEW, ("newweapon",), opens_block=True),
        DirectiveRule(Role.SELECT, ("selectweapon",), opens_block=True),
        DirectiveRule(Role.USAGE, ("weapon", "copyweapon", "secondaryeffect", "secondaryeffectalways")),
    ],
    EntityType.ARMOR: [
        DirectiveRule(Role.NEW, ("newarmor",), opens_block=True),
        DirectiveRule(Role.SELECT, ("selectarmor",), opens_block=True),
        DirectiveRule(Role.USAGE, ("armor", "copyarmor")),
    ],
    EntityType.MONSTER: [
        DirectiveRule(Role.NEW, ("newmonster",), opens_block=True),
        DirectiveRule(Role.SELECT, ("selectmonster",), opens_block=True),
        DirectiveRule(Role.USAGE, _MONSTER_USAGE, negative_type=EntityType.MONTAG),
    ],
    EntityType.SPELL: [
        DirectiveRule(Role.NEW, ("newspell",), opens_block=True, implicit_select="selectspell"),
        DirectiveRule(Role.SELECT, ("selectspell",), opens_block=True),
        DirectiveRule(Role.USAGE, ("copyspell", "nextspell")),
    ],
    EntityType.ITEM: [
        DirectiveRule(Role.NEW, ("newitem",), opens_block=True, implicit_select="selectitem"),
        DirectiveRule(Role.SELECT, ("selectitem",), opens_block=True),
        DirectiveRule(Role.USAGE, (
            "startitem", "copyitem", "copyspr", "req_targitem", "req_targnoitem",
            "req_worlditem", "req_noworlditem",
        )),
    ],
    EntityType.SITE: [
        DirectiveRule(Role.NEW, ("newsite",), opens_block=True),
        DirectiveRule(Role.SELECT, ("selectsite",), opens_block=True),
        DirectiveRule(Role.USAGE, (
            "godsite", "req_nositenbr", "startsite", "addsite", "removesite",
            "hiddensite", "futuresite", "islandsite", "onlyatsite", "onlysitedst",
        )),
    ],
    EntityType.NATION: [
        DirectiveRule(Role.NEW, ("newnation",), opens_block=True, implicit_select="selectnation"),
        DirectiveRule(Role.SELECT, ("selectnation",), opens_block=True),
        DirectiveRule(Role.USAGE, (
            "nation", "restricted", "notfornation", "nationrebate", "req_nation",
            "req_nonation", "req_fornation", "req_notfornation", "req_notnation",
            "req_notforally", "req_fullowner", "req_domowner", "req_targowner",
            "assowner", "extramsg", "nat", "req_targnotowner",
        )),
    ],
    EntityType.NAME_TYPE: [
        DirectiveRule(Role.SELECT, ("selectnametype",), opens_block=True),
        DirectiveRule(Role.USAGE, ("nametype",)),
    ],
    EntityType.ENCHANTMENT: [
        DirectiveRule(Role.USAGE, (
            "enchrebate50", "enchrebate20", "enchrebate10", "req_noench", "req_ench",
            "req_myench", "req_friendlyench", "req_hostileench", "req_enchdom",
            "nationench", "enchrebate25p", "enchrebate50p",
        )),
    ],
    EntityType.EVENT_CODE: [
        DirectiveRule(
            Role.SELECT, ("code", "code2"),
            negative_type=EntityType.EVENT_CODE, accepts_positive=False,
        ),
        DirectiveRule(
            Role.USAGE, (
                "resetcode", "req_code", "req_anycode", "req_notanycode",
                "req_nearbycode", "req_nearowncode", "codedelay", "codedelay2",
                "resetcodedelay", "resetcodedelay2",
            ),
            negative_type=EntityType.EVENT_CODE, accepts_positive=False,
        ),
    ],
    EntityType.POP_TYPE: [
        DirectiveRule(Role.SELECT, ("poptype",)),
    ],
    EntityType.MONTAG: [
        DirectiveRule(Role.SELECT, ("montag",)),
    ],
    EntityType.RESTRICTED_ITEM: [
        DirectiveRule(Role.SELECT, ("restricteditem",)),
        DirectiveRule(Role.USAGE, ("userestricteditem",)),
    ],
}


def _build_index() -> Dict[str, List[DirectiveRef]]:
    index: Dict[str, List[DirectiveRef]] = {}
    for entity_type, rules in DIRECTIVE_TABLE.items():
        for rule in rules:
            for word in rule.directives:
                index.setdefault(word, []).append(DirectiveRef(entity_type, rule))
    return index


_INDEX = _build_index()


def lookup(directive: str) -> List[DirectiveRef]:
    """All (type, rule) pairs a directive word belongs to, in table order."""
    return _INDEX.get(directive.lower(), [])


def block_start_ref(directive: str) -> Optional[DirectiveRef]:
    """The rule for a directive that opens an entity block, if it is one."""
    for ref in lookup(directive):
        if ref.rule.opens_block:
            return ref
    return None


def pick_ref(refs: List[DirectiveRef], active_type: Optional[EntityType]) -> Optional[DirectiveRef]:
    """
    Choose between the types a shared directive belongs to.

    #copyspr names a monster inside a monster block and an item inside an
    item block; the active block decides, otherwise the first table entry.
    """
    if not refs:
        return None
    if active_type is not None:
        for ref in refs:
            if ref.entity_type is active_type:
                return ref
    return refs[0]
