"""
Stat-line field extractors for monster stat blocks (2024 layout).

Every extractor takes one line (or the whole block text where noted) and
returns a value or None / an empty list. A miss is never an error; the
caller keeps its default.
"""

import re
from typing import Optional

from compendium.dice import normalize_minus, parse_signed


_SIGNED = r'[+\-−]?\d+'


# ── Abilities ───────────────────────────────────────────────────────

ABILITIES = [
    ("Str", "strength"),
    ("Dex", "dexterity"),
    ("Con", "constitution"),
    ("Int", "intelligence"),
    ("Wis", "wisdom"),
    ("Cha", "charisma"),
]

_ABILITY_TRIPLE = {
    abbrev: re.compile(rf'\b{abbrev}\s+(\d+)\s+({_SIGNED})\s+({_SIGNED})', re.IGNORECASE)
    for abbrev, _ in ABILITIES
}

_ABILITY_LINE_RE = re.compile(r'^(Str|Dex|Con|Int|Wis|Cha)\s+\d+', re.IGNORECASE)


def default_abilities() -> dict:
    return {name: {"score": 10, "modifier": 0, "save": 0} for _, name in ABILITIES}


def looks_like_ability_line(text: str) -> bool:
    """True for 'Str 18 +4 +4'-style text that must never be taken as a name."""
    return bool(_ABILITY_LINE_RE.match(text.strip()))


def find_ability_lines(lines: list[str]) -> tuple[Optional[str], Optional[str]]:
    """Return the (STR/DEX/CON, INT/WIS/CHA) lines, if present."""
    physical = mental = None
    for line in lines:
        if physical is None and all(_ABILITY_TRIPLE[a].search(line) for a in ("Str", "Dex", "Con")):
            physical = line
        if mental is None and all(_ABILITY_TRIPLE[a].search(line) for a in ("Int", "Wis", "Cha")):
            mental = line
    return physical, mental


def parse_ability_scores(physical: Optional[str], mental: Optional[str]) -> dict:
    """Scan both ability lines for '<Abbrev> <score> <mod> <save>' triples.

    Abilities that cannot be read keep the 10/0/0 default.
    """
    abilities = default_abilities()
    for line, abbrevs in ((physical, ("Str", "Dex", "Con")), (mental, ("Int", "Wis", "Cha"))):
        if not line:
            continue
        for abbrev in abbrevs:
            m = _ABILITY_TRIPLE[abbrev].search(line)
            if not m:
                continue
            name = dict(ABILITIES)[abbrev]
            abilities[name] = {
                "score": int(m.group(1)),
                "modifier": parse_signed(m.group(2)),
                "save": parse_signed(m.group(3)),
            }
    return abilities


# ── AC / HP / Initiative ────────────────────────────────────────────

def find_defense_line(lines: list[str]) -> Optional[str]:
    for line in lines:
        if "AC" in line and "HP" in line:
            return line
    return None


def parse_armor_class(text: str) -> Optional[int]:
    m = re.search(r'\bAC\s+(\d+)', text)
    return int(m.group(1)) if m else None


def parse_hit_points(text: str) -> Optional[dict]:
    """'HP 135 (18d10+36)' → {average: 135, formula: '18d10+36'}"""
    m = re.search(r'\bHP\s+(\d+)\s*\(([^)]+)\)', text)
    if not m:
        return None
    return {"average": int(m.group(1)), "formula": normalize_minus(m.group(2).strip())}


def parse_initiative(text: str) -> Optional[dict]:
    """'Initiative +5 (15)' → {modifier: 5, total: 15}"""
    m = re.search(rf'Initiative\s*({_SIGNED})\s*\((\d+)\)', text)
    if not m:
        return None
    return {"modifier": parse_signed(m.group(1)), "total": int(m.group(2))}


# ── Speed ───────────────────────────────────────────────────────────

# Emitted in this order regardless of the order in the source line.
_SPEED_RULES = [
    ("walk", re.compile(r'\bSpeed\s+(\d+)\s*ft', re.IGNORECASE), "{} ft."),
    ("swim", re.compile(r'\bSwim\s+(\d+)\s*ft', re.IGNORECASE), "swim {} ft."),
    ("fly", re.compile(r'\bFly\s+(\d+)\s*ft', re.IGNORECASE), "fly {} ft."),
    ("burrow", re.compile(r'\bBurrow\s+(\d+)\s*ft', re.IGNORECASE), "burrow {} ft."),
    ("climb", re.compile(r'\bClimb\s+(\d+)\s*ft', re.IGNORECASE), "climb {} ft."),
]


def parse_speed(text: str) -> list[str]:
    speeds = []
    for mode, pattern, template in _SPEED_RULES:
        m = pattern.search(text)
        if not m:
            continue
        entry = template.format(m.group(1))
        if mode == "fly" and "hover" in text.lower():
            entry += " (hover)"
        speeds.append(entry)
    return speeds


# ── Challenge rating ────────────────────────────────────────────────

_CR_RE = re.compile(
    r'\bCR\s+([\d/]+)\s*\(XP\s+([\d,]+)(?:,\s*or\s+[\d,]+\s+in\s+lair)?;\s*PB\s*([+\-−]\d+)\)',
    re.IGNORECASE,
)


def parse_challenge_rating(text: str) -> Optional[dict]:
    """'CR 1/4 (XP 50; PB +2)' → {rating: '1/4', experiencePoints: 50, proficiencyBonus: 2}"""
    m = _CR_RE.search(text)
    if not m:
        return None
    return {
        "rating": m.group(1),
        "experiencePoints": int(m.group(2).replace(",", "")),
        "proficiencyBonus": parse_signed(m.group(3)),
    }


# ── Senses ──────────────────────────────────────────────────────────

_SENSE_RULES = [
    (re.compile(r'\bDarkvision\s+(\d+)\s*ft', re.IGNORECASE), "Darkvision {} ft."),
    (re.compile(r'\bBlindsight\s+(\d+)\s*ft', re.IGNORECASE), "Blindsight {} ft."),
    (re.compile(r'\bTruesight\s+(\d+)\s*ft', re.IGNORECASE), "Truesight {} ft."),
    (re.compile(r'\bTremorsense\s+(\d+)\s*ft', re.IGNORECASE), "Tremorsense {} ft."),
    (re.compile(r'\bPassive\s+Perception\s+(\d+)', re.IGNORECASE), "Passive Perception {}"),
]


def parse_senses(text: str) -> list[str]:
    senses = []
    for pattern, template in _SENSE_RULES:
        m = pattern.search(text)
        if m:
            senses.append(template.format(m.group(1)))
    return senses


# ── Skills ──────────────────────────────────────────────────────────

_SKILLS_STOP = re.compile(r'Senses|Resistances|Immunities|Vulnerabilities|Gear')
_SKILL_TOKEN = re.compile(r'([A-Za-z\s]+?)\s*([+\-−]\d+)')


def parse_skills(block_text: str) -> list[str]:
    """Scan the whole block for 'Skills History +12, Perception +10'."""
    if "Skills" not in block_text:
        return []
    section = block_text.split("Skills", 1)[1]
    section = _SKILLS_STOP.split(section, maxsplit=1)[0]
    skills = []
    for m in _SKILL_TOKEN.finditer(section):
        name = " ".join(m.group(1).split())
        if name:
            skills.append(f"{name} {normalize_minus(m.group(2))}")
    return skills


# ── Languages ───────────────────────────────────────────────────────

_LANGUAGES_RE = re.compile(r'Languages\s+([^;]+?)(?:\s+CR\s|\s*;|$)')
_TELEPATHY_RE = re.compile(r'telepathy\s+(\d+)\s*ft', re.IGNORECASE)


def parse_languages(text: str) -> list[str]:
    """Languages plus a synthesized 'telepathy N ft.' entry.

    The telepathy entry is added even when no spoken language is listed.
    """
    if "Languages" not in text:
        return []
    languages = []
    m = _LANGUAGES_RE.search(text)
    if m:
        for part in m.group(1).split(","):
            part = part.strip()
            if part and part != "None":
                languages.append(part)
    m = _TELEPATHY_RE.search(text)
    if m:
        languages.append(f"telepathy {m.group(1)} ft.")
    return languages


# ── Resistances / Immunities / Vulnerabilities / Gear ───────────────

CONDITION_NAMES = {
    "blinded", "charmed", "deafened", "exhaustion", "frightened",
    "grappled", "incapacitated", "invisible", "paralyzed", "petrified",
    "poisoned", "prone", "restrained", "stunned", "unconscious",
}

_CLAUSE_KEYWORDS = r'(?:Skills|Senses|Resistances|Immunities|Vulnerabilities|Gear|Languages|CR)'


def _clause(text: str, keyword: str) -> Optional[str]:
    m = re.search(rf'\b{keyword}\s+(.+?)(?=\s+{_CLAUSE_KEYWORDS}\s|$)', text)
    return m.group(1).strip() if m else None


def _split_list(text: str) -> list[str]:
    return [
        part.strip() for part in re.split(r'[;,]', text)
        if part.strip() and part.strip().lower() not in ("none", "—", "-")
    ]


def parse_defenses(lines: list[str]) -> dict:
    """Collect damage vulnerabilities/resistances/immunities, condition
    immunities and gear from whichever lines carry them.

    'Immunities Fire, Poison; Charmed, Poisoned' mixes damage types and
    conditions; entries are classified by known condition names.
    """
    result = {
        "damageVulnerabilities": [],
        "damageResistances": [],
        "damageImmunities": [],
        "conditionImmunities": [],
        "gear": [],
    }
    for line in lines:
        clause = _clause(line, "Vulnerabilities")
        if clause:
            result["damageVulnerabilities"].extend(_split_list(clause))
        clause = _clause(line, "Resistances")
        if clause:
            result["damageResistances"].extend(_split_list(clause))
        clause = _clause(line, "Immunities")
        if clause:
            for part in _split_list(clause):
                if part.lower() in CONDITION_NAMES:
                    result["conditionImmunities"].append(part)
                else:
                    result["damageImmunities"].append(part)
        clause = _clause(line, "Gear")
        if clause:
            # Gear items may carry commas inside parentheses: 'Dagger (2), Shield'
            result["gear"].extend(
                part.strip() for part in re.split(r',\s*(?![^()]*\))', clause) if part.strip()
            )
    return result
