"""
Trait / action section parsing for monster stat blocks.

A block's free-text tail is cut into sections by header lines
("Traits", "Actions", "Bonus Actions", "Reactions", "Legendary Actions").
Each section is cut into features ("Name. Description...") and every
feature gets the same derivation pass: attack roll, saving throw, damage,
healing, conditions, recharge, uses per day and, for spellcasting traits,
the embedded spell lists.
"""

import re
from typing import Optional

from compendium.dice import normalize_minus, parse_signed
from compendium.fields import looks_like_ability_line


# ── Section splitting ───────────────────────────────────────────────

SECTION_KEYWORDS = ["Traits", "Actions", "Bonus Actions", "Reactions", "Legendary Actions"]

# Longest first so "Bonus Actions" is not read as "Actions"
_HEADER_RE = re.compile(
    r'^(Legendary Actions|Bonus Actions|Reactions|Actions|Traits)(?:\s*$|\s+(?=[A-Z])(.*)$)'
)


def match_section_header(line: str) -> Optional[tuple[str, Optional[str]]]:
    """Return (keyword, inline remainder) if *line* opens a section."""
    m = _HEADER_RE.match(line.strip())
    if not m:
        return None
    rest = m.group(2).strip() if m.group(2) else None
    return m.group(1), rest


def split_sections(block_text: str) -> dict[str, list[str]]:
    """Find every section header, then slice the lines between consecutive
    headers. The first occurrence of a keyword wins.
    """
    lines = [l.strip() for l in block_text.splitlines()]
    boundaries: list[tuple[int, str, Optional[str]]] = []
    for i, line in enumerate(lines):
        header = match_section_header(line)
        if header:
            boundaries.append((i, header[0], header[1]))

    sections: dict[str, list[str]] = {}
    for n, (start, keyword, inline) in enumerate(boundaries):
        end = boundaries[n + 1][0] if n + 1 < len(boundaries) else len(lines)
        if keyword in sections:
            continue
        body = [inline] if inline else []
        body.extend(l for l in lines[start + 1:end] if l)
        sections[keyword] = body
    return sections


# ── Feature segmentation ────────────────────────────────────────────

# "Fire Breath (Recharge 5–6). Dexterity Saving Throw: ..."
_FEATURE_START_RE = re.compile(
    r"^([A-Z][A-Za-z\s()/,\d'’–-]{0,59}?)\.(?:\s+(.*))?$"
)


def match_feature_start(line: str) -> Optional[tuple[str, str]]:
    """Return (name, description) when *line* opens a new feature."""
    m = _FEATURE_START_RE.match(line)
    if not m:
        return None
    return m.group(1).strip(), (m.group(2) or "").strip()


def segment_features(lines: list[str]) -> list[dict]:
    """Group lines into features and derive structured data for each.

    Lines that do not open a feature continue the current description.
    Lines before the first feature are ignored.
    """
    features = []
    current: Optional[dict] = None

    for line in lines:
        line = line.strip()
        if not line:
            continue

        start = match_feature_start(line)
        if start:
            name, description = start
            if looks_like_ability_line(name) or len(name) < 2:
                continue
            if current is not None:
                features.append(derive_feature(current["name"], current["description"]))
            current = {"name": name, "description": description}
        elif current is not None:
            if current["description"]:
                current["description"] += " " + line
            else:
                current["description"] = line

    if current is not None:
        features.append(derive_feature(current["name"], current["description"]))

    return features


# ── Derivation ──────────────────────────────────────────────────────

_ATTACK_RE = re.compile(r'(Melee|Ranged)\s+Attack\s+Roll:\s*([+\-−]\d+)')
_SAVE_RE = re.compile(r'([A-Za-z]+)\s+Saving\s+Throw:\s*DC\s*(\d+)')
_DAMAGE_RE = re.compile(r'(\d+)\s*\(([^)]+)\)\s*([A-Za-z]+)\s*damage')
_HEALING_RE = re.compile(r'regains?\s+(\d+)\s*\(([^)]+)\)\s*Hit\s+Points', re.IGNORECASE)
_GRAPPLED_RE = re.compile(r'Grappled\s+condition\s*\(escape\s+DC\s+(\d+)\)', re.IGNORECASE)
_DC_CONDITION_RE = re.compile(
    r'([A-Za-z]+)\s+condition[^(]*\([^)]*DC\s+(\d+)[^)]*\)', re.IGNORECASE
)
_RECHARGE_RE = re.compile(r'\(Recharge\s+(\d+(?:\s*[-–]\s*\d+)?)\)')
_PER_DAY_RE = re.compile(r'\((\d+)/Day\)', re.IGNORECASE)

SIMPLE_CONDITIONS = [
    "Poisoned", "Charmed", "Frightened", "Prone", "Blinded",
    "Restrained", "Stunned", "Paralyzed", "Petrified",
]


def empty_feature(name: str, description: str) -> dict:
    return {
        "name": name,
        "description": description,
        "type": "special",
        "attackRoll": None,
        "savingThrow": None,
        "damage": [],
        "healing": None,
        "conditions": [],
        "recharge": None,
        "usesPerDay": None,
        "spells": None,
        "spellcasting": None,
    }


def _add_condition(conditions: list[dict], name: str, dc: Optional[int] = None) -> None:
    # First match by name wins
    if any(c["name"].lower() == name.lower() for c in conditions):
        return
    entry = {"name": name}
    if dc is not None:
        entry["dc"] = dc
    conditions.append(entry)


def parse_conditions(description: str) -> list[dict]:
    conditions: list[dict] = []

    m = _GRAPPLED_RE.search(description)
    if m:
        _add_condition(conditions, "Grappled", int(m.group(1)))

    for m in _DC_CONDITION_RE.finditer(description):
        _add_condition(conditions, m.group(1), int(m.group(2)))

    for name in SIMPLE_CONDITIONS:
        if re.search(rf'\b{name}\s+condition\b', description, re.IGNORECASE):
            _add_condition(conditions, name)

    return conditions


def parse_damage(description: str) -> list[dict]:
    """Every '<avg> (<formula>) <Type> damage' occurrence, in order."""
    return [
        {
            "average": int(m.group(1)),
            "formula": normalize_minus(m.group(2).strip()),
            "type": m.group(3),
        }
        for m in _DAMAGE_RE.finditer(description)
    ]


def derive_feature(name: str, description: str) -> dict:
    """Build a fully-shaped feature record from its name and prose."""
    result = empty_feature(name, description)

    if name == "Multiattack":
        result["type"] = "multiattack"

    m = _ATTACK_RE.search(description)
    if m:
        kind = m.group(1).lower()
        result["attackRoll"] = {"type": kind, "bonus": parse_signed(m.group(2))}
        result["type"] = kind

    m = _SAVE_RE.search(description)
    if m:
        result["savingThrow"] = {"ability": m.group(1), "dc": int(m.group(2))}

    result["damage"] = parse_damage(description)

    m = _HEALING_RE.search(description)
    if m:
        result["healing"] = {"average": int(m.group(1)), "formula": m.group(2).strip()}

    result["conditions"] = parse_conditions(description)

    # The name usually carries "(Recharge 5–6)" or "(3/Day)"
    tagged = f"{name} {description}"
    m = _RECHARGE_RE.search(tagged)
    if m:
        result["recharge"] = re.sub(r'\s*[-–]\s*', "-", m.group(1))
    m = _PER_DAY_RE.search(tagged)
    if m:
        result["usesPerDay"] = int(m.group(1))

    if "spellcasting" in name.lower():
        result["spells"] = parse_spell_levels(description)
        result["spellcasting"] = parse_spellcasting(description)

    return result


# ── Spellcasting ────────────────────────────────────────────────────

_SPELL_LEVEL_HEADER = r'(?:Cantrips?\s*\([^)]+\)|\d+(?:st|nd|rd|th)\s+level\s*\([^)]+\))'
_SPELL_LEVEL_RE = re.compile(
    rf'({_SPELL_LEVEL_HEADER}):\s*(.+?)(?=\s+{_SPELL_LEVEL_HEADER}:|\.|$)',
    re.IGNORECASE,
)
_AT_WILL_RE = re.compile(r'At\s+Will:\s*(.+?)(?=\s+\d+/Day|$)', re.IGNORECASE)
_PER_DAY_LIST_RE = re.compile(
    r'(\d+)/Day(?:\s+Each)?:\s*(.+?)(?=\s+\d+/Day|$)', re.IGNORECASE
)
_SUMMARY_END_RE = re.compile(r'\s+(?:At\s+Will|\d+/Day(?:\s+Each)?):', re.IGNORECASE)


def split_spell_list(text: str) -> list[str]:
    """Split a comma-separated spell list, preserving parenthetical notes.

    Commas inside parentheses are not treated as delimiters, so entries like
    'Fireball (level 3 version)' remain intact as a single item.
    """
    spells: list[str] = []
    current: list[str] = []
    depth = 0

    for ch in text:
        if ch == '(':
            depth += 1
            current.append(ch)
        elif ch == ')':
            depth = max(0, depth - 1)
            current.append(ch)
        elif ch == ',' and depth == 0:
            part = ''.join(current).strip().rstrip('.')
            if part:
                spells.append(part)
            current = []
        else:
            current.append(ch)

    part = ''.join(current).strip().rstrip('.')
    if part:
        spells.append(part)

    return spells


def parse_spell_levels(description: str) -> list[dict]:
    """'Cantrips (at will): Light, Mage Hand. 1st level (4 slots): Shield'
    → [{level: 'Cantrips (at will)', spells: [...]}, ...]
    """
    return [
        {"level": m.group(1).strip(), "spells": split_spell_list(m.group(2))}
        for m in _SPELL_LEVEL_RE.finditer(description)
    ]


def parse_spellcasting(description: str) -> dict:
    """Summarize a spellcasting trait into {description, atWill, perDay}.

    When several per-day clauses exist, the first one in the text is used.
    """
    m = _SUMMARY_END_RE.search(description)
    summary = description[:m.start()].strip() if m else description.strip()
    result: dict = {"description": summary, "atWill": None, "perDay": None}

    m = _AT_WILL_RE.search(description)
    if m:
        result["atWill"] = split_spell_list(m.group(1))

    m = _PER_DAY_LIST_RE.search(description)
    if m:
        result["perDay"] = {"uses": int(m.group(1)), "spells": split_spell_list(m.group(2))}

    return result


# ── Legendary actions ───────────────────────────────────────────────

_USAGE_RE = re.compile(
    r'Legendary\s+Action\s+Uses:\s*(\d+)(?:\s*\((\d+)\s+in\s+Lair\))?\.\s*(.*)$',
    re.IGNORECASE,
)
_LOOSE_USES_RE = re.compile(r'(\d+)(?:\s*\((\d+)\s+in\s+Lair\))?', re.IGNORECASE)


def parse_legendary_actions(lines: list[str]) -> Optional[dict]:
    """Parse the usage clause and the legendary action entries.

    'Legendary Action Uses: 3 (4 in Lair). Immediately after ...' gives
    uses/usesInLair; the clause runs until the first line that opens a
    feature. Without that clause the first line is kept verbatim as the
    usage description and the first number in it is taken as uses.
    """
    lines = [l.strip() for l in lines if l.strip()]
    if not lines:
        return None

    usage_end = 1
    while usage_end < len(lines) and match_feature_start(lines[usage_end]) is None:
        usage_end += 1
    usage_text = " ".join(lines[:usage_end])

    result: dict = {"uses": None, "usesInLair": None, "usageDescription": None, "actions": []}

    m = _USAGE_RE.search(usage_text)
    if m:
        result["uses"] = int(m.group(1))
        lair = ""
        if m.group(2):
            result["usesInLair"] = int(m.group(2))
            lair = f" ({m.group(2)} in Lair)"
        result["usageDescription"] = (
            f"Legendary Action Uses: {m.group(1)}{lair}. {m.group(3).strip()}".strip()
        )
    else:
        result["usageDescription"] = lines[0]
        m = _LOOSE_USES_RE.search(lines[0])
        if m:
            result["uses"] = int(m.group(1))
            if m.group(2):
                result["usesInLair"] = int(m.group(2))

    result["actions"] = segment_features(lines[usage_end:])

    if not result["usageDescription"] and not result["actions"]:
        return None
    return result
