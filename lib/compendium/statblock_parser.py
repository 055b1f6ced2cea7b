"""
Monster stat block parser (2024 layout).

Turns one raw entity block into a fully-shaped monster dict, and runs the
whole monster corpus through the segmenter with a per-entity error
boundary.

Block layout:

    Adult Red Dragon Huge Dragon (Chromatic), Chaotic Evil
    AC 19 HP 256 (19d12+133) Initiative +12 (22) Speed 40 ft., Climb 40 ft., Fly 80 ft.
    Str 27 +8 +8 Dex 10 +0 +6 Con 25 +7 +7
    Int 16 +3 +3 Wis 13 +1 +7 Cha 23 +6 +6
    Skills Perception +13, Stealth +6
    ...
    Traits
    Legendary Resistance (3/Day, or 4/Day in Lair). ...
    Actions
    ...
"""

import logging
import re
from typing import Optional

from compendium import features, fields
from compendium.segmenter import RawEntityBlock, segment
from compendium.writer import ExtractionReport

logger = logging.getLogger(__name__)


# ── Header ──────────────────────────────────────────────────────────

_SIZES = r'(?:Tiny|Small|Medium|Large|Huge|Gargantuan)'

_HEADER_RE = re.compile(
    rf'^(.+?)\s+({_SIZES}(?:\s+or\s+{_SIZES})?)\s+'
    r'([A-Za-z][A-Za-z ]*?)\s*(?:\(([^)]+)\))?,\s*(.+)$'
)


def _looks_like_stat_text(name: str) -> bool:
    return (
        fields.looks_like_ability_line(name)
        or "Attack Roll" in name
        or "damage" in name
        or "+" in name
        or name[:1].isdigit()
        or len(name) < 3
    )


def parse_header(line: str) -> Optional[dict]:
    """'Goblin Warrior Small Fey (Goblinoid), Chaotic Neutral' →
    {name, size, type, subtype, alignment}.

    Returns None when the line is not a header or the name part looks like
    a stat line that slipped into the first position of a block.
    """
    m = _HEADER_RE.match(line.strip())
    if not m:
        return None
    name = m.group(1).strip()
    if _looks_like_stat_text(name):
        return None
    return {
        "name": name,
        "size": m.group(2),
        "type": m.group(3).strip(),
        "subtype": m.group(4).strip() if m.group(4) else None,
        "alignment": m.group(5).strip(),
    }


# ── Record ──────────────────────────────────────────────────────────

def empty_monster(header: dict, category: str = "") -> dict:
    return {
        "name": header["name"],
        "size": header["size"],
        "type": header["type"],
        "subtype": header["subtype"],
        "alignment": header["alignment"],
        "category": category,
        "armorClass": 10,
        "hitPoints": {"average": 1, "formula": "1d4"},
        "initiative": None,
        "speed": [],
        "challengeRating": {"rating": "0", "experiencePoints": 0, "proficiencyBonus": 2},
        "abilityScores": fields.default_abilities(),
        "skills": [],
        "senses": [],
        "languages": [],
        "damageVulnerabilities": [],
        "damageResistances": [],
        "damageImmunities": [],
        "conditionImmunities": [],
        "gear": [],
        "traits": [],
        "actions": [],
        "bonusActions": [],
        "reactions": [],
        "legendaryActions": None,
    }


def _first_line_with(lines: list[str], word: str) -> Optional[str]:
    for line in lines:
        if word in line:
            return line
    return None


def _stat_lines(lines: list[str]) -> list[str]:
    """Lines between the header and the first section header."""
    for i, line in enumerate(lines):
        if features.match_section_header(line):
            return lines[1:i]
    return lines[1:]


def parse_monster_block(text: str, category: str = "") -> Optional[dict]:
    """Parse one block's text. Returns None if the first line is not a header."""
    lines = [l.strip() for l in text.splitlines() if l.strip()]
    if not lines:
        return None

    header = parse_header(lines[0])
    if header is None:
        return None

    monster = empty_monster(header, category)
    stats = _stat_lines(lines)

    defense = fields.find_defense_line(stats)
    if defense:
        armor_class = fields.parse_armor_class(defense)
        if armor_class is not None:
            monster["armorClass"] = armor_class
        monster["initiative"] = fields.parse_initiative(defense)
        hit_points = fields.parse_hit_points(defense)
        if hit_points:
            monster["hitPoints"] = hit_points
        monster["speed"] = fields.parse_speed(defense)

    if not monster["speed"]:
        speed_line = next((l for l in stats if l.startswith("Speed")), None)
        if speed_line:
            monster["speed"] = fields.parse_speed(speed_line)

    physical, mental = fields.find_ability_lines(stats)
    monster["abilityScores"] = fields.parse_ability_scores(physical, mental)

    monster["skills"] = fields.parse_skills(text)

    senses_line = _first_line_with(stats, "Senses")
    if senses_line:
        monster["senses"] = fields.parse_senses(senses_line)

    languages_line = _first_line_with(stats, "Languages")
    if languages_line:
        monster["languages"] = fields.parse_languages(languages_line)

    for line in stats:
        challenge = fields.parse_challenge_rating(line)
        if challenge:
            monster["challengeRating"] = challenge
            break

    monster.update(fields.parse_defenses(stats))

    sections = features.split_sections(text)
    monster["traits"] = features.segment_features(sections.get("Traits", []))
    monster["actions"] = features.segment_features(sections.get("Actions", []))
    monster["bonusActions"] = features.segment_features(sections.get("Bonus Actions", []))
    monster["reactions"] = features.segment_features(sections.get("Reactions", []))
    if "Legendary Actions" in sections:
        monster["legendaryActions"] = features.parse_legendary_actions(
            sections["Legendary Actions"]
        )

    return monster


# ── Validation ──────────────────────────────────────────────────────

def validate_monster(data: dict) -> list[str]:
    """Return list of warning strings for suspect fields. Never rejects."""
    warnings = []
    if data.get("hitPoints") == {"average": 1, "formula": "1d4"}:
        warnings.append("Hit points not found")
    if data.get("armorClass") == 10 and data.get("initiative") is None:
        warnings.append("AC line not found")
    scores = data.get("abilityScores", {})
    if scores and all(v["score"] == 10 for v in scores.values()):
        warnings.append("All ability scores are 10")
    if data.get("challengeRating", {}).get("experiencePoints") == 0 and \
            data.get("challengeRating", {}).get("rating") == "0":
        warnings.append("Challenge rating not found")
    return warnings


# ── Corpus ──────────────────────────────────────────────────────────

def _parse_block(block: RawEntityBlock) -> Optional[dict]:
    monster = parse_monster_block(block.text, block.category)
    if monster and len(monster["name"]) > 2:
        return monster
    return None


def extract_monsters(text: str) -> tuple[list[dict], ExtractionReport]:
    """Parse every monster block in *text*.

    A block that fails is logged, recorded in the report and skipped; it
    never stops the run.
    """
    blocks = segment(text)
    logger.info("Found %d monster entries", len(blocks))
    report = ExtractionReport(kind="monsters", found=len(blocks))
    monsters = []

    for block in blocks:
        try:
            monster = _parse_block(block)
        except Exception as exc:
            logger.warning("Error parsing monster %d: %s", block.index, exc)
            report.add_error(block.index, block.first_line or "Unknown", str(exc))
            continue

        if monster is None:
            logger.warning("Failed to parse monster %d: %s", block.index, block.first_line)
            report.add_error(block.index, block.text, "unrecognized header")
            continue

        monsters.append(monster)
        report.add_record(monster["name"], block.category, validate_monster(monster))

    report.stats["Monsters with legendary actions"] = sum(
        1 for m in monsters if m["legendaryActions"]
    )
    return monsters, report
