# compendium/spell_parser.py
"""
Parse spell entries into structured dicts.

Handles two layouts inside a '###' block:
  - Inline:   '###Fireball Level 3 Evocation (Sorcerer, Wizard) Casting Time: Action Range: ...'
  - Separate: '###Fireball Level 3 Evocation (Sorcerer, Wizard)' with the
              'Casting Time: ... Duration: ...' details on the following line(s)

Details may wrap over several lines; they end once 'Duration:' is seen and
everything after that is description.

Entry points:
    parse_spell_header(line: str) -> dict
    parse_spell_details(line: str) -> dict
    parse_spell_block(text: str) -> dict | None
    extract_spells(text: str) -> (list[dict], ExtractionReport)
"""
from __future__ import annotations

import enum
import logging
import re
from collections import Counter

from compendium.dice import average_roll, normalize_minus
from compendium.segmenter import segment
from compendium.writer import ExtractionReport

logger = logging.getLogger(__name__)


# ── Header ────────────────────────────────────────────────────────────────────

def _classes(text: str) -> list[str]:
    return [c.strip() for c in text.split(",") if c.strip()]


# Tried in order, first match wins
_HEADER_RULES = [
    # Acid Arrow Level 2 Evocation (Wizard)
    (
        re.compile(r'^(.+?)\s+Level\s+(\d+)\s+(\w+)\s*\(([^)]+)\)'),
        lambda m: (m.group(1), int(m.group(2)), m.group(3), False, m.group(4)),
    ),
    # Acid Splash Evocation Cantrip (Sorcerer, Wizard)
    (
        re.compile(r'^(.+?)\s+(\w+)\s+Cantrip\s*\(([^)]+)\)'),
        lambda m: (m.group(1), 0, m.group(2), True, m.group(3)),
    ),
    # Acid Arrow Evocation Level 2 (Wizard)
    (
        re.compile(r'^(.+?)\s+(\w+)\s+Level\s+(\d+)\s*\(([^)]+)\)'),
        lambda m: (m.group(1), int(m.group(3)), m.group(2), False, m.group(4)),
    ),
]


def parse_spell_header(line: str) -> dict:
    """Return {name, level, school, isCantrip, classes}.

    A line matching none of the header grammars becomes the name, with
    level and school left as None.
    """
    header = re.sub(r'^###\s*', '', line).split("Casting Time:")[0].strip()
    for pattern, build in _HEADER_RULES:
        m = pattern.match(header)
        if m:
            name, level, school, is_cantrip, classes = build(m)
            return {
                "name": name.strip(),
                "level": level,
                "school": school,
                "isCantrip": is_cantrip,
                "classes": _classes(classes),
            }
    return {"name": header, "level": None, "school": None, "isCantrip": False, "classes": []}


# ── Details ───────────────────────────────────────────────────────────────────

_CASTING_TIME_RE = re.compile(r'Casting Time:\s*(.+?)(?:\s+or\s+Ritual)?\s+Range:')
_RANGE_RE = re.compile(r'Range:\s*(.+?)\s+Components:')
_COMPONENTS_RE = re.compile(r'Components:\s*(.+?)\s+Duration:')
_MATERIAL_RE = re.compile(r'M\s*\(([^)]+)\)')
_DURATION_RE = re.compile(r'Duration:\s*(.+)$')


def _empty_details() -> dict:
    return {
        "castingTime": {"time": None, "isRitual": False},
        "range": None,
        "components": {
            "verbal": False,
            "somatic": False,
            "material": False,
            "materialDescription": None,
        },
        "duration": {"durationType": None, "concentration": False, "duration": None},
    }


def _classify_duration(text: str) -> dict:
    duration = {
        "durationType": "Timed",
        "concentration": "Concentration" in text,
        "duration": None,
    }
    if "Instantaneous" in text:
        duration["durationType"] = "Instantaneous"
    elif "Concentration" in text:
        duration["durationType"] = "Concentration"
        duration["duration"] = text.replace("Concentration, ", "")
    elif "Until Dispelled" in text:
        duration["durationType"] = "Until Dispelled"
    else:
        duration["duration"] = text
    return duration


def parse_spell_details(line: str) -> dict:
    """Parse 'Casting Time: ... Range: ... Components: ... Duration: ...'."""
    result = _empty_details()

    m = _CASTING_TIME_RE.search(line)
    if m:
        result["castingTime"] = {"time": m.group(1).strip(), "isRitual": "or Ritual" in line}

    m = _RANGE_RE.search(line)
    if m:
        result["range"] = m.group(1).strip()

    m = _COMPONENTS_RE.search(line)
    if m:
        components = m.group(1).strip()
        # Only look for V/S/M outside the material parenthetical
        letters = components.split("(")[0]
        result["components"]["verbal"] = bool(re.search(r'\bV\b', letters))
        result["components"]["somatic"] = bool(re.search(r'\bS\b', letters))
        result["components"]["material"] = bool(re.search(r'\bM\b', letters))
        mm = _MATERIAL_RE.search(components)
        if result["components"]["material"] and mm:
            result["components"]["materialDescription"] = mm.group(1).strip()

    m = _DURATION_RE.search(line)
    if m:
        result["duration"] = _classify_duration(m.group(1).strip())

    return result


# ── Finalization ──────────────────────────────────────────────────────────────

_SUMMON_RE = re.compile(r'\$\$\$([^$]*)')
_DAMAGE_RE = re.compile(r'(\d+d\d+(?:\s*[+\-]\s*\d+)?)\s+(\w+)\s+damage', re.IGNORECASE)
_SAVE_ABILITY_RE = re.compile(
    r'\b(Strength|Dexterity|Constitution|Intelligence|Wisdom|Charisma)\s+saving\s+throw',
    re.IGNORECASE,
)
# Lines of an embedded creature stat block
_STAT_LINE_RE = re.compile(r'^(AC|HP|Speed|STR|DEX|CON|INT|WIS|CHA)\b')

_TRAILERS = [
    ("Using a Higher-Level Spell Slot.", "higherLevels"),
    ("Cantrip Upgrade.", "cantripUpgrade"),
]


def parse_spell_damage(description: str) -> list[dict]:
    """'4d4 Fire damage' → [{formula: '4d4', damageType: 'Fire', average: 10}]"""
    damage = []
    for m in _DAMAGE_RE.finditer(normalize_minus(description)):
        formula = re.sub(r'\s', '', m.group(1))
        damage.append({
            "formula": formula,
            "damageType": m.group(2).capitalize(),
            "average": average_roll(formula),
        })
    return damage


def _split_trailers(description: str) -> tuple[str, dict]:
    """Cut the 'Using a Higher-Level Spell Slot.' / 'Cantrip Upgrade.'
    paragraphs off the end of a description.

    Each trailer keeps everything after its marker up to the next marker,
    not just the first sentence, so multi-sentence scaling rules survive
    intact.
    """
    found = sorted(
        (description.find(marker), marker, key)
        for marker, key in _TRAILERS
        if marker in description
    )
    trailers = {key: None for _, key in _TRAILERS}
    if not found:
        return description, trailers
    for n, (pos, marker, key) in enumerate(found):
        end = found[n + 1][0] if n + 1 < len(found) else len(description)
        trailers[key] = description[pos + len(marker):end].strip()
    return description[:found[0][0]].strip(), trailers


def _attack_info(description: str) -> tuple[str, dict | None]:
    if "spell attack" in description:
        return "spell_attack", None
    if "saving throw" in description:
        m = _SAVE_ABILITY_RE.search(description)
        if m:
            return "saving_throw", {"ability": m.group(1).capitalize(), "success": "negates"}
        return "saving_throw", None
    return "none", None


def finalize_spell(spell: dict, description_lines: list[str]) -> dict | None:
    """Fill in description-derived fields. Returns None when there is no
    description, which means the entry was incomplete.
    """
    if not description_lines:
        return None

    original = " ".join(description_lines).strip()

    summoned = None
    cleaned: list[str] = []
    for line in description_lines:
        for m in _SUMMON_RE.finditer(line):
            if summoned is None and m.group(1).strip():
                summoned = m.group(1).strip()
        cleaned.append(_SUMMON_RE.sub("", line))
    description = " ".join(" ".join(cleaned).split())

    description, trailers = _split_trailers(description)
    attack_type, saving_throw = _attack_info(original)

    spell["description"] = description
    spell["attackType"] = attack_type
    spell["savingThrow"] = saving_throw
    spell["damage"] = parse_spell_damage(description)
    spell["summonedCreature"] = summoned
    spell["higherLevels"] = trailers["higherLevels"]
    spell["cantripUpgrade"] = trailers["cantripUpgrade"]
    return spell


def empty_spell(header: dict) -> dict:
    spell = dict(header)
    spell.update(_empty_details())
    spell.update({
        "description": "",
        "attackType": "none",
        "savingThrow": None,
        "damage": [],
        "summonedCreature": None,
        "higherLevels": None,
        "cantripUpgrade": None,
        "ritual": False,
        "tags": [],
    })
    return spell


# ── Block state machine ───────────────────────────────────────────────────────

class _State(enum.Enum):
    IDLE = "idle"
    HEADER = "header"
    DESCRIPTION = "description"


class SpellBlockParser:
    """Consumes the lines of one '###' block.

    IDLE → HEADER on the header line, HEADER → DESCRIPTION once the
    accumulated details contain 'Duration:'. finish() finalizes and resets.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self.state = _State.IDLE
        self.spell: dict | None = None
        self.details: list[str] = []
        self.description: list[str] = []

    def _apply_details(self) -> None:
        details = " ".join(self.details)
        if "Duration:" not in details:
            return
        self.spell.update(parse_spell_details(details))
        self.spell["ritual"] = self.spell["castingTime"]["isRitual"]
        self.state = _State.DESCRIPTION

    def feed(self, line: str) -> None:
        line = line.strip()
        if not line:
            return

        if self.state is _State.IDLE:
            self.spell = empty_spell(parse_spell_header(line))
            self.state = _State.HEADER
            if "Casting Time:" in line:
                self.details = [line[line.index("Casting Time:"):]]
                self._apply_details()
            return

        if self.state is _State.HEADER:
            if self.details:
                self.details.append(line)
            elif "Casting Time:" in line:
                self.details = [line[line.index("Casting Time:"):]]
            else:
                # Text between the header and the details is not kept
                return
            self._apply_details()
            return

        if _STAT_LINE_RE.match(line):
            return
        self.description.append(line)

    def finish(self) -> dict | None:
        spell = None
        if self.spell is not None:
            spell = finalize_spell(self.spell, self.description)
        self._reset()
        return spell


def parse_spell_block(text: str) -> dict | None:
    parser = SpellBlockParser()
    for line in text.splitlines():
        parser.feed(line)
    return parser.finish()


# ── Validation ────────────────────────────────────────────────────────────────

def validate_spell(data: dict) -> list[str]:
    """Return a list of warning strings for missing or suspect fields."""
    warnings: list[str] = []
    if data.get("level") is None:
        warnings.append("Header not recognized")
    if not data.get("castingTime", {}).get("time"):
        warnings.append("Missing casting time")
    if not data.get("range"):
        warnings.append("Missing range")
    if not data.get("duration", {}).get("durationType"):
        warnings.append("Missing duration")
    return warnings


# ── Corpus ────────────────────────────────────────────────────────────────────

def extract_spells(text: str) -> tuple[list[dict], ExtractionReport]:
    """Parse every spell block in *text*.

    Blocks without description text are skipped silently. A block that
    raises is recorded in the report and the run continues.
    """
    blocks = segment(text, strip_line_numbers=True)
    report = ExtractionReport(kind="spells", found=len(blocks))
    spells = []

    for block in blocks:
        try:
            spell = parse_spell_block(block.text)
        except Exception as exc:
            logger.warning("Error parsing spell %d: %s", block.index, exc)
            report.add_error(block.index, block.first_line or "Unknown", str(exc))
            continue
        if spell is None:
            logger.debug("Skipping spell %d without description: %s", block.index, block.first_line)
            continue
        spells.append(spell)
        report.add_record(spell["name"], block.category, validate_spell(spell))

    cantrips = sum(1 for s in spells if s["isCantrip"])
    schools = Counter(s["school"] for s in spells if s["school"])
    report.stats["Cantrips"] = cantrips
    report.stats["Leveled spells"] = len(spells) - cantrips
    report.stats["Spells with summoned creatures"] = sum(1 for s in spells if s["summonedCreature"])
    report.stats["Schools"] = dict(schools)
    logger.info("Extracted %d spells", len(spells))
    return spells, report
