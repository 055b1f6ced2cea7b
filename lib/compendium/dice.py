# compendium/dice.py
import re
from typing import Optional, Union

# Matches '4d4', '2d6 + 3', '1d10-1'
_DICE_PATTERN = re.compile(r'(\d*)d(\d+)\s*(?:([+-])\s*(\d+))?')
_SIGNED_INT = re.compile(r'^[+-]?\d+$')

MINUS_SIGN = "−"


def normalize_minus(text: str) -> str:
    """Replace the Unicode minus sign with an ASCII hyphen-minus."""
    return text.replace(MINUS_SIGN, "-")


def parse_signed(value: str) -> Optional[int]:
    """'+5' → 5, '−1' → -1, '3' → 3. Returns None for anything else."""
    value = normalize_minus(value.strip())
    if not _SIGNED_INT.match(value):
        return None
    return int(value)


def average_roll(formula: str) -> Optional[Union[int, float]]:
    """Average of a dice formula, not rounded.

    '4d4' → 10, '1d6' → 3.5, '2d6+3' → 10, '1d8 - 1' → 3.5
    """
    m = _DICE_PATTERN.search(normalize_minus(formula))
    if not m:
        return None
    num_dice = int(m.group(1)) if m.group(1) else 1
    die_type = int(m.group(2))
    bonus = 0
    if m.group(3):
        bonus = int(m.group(4)) if m.group(3) == "+" else -int(m.group(4))
    average = num_dice * (die_type + 1) / 2 + bonus
    if average == int(average):
        return int(average)
    return average
