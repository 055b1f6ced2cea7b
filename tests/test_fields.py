"""Tests for lib/compendium/fields.py"""

from compendium import fields


# ── AC / HP / Initiative ────────────────────────────────────────────

class TestDefenseLine:
    LINE = "AC 17 HP 135 (18d10+36) Initiative +5 (15)"

    def test_armor_class(self):
        assert fields.parse_armor_class(self.LINE) == 17

    def test_hit_points(self):
        assert fields.parse_hit_points(self.LINE) == {"average": 135, "formula": "18d10+36"}

    def test_initiative(self):
        assert fields.parse_initiative(self.LINE) == {"modifier": 5, "total": 15}

    def test_negative_initiative(self):
        assert fields.parse_initiative("Initiative −2 (8)") == {"modifier": -2, "total": 8}

    def test_find_defense_line(self):
        lines = ["Speed 30 ft.", self.LINE, "Str 10 +0 +0"]
        assert fields.find_defense_line(lines) == self.LINE

    def test_misses_return_none(self):
        assert fields.parse_armor_class("Speed 30 ft.") is None
        assert fields.parse_hit_points("HP 135") is None
        assert fields.parse_initiative("AC 12") is None


# ── Abilities ───────────────────────────────────────────────────────

class TestAbilityScores:
    def test_six_abilities(self):
        scores = fields.parse_ability_scores(
            "Str 27 +8 +8 Dex 10 +0 +6 Con 25 +7 +7",
            "Int 16 +3 +3 Wis 13 +1 +7 Cha 23 +6 +6",
        )
        assert scores["strength"] == {"score": 27, "modifier": 8, "save": 8}
        assert scores["dexterity"] == {"score": 10, "modifier": 0, "save": 6}
        assert scores["wisdom"] == {"score": 13, "modifier": 1, "save": 7}
        assert scores["charisma"] == {"score": 23, "modifier": 6, "save": 6}

    def test_unicode_minus_matches_ascii(self):
        unicode = fields.parse_ability_scores("Str 8 −1 −1 Dex 8 −1 −1 Con 10 +0 +0", None)
        ascii_ = fields.parse_ability_scores("Str 8 -1 -1 Dex 8 -1 -1 Con 10 +0 +0", None)
        assert unicode["dexterity"] == {"score": 8, "modifier": -1, "save": -1}
        assert unicode == ascii_

    def test_missing_lines_keep_defaults(self):
        scores = fields.parse_ability_scores(None, None)
        assert scores == fields.default_abilities()
        assert scores["intelligence"] == {"score": 10, "modifier": 0, "save": 0}

    def test_partial_line_keeps_other_defaults(self):
        scores = fields.parse_ability_scores("Str 18 +4 +4", None)
        assert scores["strength"]["score"] == 18
        assert scores["constitution"]["score"] == 10

    def test_find_ability_lines(self):
        lines = [
            "AC 15 HP 10 (3d6)",
            "Str 8 −1 −1 Dex 15 +2 +2 Con 10 +0 +0",
            "Int 10 +0 +0 WIS 8 −1 −1 Cha 8 −1 −1",
        ]
        assert fields.find_ability_lines(lines) == (lines[1], lines[2])

    def test_looks_like_ability_line(self):
        assert fields.looks_like_ability_line("Str 18 +4 +4")
        assert fields.looks_like_ability_line("WIS 12 +1 +1")
        assert not fields.looks_like_ability_line("Strahd von Zarovich")


# ── Speed / Senses ──────────────────────────────────────────────────

class TestSpeed:
    def test_fixed_order(self):
        line = "Speed 40 ft., Climb 40 ft., Fly 80 ft., Swim 20 ft."
        assert fields.parse_speed(line) == ["40 ft.", "swim 20 ft.", "fly 80 ft.", "climb 40 ft."]

    def test_hover_applies_to_fly(self):
        assert fields.parse_speed("Speed 5 ft., Fly 30 ft. (hover)") == ["5 ft.", "fly 30 ft. (hover)"]

    def test_burrow(self):
        assert fields.parse_speed("Speed 30 ft., Burrow 15 ft.") == ["30 ft.", "burrow 15 ft."]

    def test_no_speed(self):
        assert fields.parse_speed("AC 12 HP 4 (1d8)") == []


def test_senses_fixed_order():
    line = "Senses Blindsight 60 ft., Darkvision 120 ft.; Passive Perception 23"
    assert fields.parse_senses(line) == [
        "Darkvision 120 ft.",
        "Blindsight 60 ft.",
        "Passive Perception 23",
    ]


def test_senses_tremorsense_truesight():
    line = "Senses Tremorsense 30 ft., Truesight 10 ft.; Passive Perception 10"
    assert fields.parse_senses(line) == ["Truesight 10 ft.", "Tremorsense 30 ft.", "Passive Perception 10"]


# ── Challenge rating ────────────────────────────────────────────────

class TestChallengeRating:
    def test_fraction(self):
        assert fields.parse_challenge_rating("CR 1/8 (XP 25; PB +2)") == {
            "rating": "1/8",
            "experiencePoints": 25,
            "proficiencyBonus": 2,
        }

    def test_lair_xp_and_commas(self):
        cr = fields.parse_challenge_rating("CR 17 (XP 18,000, or 20,000 in lair; PB +6)")
        assert cr == {"rating": "17", "experiencePoints": 18000, "proficiencyBonus": 6}

    def test_no_match(self):
        assert fields.parse_challenge_rating("Challenge 5 (1,800 XP)") is None


# ── Skills / Languages ──────────────────────────────────────────────

class TestSkills:
    def test_stops_at_next_keyword(self):
        text = "Skills History +12, Perception +10\nSenses Darkvision 60 ft."
        assert fields.parse_skills(text) == ["History +12", "Perception +10"]

    def test_stops_at_gear(self):
        assert fields.parse_skills("Skills Stealth +6 Gear Shortbow") == ["Stealth +6"]

    def test_multi_word_skill(self):
        assert fields.parse_skills("Skills Animal Handling +4, Sleight of Hand +5") == [
            "Animal Handling +4",
            "Sleight of Hand +5",
        ]

    def test_absent(self):
        assert fields.parse_skills("Senses Passive Perception 10") == []


class TestLanguages:
    def test_list(self):
        assert fields.parse_languages("Languages Common, Draconic") == ["Common", "Draconic"]

    def test_stops_at_cr(self):
        line = "Languages Common, Giant CR 5 (XP 1,800; PB +3)"
        assert fields.parse_languages(line) == ["Common", "Giant"]

    def test_none_with_telepathy(self):
        assert fields.parse_languages("Languages None; telepathy 60 ft.") == ["telepathy 60 ft."]

    def test_languages_and_telepathy(self):
        line = "Languages Deep Speech, Undercommon; telepathy 120 ft."
        assert fields.parse_languages(line) == ["Deep Speech", "Undercommon", "telepathy 120 ft."]

    def test_requires_keyword(self):
        assert fields.parse_languages("telepathy 60 ft.") == []


# ── Defenses / Gear ─────────────────────────────────────────────────

def test_immunities_split_damage_and_conditions():
    result = fields.parse_defenses(["Resistances Cold Immunities Poison; Poisoned, Prone"])
    assert result["damageResistances"] == ["Cold"]
    assert result["damageImmunities"] == ["Poison"]
    assert result["conditionImmunities"] == ["Poisoned", "Prone"]
    assert result["damageVulnerabilities"] == []


def test_gear_keeps_parenthetical_commas():
    result = fields.parse_defenses(["Gear Daggers (2, silvered), Shield"])
    assert result["gear"] == ["Daggers (2, silvered)", "Shield"]


def test_vulnerabilities():
    result = fields.parse_defenses(["Vulnerabilities Radiant", "Senses Passive Perception 9"])
    assert result["damageVulnerabilities"] == ["Radiant"]
