"""Tests for lib/compendium/batch.py, config.py and the extract_* scripts"""

import importlib
import json
import os
import shutil

import pytest

import extract_monsters as monsters_script
import extract_spells as spells_script
from compendium import config
from compendium.batch import EXIT_OK, EXIT_READ_FAILED, EXIT_WRITE_FAILED, run_batch
from compendium.spell_parser import extract_spells
from compendium.statblock_parser import extract_monsters
from compendium.writer import ExtractionReport, dumps

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "COMPENDIUM_DATA_DIR",
        "COMPENDIUM_MONSTERS_INPUT",
        "COMPENDIUM_MONSTERS_OUTPUT",
        "COMPENDIUM_SPELLS_INPUT",
        "COMPENDIUM_SPELLS_OUTPUT",
    ):
        monkeypatch.delenv(var, raising=False)


# ── run_batch ───────────────────────────────────────────────────────

class TestRunBatch:
    def test_writes_json_and_summary(self, tmp_path, capsys):
        out = tmp_path / "out" / "monsters.json"
        code = run_batch(extract_monsters, os.path.join(FIXTURES, "monsters_sample.txt"), str(out))
        assert code == EXIT_OK

        records = json.loads(out.read_text(encoding="utf-8"))
        assert [m["name"] for m in records] == ["Adult Red Dragon", "Goblin Warrior", "Gazer"]

        printed = capsys.readouterr().out
        assert "Found 4 entries" in printed
        assert "Successfully extracted 3 monsters" in printed
        assert "Errors: 1" in printed
        assert "Monsters with legendary actions: 1" in printed
        assert f"Saved to: {out}" in printed

    def test_output_is_idempotent(self, tmp_path):
        src = os.path.join(FIXTURES, "spells_sample.txt")
        first = tmp_path / "first.json"
        second = tmp_path / "second.json"
        assert run_batch(extract_spells, src, str(first)) == EXIT_OK
        assert run_batch(extract_spells, src, str(second)) == EXIT_OK
        assert first.read_bytes() == second.read_bytes()

    def test_non_ascii_written_verbatim(self, tmp_path):
        out = tmp_path / "monsters.json"
        run_batch(extract_monsters, os.path.join(FIXTURES, "monsters_sample.txt"), str(out))
        assert "Fire Breath (Recharge 5–6)" in out.read_text(encoding="utf-8")

    def test_missing_input(self, tmp_path, capsys):
        out = tmp_path / "never.json"
        code = run_batch(extract_monsters, str(tmp_path / "missing.txt"), str(out))
        assert code == EXIT_READ_FAILED
        assert not out.exists()
        assert "Failed to read" in capsys.readouterr().err

    def test_unwritable_output(self, tmp_path, capsys):
        # A directory in place of the output file
        out = tmp_path / "taken"
        out.mkdir()
        code = run_batch(extract_spells, os.path.join(FIXTURES, "spells_sample.txt"), str(out))
        assert code == EXIT_WRITE_FAILED
        assert "Failed to write" in capsys.readouterr().err

    def test_empty_corpus(self, tmp_path):
        src = tmp_path / "empty.txt"
        src.write_text("no markers here\n", encoding="utf-8")
        out = tmp_path / "empty.json"
        assert run_batch(extract_spells, str(src), str(out)) == EXIT_OK
        assert out.read_text(encoding="utf-8") == "[]\n"


# ── Report / writer ─────────────────────────────────────────────────

class TestExtractionReport:
    def test_error_snippet_truncated(self):
        report = ExtractionReport(kind="monsters")
        report.add_error(7, "x" * 300, "unrecognized header")
        assert len(report.errors[0].name) == 100
        assert report.errors[0].to_dict() == {
            "index": 7, "name": "x" * 100, "error": "unrecognized header",
        }

    def test_categories_counted(self):
        report = ExtractionReport(kind="monsters")
        report.add_record("Goblin", "Fey")
        report.add_record("Pixie", "Fey")
        report.add_record("Wolf")
        assert report.parsed == 3
        assert dict(report.categories) == {"Fey": 2}
        assert "  - Fey: 2" in report.summary_lines()

    def test_warnings_listed(self):
        report = ExtractionReport(kind="spells")
        report.add_record("Odd", warnings=["Missing range"])
        assert "- Odd: Missing range" in report.summary_lines()

    def test_summary_counts_read_naturally(self):
        report = ExtractionReport(kind="spells", found=6)
        report.add_record("Bless")
        lines = report.summary_lines()
        assert lines[0] == "Found 6 entries"
        assert lines[1] == "Successfully extracted 1 spells"

    def test_dumps_format(self):
        assert dumps([{"name": "Café"}]) == '[\n  {\n    "name": "Café"\n  }\n]\n'


# ── Config ──────────────────────────────────────────────────────────

class TestConfig:
    def test_defaults(self):
        assert config.monsters_input_path() == os.path.join("data", "monsters.txt")
        assert config.monsters_output_path() == os.path.join("data", "monsters-legendary.json")
        assert config.spells_input_path() == os.path.join("data", "spells.txt")
        assert config.spells_output_path() == os.path.join("data", "spells.json")

    def test_data_dir_override(self, monkeypatch):
        monkeypatch.setenv("COMPENDIUM_DATA_DIR", "/srv/compendium")
        assert config.spells_input_path() == os.path.join("/srv/compendium", "spells.txt")

    def test_file_override_wins(self, monkeypatch):
        monkeypatch.setenv("COMPENDIUM_DATA_DIR", "/srv/compendium")
        monkeypatch.setenv("COMPENDIUM_MONSTERS_OUTPUT", "/tmp/m.json")
        assert config.monsters_output_path() == "/tmp/m.json"

    def test_import_does_not_read_env_file(self, tmp_path, monkeypatch):
        # .env is loaded once, by the command scripts
        (tmp_path / ".env").write_text("COMPENDIUM_DATA_DIR=/from/env/file\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        importlib.reload(config)
        assert "COMPENDIUM_DATA_DIR" not in os.environ
        assert config.get_data_dir() == "data"


# ── Scripts ─────────────────────────────────────────────────────────

class TestScripts:
    def test_monsters_main_with_args(self, tmp_path):
        out = tmp_path / "monsters.json"
        code = monsters_script.main([os.path.join(FIXTURES, "monsters_sample.txt"), "-o", str(out)])
        assert code == 0
        assert len(json.loads(out.read_text(encoding="utf-8"))) == 3

    def test_spells_main_uses_env_paths(self, tmp_path, monkeypatch):
        src = tmp_path / "spells.txt"
        shutil.copy(os.path.join(FIXTURES, "spells_sample.txt"), src)
        monkeypatch.setenv("COMPENDIUM_DATA_DIR", str(tmp_path))
        assert spells_script.main([]) == 0
        records = json.loads((tmp_path / "spells.json").read_text(encoding="utf-8"))
        assert len(records) == 5

    def test_missing_input_exit_code(self, tmp_path):
        code = spells_script.main([str(tmp_path / "nope.txt"), "-o", str(tmp_path / "out.json")])
        assert code == 1
