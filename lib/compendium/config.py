# compendium/config.py
# The command scripts load .env before any of these are called.
import os

DEFAULT_DATA_DIR = "data"


def get_data_dir() -> str:
    return os.getenv("COMPENDIUM_DATA_DIR", DEFAULT_DATA_DIR)


def _path(env_var: str, filename: str) -> str:
    # 1. Explicit per-file override
    value = os.getenv(env_var)
    if value:
        return value

    # 2. File inside the data directory
    return os.path.join(get_data_dir(), filename)


def monsters_input_path() -> str:
    return _path("COMPENDIUM_MONSTERS_INPUT", "monsters.txt")


def monsters_output_path() -> str:
    return _path("COMPENDIUM_MONSTERS_OUTPUT", "monsters-legendary.json")


def spells_input_path() -> str:
    return _path("COMPENDIUM_SPELLS_INPUT", "spells.txt")


def spells_output_path() -> str:
    return _path("COMPENDIUM_SPELLS_OUTPUT", "spells.json")
