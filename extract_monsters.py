#!/usr/bin/env python3
"""
Batch extractor for monster stat blocks. Run with:

    python extract_monsters.py [input] [-o output] [-v]

Input defaults to data/monsters.txt, output to data/monsters-legendary.json
(see compendium/config.py for the environment overrides).
"""
from __future__ import annotations

import argparse
import os
import sys

# Add lib to path so imports work without installing
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "lib"))

from dotenv import find_dotenv, load_dotenv

from compendium import config
from compendium.batch import configure_logging, run_batch
from compendium.statblock_parser import extract_monsters


def main(argv: list[str] | None = None) -> int:
    load_dotenv(find_dotenv(usecwd=True), override=False)

    parser = argparse.ArgumentParser(
        description="Extract monster stat blocks from a '###'-marked text file into JSON."
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help="Monster text file. Defaults to COMPENDIUM_MONSTERS_INPUT or data/monsters.txt.",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="JSON output path. Defaults to COMPENDIUM_MONSTERS_OUTPUT or data/monsters-legendary.json.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every skipped block.",
    )
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    return run_batch(
        extract_monsters,
        args.input or config.monsters_input_path(),
        args.output or config.monsters_output_path(),
    )


if __name__ == "__main__":
    raise SystemExit(main())
