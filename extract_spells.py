#!/usr/bin/env python3
"""
Batch extractor for spell descriptions. Run with:

    python extract_spells.py [input] [-o output] [-v]

Input defaults to data/spells.txt, output to data/spells.json.
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
from compendium.spell_parser import extract_spells


def main(argv: list[str] | None = None) -> int:
    load_dotenv(find_dotenv(usecwd=True), override=False)

    parser = argparse.ArgumentParser(
        description="Extract spells from a '###'-marked text file into JSON."
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help="Spell text file. Defaults to COMPENDIUM_SPELLS_INPUT or data/spells.txt.",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="JSON output path. Defaults to COMPENDIUM_SPELLS_OUTPUT or data/spells.json.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log spells skipped for missing description text.",
    )
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    return run_batch(
        extract_spells,
        args.input or config.spells_input_path(),
        args.output or config.spells_output_path(),
    )


if __name__ == "__main__":
    raise SystemExit(main())
