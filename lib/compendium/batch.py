"""
Read → extract → write for one corpus file.

Used by the extract_monsters.py / extract_spells.py scripts. Entity-level
failures end up in the report; only I/O failures stop the run.
"""
from __future__ import annotations

import logging
import sys
from typing import Callable

from compendium.writer import ExtractionReport, write_json

logger = logging.getLogger(__name__)

Extractor = Callable[[str], tuple[list[dict], ExtractionReport]]

EXIT_OK = 0
EXIT_READ_FAILED = 1
EXIT_WRITE_FAILED = 2


def read_corpus(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def run_batch(extract: Extractor, input_path: str, output_path: str) -> int:
    """Run one extraction job and print the operator summary.

    Returns a process exit code.
    """
    try:
        text = read_corpus(input_path)
    except OSError as exc:
        print(f"Failed to read {input_path}: {exc}", file=sys.stderr)
        return EXIT_READ_FAILED

    records, report = extract(text)

    try:
        write_json(records, output_path)
    except OSError as exc:
        print(f"Failed to write {output_path}: {exc}", file=sys.stderr)
        return EXIT_WRITE_FAILED

    for line in report.summary_lines():
        print(line)
    print(f"Saved to: {output_path}")
    logger.info("%s: %d parsed, %d errors", report.kind, report.parsed, len(report.errors))
    return EXIT_OK


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
