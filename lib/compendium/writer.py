"""
JSON output and the run report printed to the operator.
"""
from __future__ import annotations

import json
import os
from collections import Counter
from dataclasses import dataclass, field


SNIPPET_LENGTH = 100


@dataclass
class ExtractionError:
    index: int
    name: str
    error: str

    def to_dict(self) -> dict:
        return {"index": self.index, "name": self.name, "error": self.error}


@dataclass
class ExtractionReport:
    kind: str
    found: int = 0
    parsed: int = 0
    errors: list[ExtractionError] = field(default_factory=list)
    categories: Counter = field(default_factory=Counter)
    warnings: dict[str, list[str]] = field(default_factory=dict)
    stats: dict = field(default_factory=dict)

    def add_record(self, name: str, category: str = "", warnings: list[str] | None = None) -> None:
        self.parsed += 1
        if category:
            self.categories[category] += 1
        if warnings:
            self.warnings[name] = warnings

    def add_error(self, index: int, text: str, error: str) -> None:
        self.errors.append(ExtractionError(index, text[:SNIPPET_LENGTH], error))

    def summary_lines(self) -> list[str]:
        lines = [
            f"Found {self.found} entries",
            f"Successfully extracted {self.parsed} {self.kind}",
        ]
        if self.errors:
            lines.append(f"Errors: {len(self.errors)}")
            for err in self.errors:
                lines.append(f"- #{err.index} {err.name!r}: {err.error}")
        if self.categories:
            lines.append("Categories:")
            for category, count in sorted(self.categories.items()):
                lines.append(f"  - {category}: {count}")
        for key, value in self.stats.items():
            if isinstance(value, dict):
                lines.append(f"{key}:")
                for sub_key, sub_value in sorted(value.items()):
                    lines.append(f"  - {sub_key}: {sub_value}")
            else:
                lines.append(f"{key}: {value}")
        if self.warnings:
            lines.append(f"{len(self.warnings)} {self.kind} had parser warnings.")
            for name, warnings in self.warnings.items():
                lines.append(f"- {name}: {', '.join(warnings)}")
        return lines


def dumps(records: list[dict]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False) + "\n"


def write_json(records: list[dict], path: str) -> None:
    """Write *records* as pretty-printed UTF-8 JSON. Raises OSError on failure."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps(records))
