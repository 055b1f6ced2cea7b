"""
Corpus segmentation.

Splits a reference document into one raw text block per entity. Two marker
conventions are recognised:

    !Dragons!                              category marker, applies to every
                                           following block
    ###Adult Red Dragon Huge Dragon ...    entity start, marker stripped

Blank lines are dropped. Anything before the first entity marker is ignored.
"""

import re
from dataclasses import dataclass
from typing import Iterator

ENTITY_MARKER = "###"

_LINE_NUMBER_PREFIX = re.compile(r'^\d+→')


@dataclass(frozen=True)
class RawEntityBlock:
    index: int
    category: str
    text: str

    @property
    def lines(self) -> list[str]:
        return self.text.split("\n")

    @property
    def first_line(self) -> str:
        return self.lines[0] if self.text else ""


def _is_category_marker(line: str) -> bool:
    return len(line) > 2 and line.startswith("!") and line.endswith("!")


def iter_blocks(text: str, *, strip_line_numbers: bool = False) -> Iterator[RawEntityBlock]:
    """Yield RawEntityBlock objects in corpus order."""
    category = ""
    block_category = ""
    current: list[str] = []
    in_block = False
    index = 0

    for raw in text.splitlines():
        line = raw.strip()
        if strip_line_numbers:
            line = _LINE_NUMBER_PREFIX.sub("", line)

        if _is_category_marker(line):
            category = line[1:-1].strip()
            continue

        if line.startswith(ENTITY_MARKER):
            if in_block:
                yield RawEntityBlock(index, block_category, "\n".join(current))
                index += 1
            current = [line[len(ENTITY_MARKER):].strip()]
            block_category = category
            in_block = True
        elif in_block and line:
            current.append(line)

    if in_block:
        yield RawEntityBlock(index, block_category, "\n".join(current))


def segment(text: str, *, strip_line_numbers: bool = False) -> list[RawEntityBlock]:
    return list(iter_blocks(text, strip_line_numbers=strip_line_numbers))
