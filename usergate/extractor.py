"""
Locates the users block (`const USERS = [ ... ];`) inside a source file.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Block:
    start: int
    end: int
    text: str

    def splice(self, source: str, replacement: str) -> str:
        """Returns `source` with this block's span replaced."""
        return source[:self.start] + replacement + source[self.end:]


def declaration_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"const\s+{re.escape(name)}\s*=\s*\[")


def extract_block(source: str, name: str = "USERS") -> Block | None:
    """
    Finds the first `const <name> = [` declaration and returns the span up to and
    including the `;` after its matching `]`.

    Brackets are counted naively: a `[` or `]` inside a string literal throws the
    count off. Returns None if the declaration is missing or never closes.
    """
    match = declaration_pattern(name).search(source)
    if not match:
        log.debug("No '%s' declaration found.", name)
        return None

    depth = 0
    for pos in range(match.end() - 1, len(source)):
        ch = source[pos]
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                terminator = source.find(";", pos)
                end = terminator + 1 if terminator != -1 else pos + 1
                return Block(start=match.start(), end=end, text=source[match.start():end])

    log.debug("'%s' declaration at offset %d is never closed.", name, match.start())
    return None
