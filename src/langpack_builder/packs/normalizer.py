"""
Line filtering and escape repair for downloaded translation payloads.

Payloads are Java properties bodies in ISO-8859-1. Blank lines and comment
lines are dropped, and every doubled backslash introduced by the export is
collapsed back into a single one. The transform works line by line so that a
payload never has to be held in memory as a whole.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import NamedTuple

PAYLOAD_ENCODING = "iso-8859-1"
COMMENT_PREFIX = "#"
# Latin-1 characters Java treats as whitespace; NBSP and NEL are not among them
BLANK_CHARACTERS = " \t\n\x0b\f\r\x1c\x1d\x1e\x1f"

_DOUBLE_BACKSLASH = "\\\\"
_SINGLE_BACKSLASH = "\\"


class NormalizedPayload(NamedTuple):
    """A normalized payload and whether it held any translated line."""

    text: str
    has_content: bool


class LineSplitter:
    """
    Incremental line splitter for decoded text chunks.

    Only ``\\n``, ``\\r\\n`` and ``\\r`` end a line. ``str.splitlines`` also
    breaks on characters such as ``\\x85`` and ``\\x1c``, which are ordinary
    characters in a Latin-1 properties file.
    """

    _LINE_BREAK: re.Pattern[str] = re.compile(r"\r\n|\r|\n")

    def __init__(self) -> None:
        self._pieces: list[str] = []
        self._pending_cr: bool = False

    def _take_line(self) -> str:
        line = "".join(self._pieces)
        self._pieces = []
        return line

    def feed(self, text: str) -> list[str]:
        """
        Add a chunk of text and return the lines it completed.

        A trailing ``\\r`` is held back until the next chunk shows whether it
        is the first half of a ``\\r\\n`` pair. Only the new chunk is scanned,
        so a long unterminated line costs linear time.
        """
        lines: list[str] = []
        if self._pending_cr and text:
            self._pending_cr = False
            lines.append(self._take_line())
            if text.startswith("\n"):
                text = text[1:]

        position = 0
        for match in self._LINE_BREAK.finditer(text):
            self._pieces.append(text[position : match.start()])
            if match.group() == "\r" and match.end() == len(text):
                self._pending_cr = True
                return lines
            lines.append(self._take_line())
            position = match.end()

        if position < len(text):
            self._pieces.append(text[position:])
        return lines

    def flush(self) -> list[str]:
        """Return the last line if it is unterminated or ends with a held ``\\r``."""
        if self._pending_cr:
            self._pending_cr = False
            return [self._take_line()]
        if not self._pieces:
            return []
        return [self._take_line()]


def iter_lines(text: str) -> Iterator[str]:
    """Yield the lines of ``text`` without their terminators."""
    splitter = LineSplitter()
    yield from splitter.feed(text)
    yield from splitter.flush()


def is_retained_line(line: str) -> bool:
    """Return True if the line carries a translation (not blank, not a comment)."""
    return bool(line.strip(BLANK_CHARACTERS)) and not line.startswith(COMMENT_PREFIX)


def repair_escapes(line: str) -> str:
    """Collapse every backslash pair, scanning left to right without overlap."""
    return line.replace(_DOUBLE_BACKSLASH, _SINGLE_BACKSLASH)


class EscapeNormalizer:
    """
    Stateful per-payload normalizer.

    ``has_content`` turns True as soon as one line is retained, whether or not
    that line needed any repair.
    """

    def __init__(self) -> None:
        self.has_content: bool = False
        self.retained_lines: int = 0

    def normalize(self, line: str) -> str | None:
        """Return the normalized line with its newline, or None if it is dropped."""
        if not is_retained_line(line):
            return None
        self.has_content = True
        self.retained_lines += 1
        return repair_escapes(line) + "\n"

    def feed(self, lines: Iterable[str]) -> Iterator[str]:
        """Normalize an iterable of lines, yielding only the retained ones."""
        for line in lines:
            normalized = self.normalize(line)
            if normalized is not None:
                yield normalized


def normalize_payload(text: str) -> NormalizedPayload:
    """Normalize a complete payload held in a string."""
    normalizer = EscapeNormalizer()
    normalized = "".join(normalizer.feed(iter_lines(text)))
    return NormalizedPayload(text=normalized, has_content=normalizer.has_content)
