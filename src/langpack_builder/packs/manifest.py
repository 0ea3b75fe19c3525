"""
Writer for the languages manifest.

The manifest is a Java properties file holding a single ``languages`` key
whose value is the comma separated list of languages with translations,
source language first.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from ..utils.core.exceptions import OutputWriteError
from .normalizer import PAYLOAD_ENCODING

logger = logging.getLogger(__name__)

MANIFEST_KEY = "languages"

_SPECIAL_CHARACTERS = {
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
    "=": "\\=",
    ":": "\\:",
    "#": "\\#",
    "!": "\\!",
}


def escape_property(text: str, is_key: bool = False) -> str:
    """
    Escape a key or value the way ``java.util.Properties.store`` does.

    Spaces are escaped everywhere in keys but only in leading position in
    values. Characters outside printable ASCII become ``\\uXXXX``.
    """
    escaped: list[str] = []
    for index, char in enumerate(text):
        code = ord(char)
        if 61 < code < 127:
            escaped.append("\\\\" if char == "\\" else char)
        elif char == " ":
            escaped.append("\\ " if index == 0 or is_key else " ")
        elif char in _SPECIAL_CHARACTERS:
            escaped.append(_SPECIAL_CHARACTERS[char])
        elif code < 0x20 or code > 0x7E:
            # Characters beyond the BMP are written as their UTF-16 halves
            for unit in char.encode("utf-16-be").hex(" ", 2).split(" "):
                escaped.append(f"\\u{unit.upper()}")
        else:
            escaped.append(char)
    return "".join(escaped)


def _file_mode(path: Path) -> int:
    """Mode for the manifest: the existing file's, else the umask default."""
    if path.is_file():
        return path.stat().st_mode & 0o777
    umask = os.umask(0)
    _ = os.umask(umask)
    return 0o666 & ~umask


def format_language_list(source_language: str, languages: Sequence[str]) -> str:
    """Join the source language and the translated languages."""
    return ",".join([source_language, *languages])


class ManifestWriter:
    """Persist the languages manifest, replacing any previous content."""

    def __init__(self, path: Path, key: str = MANIFEST_KEY) -> None:
        self.path: Path = path
        self.key: str = key

    def render(self, source_language: str, languages: Sequence[str]) -> str:
        """Build the manifest file content."""
        timestamp = datetime.now().astimezone().strftime("%a %b %d %H:%M:%S %Z %Y")
        value = format_language_list(source_language, languages)
        return (
            f"#{timestamp}\n"
            f"{escape_property(self.key, is_key=True)}={escape_property(value)}\n"
        )

    def write(self, source_language: str, languages: Sequence[str]) -> None:
        """
        Write the manifest atomically.

        Args:
            source_language: Code listed first
            languages: Translated language codes in discovery order

        Raises:
            OutputWriteError: If the file cannot be written
        """
        content = self.render(source_language, languages)

        temp_file = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding=PAYLOAD_ENCODING,
                errors="replace",
                newline="",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as temp_file:
                _ = temp_file.write(content)
                temp_file.flush()
                temp_path = Path(temp_file.name)

            # NamedTemporaryFile creates the file as 0600
            temp_path.chmod(_file_mode(self.path))
            _ = temp_path.replace(self.path)
        except OSError as e:
            if temp_file and Path(temp_file.name).exists():
                Path(temp_file.name).unlink(missing_ok=True)
            raise OutputWriteError(
                f"Failed to write languages file {self.path}: {e}",
                context=str(self.path),
            ) from e

        logger.info(
            f"Wrote {self.path} with {format_language_list(source_language, languages)}"
        )
