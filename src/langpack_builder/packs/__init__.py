"""
Language pack processing.

This package contains the payload normalizer, the languages manifest writer
and the builder that ties them to the translation service.
"""

from .manifest import MANIFEST_KEY, ManifestWriter, escape_property, format_language_list
from .normalizer import (
    PAYLOAD_ENCODING,
    EscapeNormalizer,
    LineSplitter,
    NormalizedPayload,
    is_retained_line,
    iter_lines,
    normalize_payload,
    repair_escapes,
)

__all__ = [
    "MANIFEST_KEY",
    "PAYLOAD_ENCODING",
    "EscapeNormalizer",
    "LineSplitter",
    "ManifestWriter",
    "NormalizedPayload",
    "escape_property",
    "format_language_list",
    "is_retained_line",
    "iter_lines",
    "normalize_payload",
    "repair_escapes",
]
