"""Extraction of the language codes advertised in a module details document."""

from __future__ import annotations

import logging
from typing import TypedDict, cast

from ..utils.core.exceptions import ResponseParseError

logger = logging.getLogger(__name__)

SOURCE_LANGUAGE = "en_US"
AVAILABLE_LANGUAGES_FIELD = "available_languages"


class LanguageEntry(TypedDict, total=False):
    """One entry of the ``available_languages`` array."""

    code: str
    name: str


class ModuleDetails(TypedDict, total=False):
    """Module details document returned by ``{module}/?details``."""

    slug: str
    name: str
    available_languages: list[LanguageEntry]


def parse_available_languages(
    details: object, source_language: str = SOURCE_LANGUAGE
) -> list[str]:
    """
    List the languages to download for one module.

    Entries that are not objects or carry no usable ``code`` are skipped.
    The source language is never returned, and each code is returned once,
    in the order the service lists it.

    Args:
        details: Decoded details document
        source_language: Code of the untranslated source language

    Returns:
        Language codes in encounter order

    Raises:
        ResponseParseError: If the document is not an object with an
            ``available_languages`` array
    """
    if not isinstance(details, dict):
        raise ResponseParseError(
            f"Module details must be a JSON object, got {type(details).__name__}"
        )

    document = cast(ModuleDetails, details)
    entries_raw = document.get(AVAILABLE_LANGUAGES_FIELD)
    if not isinstance(entries_raw, list):
        raise ResponseParseError(
            f"Module details have no '{AVAILABLE_LANGUAGES_FIELD}' array"
        )

    languages: list[str] = []
    for entry in cast(list[object], entries_raw):
        if not isinstance(entry, dict):
            continue
        code = cast(LanguageEntry, entry).get("code")
        if not isinstance(code, str) or not code.strip():
            continue
        if code == source_language or code in languages:
            continue
        languages.append(code)

    logger.debug(f"Available languages: {', '.join(languages) or 'none'}")
    return languages
