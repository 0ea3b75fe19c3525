"""
Translation service client.

Request targets, authenticated downloads and parsing of the module details
document.
"""

from .catalog import SOURCE_LANGUAGE, parse_available_languages
from .fetcher import (
    DEFAULT_USER_AGENT,
    TranslationFetcher,
    encode_credential,
    ensure_trailing_slash,
)

__all__ = [
    "DEFAULT_USER_AGENT",
    "SOURCE_LANGUAGE",
    "TranslationFetcher",
    "encode_credential",
    "ensure_trailing_slash",
    "parse_available_languages",
]
