"""
Global test configuration fixtures for language pack builder tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from langpack_builder.config.schema import LangPackConfig
from tests.utils.test_helpers import FakeTranslationService, create_test_config


@pytest.fixture
def service() -> FakeTranslationService:
    """Empty fake translation service."""
    return FakeTranslationService()


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Output directory that does not exist yet."""
    return tmp_path / "target" / "i18n"


@pytest.fixture
def base_config(output_dir: Path) -> LangPackConfig:
    """Configuration for a single ``core`` module with a languages file."""
    return create_test_config(
        output_dir,
        modules=["core"],
        languages_file=output_dir.parent / "languages.properties",
    )
