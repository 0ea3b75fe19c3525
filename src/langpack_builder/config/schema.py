"""Configuration schema for the language pack builder using nested Pydantic models."""

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

from ..transifex.catalog import SOURCE_LANGUAGE
from ..transifex.fetcher import DEFAULT_USER_AGENT


class TransifexConfig(BaseModel):
    """Translation service configuration."""

    base_url: str | None = Field(
        default=None,
        description="Base URL of the project resources (e.g., https://www.transifex.com/api/2/project/weasis/resource/)",
    )
    credential: str = Field(
        default="",
        description="Credential (username:password) for the service API",
    )
    timeout: Annotated[float, Field(gt=0, le=600)] = Field(
        default=30.0,
        description="Timeout in seconds for each request",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent with every request",
        min_length=1,
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str | None) -> str | None:
        """Validate the base URL and make sure it ends with a separator."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("Base URL must start with http:// or https://")
        return v if v.endswith("/") else f"{v}/"


class OutputConfig(BaseModel):
    """Where language packs and the languages manifest are written."""

    output_directory: Path | None = Field(
        default=None,
        description="Directory receiving the messages_<code>.properties files",
    )
    languages_file: Path | None = Field(
        default=None,
        description="Properties file listing the languages with translations",
    )
    merge_languages: bool = Field(
        default=False,
        description="List the languages of every module in the languages file instead of the last module only",
    )


class BuildConfig(BaseModel):
    """Which modules to download and how."""

    modules: list[str] = Field(
        default_factory=list,
        description="Resource slugs to download, processed in order",
    )
    source_language: str = Field(
        default=SOURCE_LANGUAGE,
        description="Code of the untranslated source language, never downloaded",
        min_length=1,
    )
    max_concurrent_downloads: Annotated[int, Field(ge=1, le=32)] = Field(
        default=4,
        description="Maximum number of translation files downloaded at the same time",
    )

    @field_validator("modules")
    @classmethod
    def validate_modules(cls, v: list[str]) -> list[str]:
        """Reject blank module names."""
        modules = [module.strip() for module in v]
        if any(not module for module in modules):
            raise ValueError("Module names must not be blank")
        return modules


class LangPackConfig(BaseModel):
    """Root configuration model."""

    transifex: TransifexConfig = Field(default_factory=TransifexConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
