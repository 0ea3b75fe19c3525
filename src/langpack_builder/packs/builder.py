"""
Language pack builder.

This module drives a complete run: for every configured module it lists the
available languages, downloads each translation file, keeps only the files
that contain translations, and records the resulting languages in the
manifest.

Malformed request targets skip a single module or language. Network, parse
and write failures abort the whole run.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing_extensions import override

import httpx

from ..config.schema import LangPackConfig
from ..transifex.catalog import parse_available_languages
from ..transifex.fetcher import (
    TranslationFetcher,
    encode_credential,
    ensure_trailing_slash,
)
from ..utils.core.exceptions import (
    LangPackError,
    MalformedTargetError,
    OutputWriteError,
)
from .manifest import ManifestWriter
from .normalizer import PAYLOAD_ENCODING, EscapeNormalizer

logger = logging.getLogger(__name__)


def pack_file_name(language: str) -> str:
    """File name of the language pack for one language."""
    return f"messages_{language}.properties"


def remove_pack(path: Path) -> None:
    """Delete a pack file if one exists."""
    if path.is_file():
        path.unlink()


class LanguageStatus(Enum):
    """What happened to one language of a module."""

    WRITTEN = "written"
    EMPTY = "empty"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class LanguageOutcome:
    """Result of processing one language."""

    language: str
    status: LanguageStatus
    path: Path | None = None
    reason: str | None = None


@dataclass
class ModuleReport:
    """Result of processing one module."""

    module: str
    outcomes: list[LanguageOutcome] = field(default_factory=list)
    skip_reason: str | None = None

    @property
    def skipped(self) -> bool:
        """True if the module itself could not be requested."""
        return self.skip_reason is not None

    def languages_with(self, status: LanguageStatus) -> list[str]:
        """Languages with the given status, in discovery order."""
        return [
            outcome.language for outcome in self.outcomes if outcome.status is status
        ]

    @property
    def written_languages(self) -> list[str]:
        """Languages whose pack was written."""
        return self.languages_with(LanguageStatus.WRITTEN)


class BuildReport:
    """Result of a complete run."""

    def __init__(self) -> None:
        self.performed: bool = False
        self.modules: list[ModuleReport] = []
        self.languages_file: Path | None = None

    def _count(self, status: LanguageStatus) -> int:
        return sum(len(module.languages_with(status)) for module in self.modules)

    @property
    def written_count(self) -> int:
        """Number of language packs written."""
        return self._count(LanguageStatus.WRITTEN)

    @property
    def empty_count(self) -> int:
        """Number of downloads discarded for lack of translations."""
        return self._count(LanguageStatus.EMPTY)

    @property
    def skipped_count(self) -> int:
        """Number of languages skipped because of a malformed target."""
        return self._count(LanguageStatus.SKIPPED)

    @property
    def skipped_modules(self) -> list[str]:
        """Modules skipped because of a malformed target."""
        return [module.module for module in self.modules if module.skipped]

    @override
    def __str__(self) -> str:
        """String representation of the build results."""
        return (
            f"Build Results: "
            f"{len(self.modules)} module(s), "
            f"{self.written_count} written, "
            f"{self.empty_count} empty, "
            f"{self.skipped_count} skipped"
            + (
                f", modules skipped: {', '.join(self.skipped_modules)}"
                if self.skipped_modules
                else ""
            )
        )


class PackBuilder:
    """Downloads translations and writes the language packs."""

    def __init__(
        self,
        config: LangPackConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the builder.

        Args:
            config: Validated configuration
            transport: Optional httpx transport, used to run against a stub service
        """
        self.config: LangPackConfig = config
        self._transport: httpx.AsyncBaseTransport | None = transport

    async def run(self) -> BuildReport:
        """
        Build the language packs of every configured module.

        Returns:
            BuildReport describing what was written, discarded and skipped

        Raises:
            NetworkError: If a request fails
            ResponseParseError: If module details cannot be parsed
            OutputWriteError: If a pack or the languages file cannot be written
        """
        report = BuildReport()
        base_url = self.config.transifex.base_url
        output_directory = self.config.output.output_directory

        if not base_url or output_directory is None:
            logger.debug("No base URL or output directory configured, nothing to do")
            return report

        report.performed = True
        logger.debug(f"starting build URL from {base_url}")
        base_url = ensure_trailing_slash(base_url)

        try:
            output_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteError(
                f"Cannot create output directory {output_directory}: {e}",
                context=str(output_directory),
            ) from e

        auth_token = encode_credential(self.config.transifex.credential)
        source_language = self.config.build.source_language
        languages_file = self.config.output.languages_file
        manifest = ManifestWriter(languages_file) if languages_file else None
        merged_languages: list[str] = []

        async with TranslationFetcher(
            base_url,
            auth_token,
            timeout=self.config.transifex.timeout,
            user_agent=self.config.transifex.user_agent,
            transport=self._transport,
        ) as fetcher:
            for module in self.config.build.modules:
                module_report = await self._build_module(
                    fetcher, module, output_directory
                )
                report.modules.append(module_report)

                if manifest is None or module_report.skipped:
                    continue

                if self.config.output.merge_languages:
                    for language in module_report.written_languages:
                        if language not in merged_languages:
                            merged_languages.append(language)
                    manifest.write(source_language, merged_languages)
                else:
                    manifest.write(source_language, module_report.written_languages)
                report.languages_file = manifest.path

        logger.info(str(report))
        return report

    async def _build_module(
        self, fetcher: TranslationFetcher, module: str, output_directory: Path
    ) -> ModuleReport:
        """Process every language of one module."""
        try:
            details_url = fetcher.details_url(module)
        except MalformedTargetError as e:
            logger.error(e.user_message)
            return ModuleReport(module=module, skip_reason=e.reason)

        logger.debug(f"{module} URL: {details_url}")
        details = await fetcher.fetch_details(details_url)
        languages = parse_available_languages(
            details, self.config.build.source_language
        )
        logger.info(f"Module {module}: {len(languages)} language(s) available")

        semaphore = asyncio.Semaphore(self.config.build.max_concurrent_downloads)
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [
                    group.create_task(
                        self._build_language(
                            fetcher, module, language, output_directory, semaphore
                        )
                    )
                    for language in languages
                ]
        except ExceptionGroup as eg:
            # Siblings were cancelled; surface the failure that caused it
            first = eg.exceptions[0]
            if isinstance(first, LangPackError):
                raise first from None
            raise

        return ModuleReport(module=module, outcomes=[task.result() for task in tasks])

    async def _build_language(
        self,
        fetcher: TranslationFetcher,
        module: str,
        language: str,
        output_directory: Path,
        semaphore: asyncio.Semaphore,
    ) -> LanguageOutcome:
        """Download, normalize and keep or discard one translation file."""
        try:
            url = fetcher.translation_url(module, language)
        except MalformedTargetError as e:
            logger.error(e.user_message)
            return LanguageOutcome(
                language=language, status=LanguageStatus.SKIPPED, reason=e.reason
            )

        out_file = output_directory / pack_file_name(language)
        normalizer = EscapeNormalizer()

        async with semaphore:
            try:
                with out_file.open("w", encoding=PAYLOAD_ENCODING, newline="") as handle:
                    async with aclosing(fetcher.stream_translation(url)) as lines:
                        async for line in lines:
                            normalized = normalizer.normalize(line)
                            if normalized is not None:
                                _ = handle.write(normalized)
            except OSError as e:
                remove_pack(out_file)
                raise OutputWriteError(
                    f"Cannot write {out_file}: {e}", context=str(out_file)
                ) from e
            except BaseException:
                # Failed or cancelled download
                remove_pack(out_file)
                raise

        if not normalizer.has_content:
            # Do not keep a file with no translation
            remove_pack(out_file)
            logger.debug(f"No translation for {module}/{language}, file removed")
            return LanguageOutcome(language=language, status=LanguageStatus.EMPTY)

        logger.debug(
            f"Wrote {out_file} ({normalizer.retained_lines} line(s)) for {module}"
        )
        return LanguageOutcome(
            language=language, status=LanguageStatus.WRITTEN, path=out_file
        )
