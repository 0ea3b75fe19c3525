"""
Tests for the language pack builder.

These tests run complete builds against the fake translation service and
check the files left in the output directory.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from langpack_builder.config.schema import LangPackConfig
from langpack_builder.packs.normalizer import EscapeNormalizer
from langpack_builder.packs.builder import (
    BuildReport,
    LanguageStatus,
    ModuleReport,
    PackBuilder,
    pack_file_name,
)
from langpack_builder.utils.core.exceptions import (
    NetworkError,
    OutputWriteError,
    ResponseParseError,
)
from tests.utils.test_helpers import (
    BrokenBodyStream,
    FakeTranslationService,
    create_test_config,
)


def read_manifest(path: Path) -> str:
    """Value of the languages key."""
    for line in path.read_text(encoding="iso-8859-1").splitlines():
        if line.startswith("languages="):
            return line.removeprefix("languages=")
    raise AssertionError(f"No languages key in {path}")


def pack_names(output_dir: Path) -> list[str]:
    """Sorted file names in the output directory."""
    return sorted(path.name for path in output_dir.iterdir())


class TestPackFileName:
    """Test output file naming."""

    def test_pack_file_name(self) -> None:
        """Pack files are named after the language code."""
        assert pack_file_name("de_DE") == "messages_de_DE.properties"


class TestBuildReport:
    """Test the BuildReport class."""

    def test_empty_report(self) -> None:
        """Test empty build report."""
        report = BuildReport()

        assert report.performed is False
        assert report.written_count == 0
        assert report.skipped_modules == []
        assert "0 module(s), 0 written, 0 empty, 0 skipped" in str(report)

    def test_report_with_skipped_module(self) -> None:
        """Skipped modules are listed in the summary."""
        report = BuildReport()
        report.modules.append(ModuleReport(module="bad", skip_reason="invalid"))

        assert report.skipped_modules == ["bad"]
        assert "modules skipped: bad" in str(report)


class TestPackBuilderNoOp:
    """Runs without a base URL or output directory do nothing."""

    @pytest.mark.asyncio
    async def test_missing_base_url(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """Without a base URL nothing is requested or created."""
        config = create_test_config(output_dir, modules=["core"], base_url=None)

        report = await PackBuilder(config, transport=service.transport()).run()

        assert report.performed is False
        assert service.requests == []
        assert not output_dir.exists()

    @pytest.mark.asyncio
    async def test_missing_output_directory(
        self, service: FakeTranslationService
    ) -> None:
        """Without an output directory nothing is requested."""
        config = create_test_config(None, modules=["core"])

        report = await PackBuilder(config, transport=service.transport()).run()

        assert report.performed is False
        assert service.requests == []


class TestPackBuilder:
    """Test complete builds."""

    @pytest.mark.asyncio
    async def test_keeps_translated_languages_only(
        self,
        base_config: LangPackConfig,
        output_dir: Path,
        service: FakeTranslationService,
    ) -> None:
        """A comment-only payload is discarded, a translated one is kept."""
        service.add_module("core", ["en_US", "fr_FR", "de_DE"])
        service.add_translation("core", "fr_FR", "# French\n\n# key=\n")
        service.add_translation("core", "de_DE", "# German\nok=OK\nsave=Speichern\n")

        report = await PackBuilder(base_config, transport=service.transport()).run()

        assert pack_names(output_dir) == ["messages_de_DE.properties"]
        assert (output_dir / "messages_de_DE.properties").read_text(
            encoding="iso-8859-1"
        ) == "ok=OK\nsave=Speichern\n"
        assert base_config.output.languages_file is not None
        assert read_manifest(base_config.output.languages_file) == "en_US,de_DE"
        module = report.modules[0]
        assert module.languages_with(LanguageStatus.EMPTY) == ["fr_FR"]
        assert module.written_languages == ["de_DE"]

    @pytest.mark.asyncio
    async def test_source_language_never_requested(
        self, base_config: LangPackConfig, service: FakeTranslationService
    ) -> None:
        """The source language is neither downloaded nor written."""
        service.add_module("core", ["en_US", "de_DE"])
        service.add_translation("core", "de_DE", "a=b\n")

        _ = await PackBuilder(base_config, transport=service.transport()).run()

        assert service.requested_paths() == [
            "core/?details",
            "core/translation/de_DE/?file",
        ]

    @pytest.mark.asyncio
    async def test_output_is_normalized_payload(
        self,
        base_config: LangPackConfig,
        output_dir: Path,
        service: FakeTranslationService,
    ) -> None:
        """Written files hold the repaired Latin-1 text."""
        service.add_module("core", ["fr_FR"])
        service.add_translation(
            "core", "fr_FR", "# header\r\nwindow=Fen\\\\u00eatre\r\nlabel=été\r\n"
        )

        _ = await PackBuilder(base_config, transport=service.transport()).run()

        content = (output_dir / "messages_fr_FR.properties").read_bytes()
        assert content == "window=Fen\\u00eatre\nlabel=été\n".encode("iso-8859-1")

    @pytest.mark.asyncio
    async def test_stale_file_removed(
        self,
        base_config: LangPackConfig,
        output_dir: Path,
        service: FakeTranslationService,
    ) -> None:
        """A pack left by a previous run is deleted when the language is now empty."""
        output_dir.mkdir(parents=True)
        stale = output_dir / "messages_fr_FR.properties"
        _ = stale.write_text("old=value\n", encoding="iso-8859-1")
        service.add_module("core", ["fr_FR"])
        service.add_translation("core", "fr_FR", "   \n# nothing\n")

        _ = await PackBuilder(base_config, transport=service.transport()).run()

        assert not stale.exists()

    @pytest.mark.asyncio
    async def test_malformed_language_does_not_stop_siblings(
        self,
        base_config: LangPackConfig,
        output_dir: Path,
        service: FakeTranslationService,
    ) -> None:
        """A language whose target cannot be built is skipped alone."""
        service.add_module("core", ["it\nIT", "de_DE"])
        service.add_translation("core", "de_DE", "ok=OK\n")

        report = await PackBuilder(base_config, transport=service.transport()).run()

        assert pack_names(output_dir) == ["messages_de_DE.properties"]
        assert report.modules[0].languages_with(LanguageStatus.SKIPPED) == ["it\nIT"]
        assert report.skipped_count == 1
        assert base_config.output.languages_file is not None
        assert read_manifest(base_config.output.languages_file) == "en_US,de_DE"

    @pytest.mark.asyncio
    async def test_malformed_module_is_skipped(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """A module whose target cannot be built is skipped and the next one runs."""
        languages_file = output_dir / "languages.properties"
        config = create_test_config(
            output_dir, modules=["bad\x00module", "core"], languages_file=languages_file
        )
        service.add_module("core", ["de_DE"])
        service.add_translation("core", "de_DE", "ok=OK\n")

        report = await PackBuilder(config, transport=service.transport()).run()

        assert report.skipped_modules == ["bad\x00module"]
        assert report.modules[1].written_languages == ["de_DE"]
        assert read_manifest(languages_file) == "en_US,de_DE"

    @pytest.mark.asyncio
    async def test_parse_failure_aborts_run(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """Invalid details JSON stops every following module."""
        config = create_test_config(output_dir, modules=["broken", "core"])
        service.set_details_body("broken", b"{not json")
        service.add_module("core", ["de_DE"])
        service.add_translation("core", "de_DE", "ok=OK\n")

        with pytest.raises(ResponseParseError):
            _ = await PackBuilder(config, transport=service.transport()).run()

        assert service.requested_paths() == ["broken/?details"]
        assert pack_names(output_dir) == []

    @pytest.mark.asyncio
    async def test_download_failure_aborts_run(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """A failed translation download stops the run and leaves no partial file."""
        config = create_test_config(
            output_dir, modules=["core", "other"], max_concurrent_downloads=1
        )
        service.add_module("core", ["de_DE"])
        service.add_module("other", ["fr_FR"])
        service.add_translation("other", "fr_FR", "ok=OK\n")

        with pytest.raises(NetworkError):
            _ = await PackBuilder(config, transport=service.transport()).run()

        assert "other/?details" not in service.requested_paths()
        assert pack_names(output_dir) == []

    @pytest.mark.asyncio
    async def test_read_error_mid_body_removes_partial_pack(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """A download cut after some lines were written leaves no pack behind."""
        config = create_test_config(output_dir, modules=["core"])
        service.add_module("core", ["fr_FR"])
        body = BrokenBodyStream(b"title=Titre\nok=OK\n")
        service.fail(
            "core/translation/fr_FR/", lambda request: httpx.Response(200, stream=body)
        )

        with pytest.raises(NetworkError, match="connection reset mid-body"):
            _ = await PackBuilder(config, transport=service.transport()).run()

        assert body.sent == 1
        assert pack_names(output_dir) == []

    @pytest.mark.asyncio
    async def test_failure_cancels_sibling_downloads(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """A hard failure cancels the other downloads of the module."""
        config = create_test_config(output_dir, modules=["core"])
        service.add_module("core", ["de_DE", "fr_FR"])
        started = asyncio.Event()

        async def slow_stream(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200, content=b"ok=OK\n")

        async def failing_stream(request: httpx.Request) -> httpx.Response:
            await started.wait()
            raise httpx.ReadError("connection reset", request=request)

        async def handler(request: httpx.Request) -> httpx.Response:
            if "/translation/de_DE/" in request.url.path:
                return await slow_stream(request)
            if "/translation/fr_FR/" in request.url.path:
                return await failing_stream(request)
            return service.handle(request)

        builder = PackBuilder(config, transport=httpx.MockTransport(handler))

        with pytest.raises(NetworkError, match="connection reset"):
            _ = await asyncio.wait_for(builder.run(), timeout=5)

        assert pack_names(output_dir) == []

    @pytest.mark.asyncio
    async def test_write_failure_aborts_run(
        self, base_config: LangPackConfig, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """A pack path that cannot be written is a hard failure."""
        service.add_module("core", ["de_DE"])
        service.add_translation("core", "de_DE", "ok=OK\n")
        (output_dir / "messages_de_DE.properties").mkdir(parents=True)

        with pytest.raises(OutputWriteError):
            _ = await PackBuilder(base_config, transport=service.transport()).run()

    @pytest.mark.asyncio
    async def test_write_failure_closes_download(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """A write error mid-download closes the response before the run aborts."""
        config = create_test_config(output_dir, modules=["core"])
        service.add_module("core", ["fr_FR"])
        body = BrokenBodyStream(b"title=Titre\n", b"ok=OK\n")
        service.fail(
            "core/translation/fr_FR/", lambda request: httpx.Response(200, stream=body)
        )

        with patch.object(
            EscapeNormalizer, "normalize", side_effect=OSError("No space left on device")
        ):
            with pytest.raises(OutputWriteError, match="No space left on device"):
                _ = await PackBuilder(config, transport=service.transport()).run()

        assert body.sent == 1
        assert body.closed is True
        assert pack_names(output_dir) == []

    @pytest.mark.asyncio
    async def test_manifest_not_written_when_disabled(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """Without a languages file only the packs are written."""
        config = create_test_config(output_dir, modules=["core"])
        service.add_module("core", ["de_DE"])
        service.add_translation("core", "de_DE", "ok=OK\n")

        report = await PackBuilder(config, transport=service.transport()).run()

        assert pack_names(output_dir) == ["messages_de_DE.properties"]
        assert report.languages_file is None
        assert not list(output_dir.parent.glob("*.properties"))

    @pytest.mark.asyncio
    async def test_manifest_lists_discovery_order(
        self, base_config: LangPackConfig, service: FakeTranslationService
    ) -> None:
        """Written languages appear in the order the service listed them."""
        service.add_module("core", ["pt_BR", "de_DE", "ja", "fr_FR"])
        for language in ["pt_BR", "de_DE", "ja", "fr_FR"]:
            service.add_translation("core", language, f"lang={language}\n")
        service.add_translation("core", "ja", "# empty\n")

        _ = await PackBuilder(base_config, transport=service.transport()).run()

        assert base_config.output.languages_file is not None
        assert read_manifest(base_config.output.languages_file) == "en_US,pt_BR,de_DE,fr_FR"

    @pytest.mark.asyncio
    async def test_manifest_last_module_wins(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """By default each module overwrites the languages file."""
        languages_file = output_dir / "languages.properties"
        config = create_test_config(
            output_dir, modules=["core", "viewer"], languages_file=languages_file
        )
        service.add_module("core", ["de_DE"])
        service.add_translation("core", "de_DE", "ok=OK\n")
        service.add_module("viewer", ["fr_FR"])
        service.add_translation("viewer", "fr_FR", "ok=OK\n")

        _ = await PackBuilder(config, transport=service.transport()).run()

        assert read_manifest(languages_file) == "en_US,fr_FR"
        assert pack_names(output_dir) == [
            "languages.properties",
            "messages_de_DE.properties",
            "messages_fr_FR.properties",
        ]

    @pytest.mark.asyncio
    async def test_manifest_merged_across_modules(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """With merging enabled every module contributes to the list once."""
        languages_file = output_dir.parent / "languages.properties"
        config = create_test_config(
            output_dir,
            modules=["core", "viewer"],
            languages_file=languages_file,
            merge_languages=True,
        )
        service.add_module("core", ["de_DE", "fr_FR"])
        service.add_translation("core", "de_DE", "ok=OK\n")
        service.add_translation("core", "fr_FR", "ok=OK\n")
        service.add_module("viewer", ["fr_FR", "es_ES"])
        service.add_translation("viewer", "fr_FR", "ok=OK\n")
        service.add_translation("viewer", "es_ES", "ok=OK\n")

        _ = await PackBuilder(config, transport=service.transport()).run()

        assert read_manifest(languages_file) == "en_US,de_DE,fr_FR,es_ES"

    @pytest.mark.asyncio
    async def test_manifest_for_module_without_translations(
        self, base_config: LangPackConfig, service: FakeTranslationService
    ) -> None:
        """A module with no translated language still writes the source language."""
        service.add_module("core", ["en_US"])

        _ = await PackBuilder(base_config, transport=service.transport()).run()

        assert base_config.output.languages_file is not None
        assert read_manifest(base_config.output.languages_file) == "en_US"

    @pytest.mark.asyncio
    async def test_sequential_downloads(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """With one download slot the languages are fetched in order."""
        config = create_test_config(
            output_dir, modules=["core"], max_concurrent_downloads=1
        )
        service.add_module("core", ["de_DE", "fr_FR", "es_ES"])
        for language in ["de_DE", "fr_FR", "es_ES"]:
            service.add_translation("core", language, "ok=OK\n")

        _ = await PackBuilder(config, transport=service.transport()).run()

        assert service.requested_paths()[1:] == [
            "core/translation/de_DE/?file",
            "core/translation/fr_FR/?file",
            "core/translation/es_ES/?file",
        ]

    @pytest.mark.asyncio
    async def test_base_url_without_trailing_slash(
        self, output_dir: Path, service: FakeTranslationService
    ) -> None:
        """The separator between base URL and module is added when missing."""
        config = create_test_config(
            output_dir,
            modules=["core"],
            base_url="https://tx.example.com/api/2/project/demo/resource",
        )
        service.add_module("core", [])

        _ = await PackBuilder(config, transport=service.transport()).run()

        assert service.requested_paths() == ["core/?details"]
