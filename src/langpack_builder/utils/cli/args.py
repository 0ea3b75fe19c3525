"""
Command-line argument parsing for the language pack builder.

Every option mirrors a configuration key. Options that are not given keep
the value from the configuration file, if any.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import NamedTuple

from ..core.version import get_version

CREDENTIAL_ENV_VAR = "TRANSIFEX_CREDENTIAL"


class PathValidationError(Exception):
    """Raised when a path validation fails."""

    pass


class ParsedArgs(NamedTuple):
    """Container for parsed command-line arguments."""

    config_file: Path | None
    log_folder: Path | None
    verbose: bool
    base_url: str | None
    credential: str | None
    output_directory: Path | None
    languages_file: Path | None
    modules: list[str] | None
    source_language: str | None
    max_concurrent_downloads: int | None
    timeout: float | None
    merge_languages: bool | None

    def config_overrides(self) -> dict[str, dict[str, object]]:
        """Group the configuration options by configuration section."""
        return {
            "transifex": {
                "base_url": self.base_url,
                "credential": self.credential,
                "timeout": self.timeout,
            },
            "output": {
                "output_directory": self.output_directory,
                "languages_file": self.languages_file,
                "merge_languages": self.merge_languages,
            },
            "build": {
                "modules": self.modules,
                "source_language": self.source_language,
                "max_concurrent_downloads": self.max_concurrent_downloads,
            },
        }


def validate_config_file_path(config_file_str: str) -> Path:
    """
    Validate configuration file path.

    Args:
        config_file_str: String path to configuration file

    Returns:
        Resolved Path object for the configuration file

    Raises:
        PathValidationError: If the configuration file path is invalid
    """
    try:
        config_file = Path(config_file_str).expanduser().resolve()
    except (OSError, ValueError) as e:
        raise PathValidationError(f"Invalid config file path: {e}") from e

    if not config_file.exists():
        raise PathValidationError(f"Config file does not exist: {config_file}")

    if not config_file.is_file():
        raise PathValidationError(
            f"Config file path exists but is not a file: {config_file}"
        )

    return config_file


def validate_folder_path(path_str: str, folder_name: str) -> Path:
    """
    Validate and resolve a folder path.

    Args:
        path_str: String representation of the folder path
        folder_name: Name of the folder (for error messages)

    Returns:
        Resolved absolute path to the folder

    Raises:
        PathValidationError: If the path is invalid
    """
    try:
        path = Path(path_str).expanduser().resolve()
    except (OSError, ValueError) as e:
        raise PathValidationError(f"Invalid {folder_name} path: {e}") from e

    if path.exists() and not path.is_dir():
        raise PathValidationError(
            f"{folder_name.capitalize()} path exists but is not a directory: {path}"
        )

    return path


def validate_file_path(path_str: str, file_name: str) -> Path:
    """
    Validate and resolve the path of a file that will be written.

    Raises:
        PathValidationError: If the path points to a directory
    """
    try:
        path = Path(path_str).expanduser().resolve()
    except (OSError, ValueError) as e:
        raise PathValidationError(f"Invalid {file_name} path: {e}") from e

    if path.is_dir():
        raise PathValidationError(
            f"{file_name.capitalize()} path exists but is not a file: {path}"
        )

    return path


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="langpack-builder",
        description="Download translations and build messages_<code>.properties language packs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  langpack-builder --config-file langpacks.yml
    Run with the settings of a configuration file

  langpack-builder --base-url https://www.transifex.com/api/2/project/weasis/resource/ \\
      --output-directory target/i18n --module weasis-core-ui --module weasis-base-ui
    Download two modules without a configuration file

  langpack-builder --config-file langpacks.yml --languages-file target/i18n/languages.properties
    Also write the list of translated languages

The credential (username:password) defaults to the {CREDENTIAL_ENV_VAR}
environment variable.
""",
    )

    _ = parser.add_argument(
        "--config-file",
        type=str,
        default=None,
        help="Path to a YAML configuration file",
        metavar="PATH",
    )
    _ = parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Base URL of the project resources on the translation service",
        metavar="URL",
    )
    _ = parser.add_argument(
        "--credential",
        type=str,
        default=os.environ.get(CREDENTIAL_ENV_VAR),
        help=f"Credential as username:password (default: ${CREDENTIAL_ENV_VAR})",
        metavar="USER:PASSWORD",
    )
    _ = parser.add_argument(
        "--output-directory",
        type=str,
        default=None,
        help="Directory where the language packs are written (created if missing)",
        metavar="PATH",
    )
    _ = parser.add_argument(
        "--languages-file",
        type=str,
        default=None,
        help="Properties file receiving the list of translated languages",
        metavar="PATH",
    )
    _ = parser.add_argument(
        "--module",
        dest="modules",
        action="append",
        default=None,
        help="Resource to download; repeat for several modules",
        metavar="SLUG",
    )
    _ = parser.add_argument(
        "--source-language",
        type=str,
        default=None,
        help="Code of the source language, never downloaded (default: en_US)",
        metavar="CODE",
    )
    _ = parser.add_argument(
        "--max-concurrent-downloads",
        type=int,
        default=None,
        help="Number of translation files downloaded in parallel (default: 4)",
        metavar="N",
    )
    _ = parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds (default: 30)",
        metavar="SECONDS",
    )
    _ = parser.add_argument(
        "--merge-languages",
        action="store_true",
        default=None,
        help="List the languages of all modules in the languages file",
    )
    _ = parser.add_argument(
        "--log-folder",
        type=str,
        default=None,
        help="Folder for log files (console only when omitted)",
        metavar="PATH",
    )
    _ = parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug messages on the console",
    )
    _ = parser.add_argument(
        "--version", action="version", version=f"%(prog)s {get_version()}"
    )

    return parser


def parse_arguments(args: list[str] | None = None) -> ParsedArgs:
    """
    Parse command-line arguments.

    Args:
        args: List of arguments to parse (defaults to sys.argv[1:])

    Returns:
        ParsedArgs containing validated and resolved paths

    Raises:
        SystemExit: If argument parsing or path validation fails, or --help is requested
    """
    parser = create_argument_parser()
    parsed = parser.parse_args(args)

    config_file_str: str | None = getattr(parsed, "config_file", None)
    log_folder_str: str | None = getattr(parsed, "log_folder", None)
    output_directory_str: str | None = getattr(parsed, "output_directory", None)
    languages_file_str: str | None = getattr(parsed, "languages_file", None)

    try:
        config_file = (
            validate_config_file_path(config_file_str) if config_file_str else None
        )
        log_folder = (
            validate_folder_path(log_folder_str, "log folder") if log_folder_str else None
        )
        output_directory = (
            validate_folder_path(output_directory_str, "output directory")
            if output_directory_str
            else None
        )
        languages_file = (
            validate_file_path(languages_file_str, "languages file")
            if languages_file_str
            else None
        )
    except PathValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    return ParsedArgs(
        config_file=config_file,
        log_folder=log_folder,
        verbose=bool(getattr(parsed, "verbose", False)),
        base_url=getattr(parsed, "base_url", None),
        credential=getattr(parsed, "credential", None),
        output_directory=output_directory,
        languages_file=languages_file,
        modules=getattr(parsed, "modules", None),
        source_language=getattr(parsed, "source_language", None),
        max_concurrent_downloads=getattr(parsed, "max_concurrent_downloads", None),
        timeout=getattr(parsed, "timeout", None),
        merge_languages=getattr(parsed, "merge_languages", None),
    )
