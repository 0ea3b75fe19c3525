"""
Main entry point for the language pack builder.

This module parses the command line, sets up logging, loads and merges the
configuration, runs the builder and reports the outcome.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path

import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config.manager import ConfigManager
from .config.schema import LangPackConfig
from .packs.builder import BuildReport, LanguageStatus, PackBuilder
from .utils.cli.args import ParsedArgs, parse_arguments
from .utils.core.exceptions import ConfigurationError, LangPackError

LOG_FILES = ["langpack-builder.log", "langpack-builder-errors.log"]

console = Console()


def rotate_logs_on_startup(logs_dir: Path) -> None:
    """
    Rotate existing log files on startup with timestamp-based naming.

    Args:
        logs_dir: Directory containing log files
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    for log_file in LOG_FILES:
        log_path = logs_dir / log_file
        if log_path.exists():
            backup_path = logs_dir / f"{log_file}.{timestamp}"
            try:
                _ = log_path.rename(backup_path)
            except OSError as e:
                print(f"Warning: Failed to rotate {log_file}: {e}", file=sys.stderr)


def cleanup_old_logs(logs_dir: Path, max_files: int = 10) -> None:
    """
    Clean up old timestamped log files, keeping only the most recent ones.

    Args:
        logs_dir: Directory containing log files
        max_files: Maximum number of timestamped log files to keep per type
    """
    for log_type in LOG_FILES:
        timestamped_files = [
            file_path
            for file_path in logs_dir.glob(f"{log_type}.*")
            if file_path.name != log_type
        ]

        # Newest first
        timestamped_files.sort(key=lambda x: x.stat().st_mtime, reverse=True)

        for file_path in timestamped_files[max_files:]:
            try:
                file_path.unlink()
            except OSError as e:
                print(f"Warning: Failed to remove {file_path.name}: {e}", file=sys.stderr)


def setup_logging(log_folder: Path | None = None, verbose: bool = False) -> None:
    """
    Configure console logging and, when a log folder is given, rotating log files.

    Args:
        log_folder: Folder for log files, or None for console only
        verbose: Show debug messages on the console
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
    )
    simple_formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    if log_folder is not None:
        log_folder.mkdir(parents=True, exist_ok=True)
        rotate_logs_on_startup(log_folder)
        cleanup_old_logs(log_folder, max_files=10)

        file_handler = logging.handlers.RotatingFileHandler(
            log_folder / "langpack-builder.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)

        error_handler = logging.handlers.RotatingFileHandler(
            log_folder / "langpack-builder-errors.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)

        root_logger.addHandler(file_handler)
        root_logger.addHandler(error_handler)

    # Request lines are logged by the fetcher itself
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def load_configuration(args: ParsedArgs) -> LangPackConfig:
    """
    Build the run configuration from the config file and the command line.

    Raises:
        ConfigurationError: If the file or the merged settings are invalid
    """
    try:
        if args.config_file is not None:
            config = ConfigManager.load_config(args.config_file)
        else:
            config = LangPackConfig()
        return ConfigManager.apply_overrides(config, args.config_overrides())
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration ({e.error_count()} error(s)): {e}",
            user_message="Please check the configuration file and command-line options",
        ) from e
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}",
            user_message="Please check the configuration file and command-line options",
        ) from e


def print_summary(report: BuildReport) -> None:
    """Print a per-module table of the run."""
    table = Table(title="Language Packs")
    table.add_column("Module", style="cyan")
    table.add_column("Written", style="green")
    table.add_column("Empty", style="yellow")
    table.add_column("Skipped", style="red")

    for module in report.modules:
        if module.skipped:
            table.add_row(module.module, "", "", f"module: {module.skip_reason}")
            continue
        table.add_row(
            module.module,
            ", ".join(module.languages_with(LanguageStatus.WRITTEN)) or "-",
            ", ".join(module.languages_with(LanguageStatus.EMPTY)) or "-",
            ", ".join(module.languages_with(LanguageStatus.SKIPPED)) or "-",
        )

    console.print(table)
    if report.languages_file is not None:
        console.print(f"Languages file: {report.languages_file}")


async def main(argv: list[str] | None = None) -> int:
    """
    Run the builder with command-line arguments.

    Returns:
        Process exit status: 0 on completion, 1 on configuration or build failure
    """
    args = parse_arguments(argv)
    setup_logging(args.log_folder, args.verbose)

    try:
        config = load_configuration(args)
    except ConfigurationError as e:
        logger.error(str(e))
        logger.error(e.user_message)
        return 1

    if not config.transifex.base_url or config.output.output_directory is None:
        logger.warning("Base URL or output directory not set, nothing to build")

    try:
        report = await PackBuilder(config).run()
    except LangPackError as e:
        logger.exception(f"Build aborted: {e}")
        logger.error(e.user_message)
        return 1

    if report.performed:
        print_summary(report)
    return 0
