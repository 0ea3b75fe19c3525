"""Configuration manager for the language pack builder.

This module loads YAML configuration files, validates them against the
Pydantic schema, and layers command-line overrides on top.
"""

import logging
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from .schema import LangPackConfig


logger = logging.getLogger(__name__)


class ConfigManager:
    """Loading and merging of builder configuration."""

    @staticmethod
    def load_config(config_path: Path) -> LangPackConfig:
        """
        Load and validate configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            LangPackConfig: Validated configuration object

        Raises:
            FileNotFoundError: If the config file doesn't exist
            yaml.YAMLError: If the YAML syntax is invalid
            ValueError: If the file does not contain a mapping
            ValidationError: If the configuration fails Pydantic validation
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as f:
                raw_config_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if raw_config_data is None:
            config_data: dict[str, object] = {}
        elif isinstance(raw_config_data, dict):
            config_data = raw_config_data  # pyright: ignore[reportUnknownVariableType]
        else:
            raise ValueError(
                f"Configuration file must contain a YAML dictionary, got {type(raw_config_data).__name__}"
            )

        logger.debug(f"Loaded configuration from {config_path}")
        return LangPackConfig.model_validate(config_data)

    @staticmethod
    def apply_overrides(
        config: LangPackConfig, overrides: Mapping[str, Mapping[str, object]]
    ) -> LangPackConfig:
        """
        Return a new configuration with override values applied.

        Overrides are grouped by section (``transifex``, ``output``, ``build``).
        ``None`` values are ignored so that unset command-line options keep the
        value from the file.

        Raises:
            ValidationError: If the merged configuration is invalid
        """
        merged = config.model_dump()

        for section, values in overrides.items():
            match merged.get(section):
                case dict() as current:
                    for key, value in values.items():
                        if value is not None:
                            current[key] = value
                case _:
                    raise KeyError(f"Unknown configuration section: {section}")

        try:
            return LangPackConfig.model_validate(merged)
        except ValidationError as e:
            logger.debug(f"Configuration overrides rejected: {e}")
            raise
