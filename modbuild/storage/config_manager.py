"""
Manages loading, validation, and creation of the INI build configuration file.

The file is optional. Scalar settings live in the DEFAULT section and each
dependency in its own `[artifact:<name>]` section, in resolution order:

    [DEFAULT]
    compiler = javac

    [artifact:opentest4j]
    repository = https://repo1.maven.org/maven2/org/opentest4j
    version = 1.0.0
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape

from modbuild.exceptions import ConfigurationError
from modbuild.models.config import BuildConfig

log = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("modbuild.ini")
ARTIFACT_SECTION_PREFIX = "artifact:"


class ConfigManager:
    """Handles all operations related to the build's INI config file."""

    def __init__(self, config_file_path: Path = DEFAULT_CONFIG_FILE):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> BuildConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated BuildConfig object. A missing file yields the defaults.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file '{self.config_file_path}'", e
                ) from e
            config_from_file = self._get_config_as_dict()
            log.debug(f"Loaded configuration from [dim]{self.config_file_path}[/dim]")
        else:
            log.debug(
                f"No configuration file at '{self.config_file_path}', using defaults."
            )

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return BuildConfig(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError("Configuration validation failed", e) from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Creates and saves a new configuration file holding every default.

        Args:
            settings: Optional values that replace the defaults.
        """
        config = BuildConfig(**(settings or {}))
        parser = configparser.ConfigParser(interpolation=None)

        for key in sorted(BuildConfig.get_ini_keys()):
            parser["DEFAULT"][key] = str(getattr(config, key))

        for artifact in config.artifacts:
            section = f"{ARTIFACT_SECTION_PREFIX}{artifact.name}"
            parser[section] = {
                "repository": artifact.repository,
                "version": artifact.version,
                "extension": artifact.extension,
            }

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                parser.write(configfile)
        except OSError as e:
            raise ConfigurationError(
                f"Failed to save configuration file '{self.config_file_path}'", e
            ) from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the DEFAULT section and the artifact sections into a dictionary."""
        defaults = self._parser.defaults()
        unknown = set(defaults) - BuildConfig.get_ini_keys()
        if unknown:
            log.warning(
                f"[yellow]Ignoring unknown configuration keys:[/yellow] "
                f"{', '.join(sorted(unknown))}"
            )
        result: dict[str, Any] = {
            key: value for key, value in defaults.items() if key not in unknown
        }

        artifacts = []
        for section in self._parser.sections():
            if not section.startswith(ARTIFACT_SECTION_PREFIX):
                log.warning(
                    f"[yellow]Ignoring unknown section:[/yellow] {escape(f'[{section}]')}"
                )
                continue
            own = self._parser[section]
            artifacts.append(
                {
                    "name": section[len(ARTIFACT_SECTION_PREFIX) :].strip(),
                    "repository": own.get("repository", ""),
                    "version": own.get("version", ""),
                    "extension": own.get("extension", "jar"),
                }
            )
        if artifacts:
            result["artifacts"] = artifacts
        return result

    def get_config_as_dict(self) -> dict[str, Any]:
        """Returns the effective configuration as plain values for display."""
        config = self.load_config()
        data: dict[str, Any] = {
            key: str(getattr(config, key)) for key in sorted(BuildConfig.get_ini_keys())
        }
        data["artifacts"] = [artifact.uri for artifact in config.artifacts]
        return data
