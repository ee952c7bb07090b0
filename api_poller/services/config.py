"""Configuration service: defaults, JSON config file and command-line overrides."""

import json
from dataclasses import replace
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import structlog

from ..models import OutputMode, PollerConfig
from .errors import ConfigurationError

log = structlog.stdlib.get_logger()

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


def parse_output_mode(value: str | OutputMode) -> OutputMode:
    """Turn a mode name into an OutputMode.

    Raises:
        ConfigurationError: If `value` is not one of the known modes
    """
    if isinstance(value, OutputMode):
        return value
    try:
        return OutputMode(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown output mode: {value!r}",
            setting="output_mode",
            current_value=value,
            expected=", ".join(mode.value for mode in OutputMode),
        ) from None


class ConfigurationService:
    """Service for building and validating the poller configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path | None = config_path
        log.debug("Configuration service initialized", config_path=str(config_path) if config_path else None)

    def get_default_config(self) -> PollerConfig:
        """Get default configuration."""
        return PollerConfig()

    def load_config(self, overrides: dict[str, Any] | None = None) -> PollerConfig:
        """Build the run configuration.

        Defaults are layered with the config file (when one was given and
        exists) and then with `overrides`; keys whose value is None are ignored.

        Raises:
            ConfigurationError: If the file is unreadable or the result is invalid
        """
        config = self.get_default_config()

        if self.config_path is not None:
            if self.config_path.exists():
                config = self._apply(config, self._read_file(self.config_path))
                log.info("Configuration file loaded", config_path=str(self.config_path))
            else:
                log.info("Configuration file not found, using defaults", config_path=str(self.config_path))

        if overrides:
            config = self._apply(config, overrides)

        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            log.error("Invalid configuration", errors=validation_result.errors)
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(validation_result.errors)}"
            )

        return config

    def save_config(self, config: PollerConfig, path: Path | None = None) -> Path:
        """Save configuration to a JSON file."""
        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            raise ConfigurationError(f"Invalid configuration: {'; '.join(validation_result.errors)}")

        target = path or self.config_path
        if target is None:
            raise ConfigurationError("No configuration file path given", setting="config_path")

        target.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(target, "w", encoding="utf-8") as f:
                json.dump(self._config_to_dict(config), f, indent=2)
        except OSError as e:
            log.error("Failed to save configuration", config_path=str(target), error=str(e))
            raise

        log.info("Configuration saved successfully", config_path=str(target))
        return target

    def validate_config(self, config: PollerConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        # bool is an int subclass; reject it explicitly
        if (not isinstance(config.frequency_seconds, int) or isinstance(config.frequency_seconds, bool)
                or config.frequency_seconds <= 0):
            errors.append("frequency_seconds must be a positive integer")

        if (not isinstance(config.output_path, Path) or not config.output_path.name
                or "\x00" in str(config.output_path)):
            errors.append("output_path must be a file path")

        if not isinstance(config.output_mode, OutputMode):
            errors.append(f"output_mode must be one of: {', '.join(m.value for m in OutputMode)}")

        parsed = urlparse(config.source_url) if isinstance(config.source_url, str) else None
        if parsed is None or parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("source_url must be an http(s) URL")

        if not isinstance(config.request_timeout, (int, float)) or config.request_timeout <= 0:
            errors.append("request_timeout must be a positive number")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")

        if config.max_iterations is not None:
            if (not isinstance(config.max_iterations, int) or isinstance(config.max_iterations, bool)
                    or config.max_iterations < 1):
                errors.append("max_iterations must be a positive integer or unset")

        return ValidationResult(len(errors) == 0, errors)

    def _read_file(self, path: Path) -> dict[str, Any]:
        """Read the raw settings dictionary from a JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            log.error("Failed to parse configuration file", config_path=str(path), error=str(e))
            raise ConfigurationError(f"Configuration file is not valid JSON: {e}", setting="config") from e
        except OSError as e:
            log.error("Failed to read configuration file", config_path=str(path), error=str(e))
            raise ConfigurationError(f"Cannot read configuration file: {e}", setting="config") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a JSON object, got {type(data).__name__}",
                setting="config",
            )
        return data

    def _apply(self, config: PollerConfig, data: dict[str, Any]) -> PollerConfig:
        """Return `config` with the non-None values in `data` applied."""
        known = {
            "frequency_seconds",
            "output_path",
            "output_mode",
            "source_url",
            "request_timeout",
            "log_level",
            "max_iterations",
        }
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}", setting="config")

        changes: dict[str, Any] = {key: value for key, value in data.items() if value is not None}

        if "output_path" in changes:
            changes["output_path"] = Path(str(changes["output_path"]))
        if "output_mode" in changes:
            changes["output_mode"] = parse_output_mode(changes["output_mode"])
        if "log_level" in changes:
            changes["log_level"] = str(changes["log_level"]).upper()

        return replace(config, **changes)

    def _config_to_dict(self, config: PollerConfig) -> dict[str, str | int | float | None]:
        """Convert PollerConfig to dictionary for JSON serialization."""
        return {
            "frequency_seconds": config.frequency_seconds,
            "output_path": str(config.output_path),
            "output_mode": config.output_mode.value,
            "source_url": config.source_url,
            "request_timeout": config.request_timeout,
            "log_level": config.log_level,
            "max_iterations": config.max_iterations,
        }
