"""
Configuration loader for KafePano
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..utils.errors import ConfigurationError
from ..widgets.clock import LOCALES

logger = logging.getLogger(__name__)

# Maximum config file size (1MB should be plenty for YAML configs)
MAX_CONFIG_SIZE = 1024 * 1024

BACKENDS = ("firebase", "memory")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Sections whose string values may reference ${ENV_VARS}
EXPANDED_SECTIONS = ("store", "auth", "assets")
ENV_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigLoader:
    """Loads and validates YAML configuration files"""

    def load(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Validated configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid or too large
            ConfigurationError: If a value is missing or out of range
            PermissionError: If config file is not readable
        """
        resolved_path = Path(config_path).expanduser().resolve()

        self._validate_config_path(resolved_path)

        if not resolved_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {resolved_path}")

        file_size = resolved_path.stat().st_size
        if file_size > MAX_CONFIG_SIZE:
            raise ValueError(
                f"Configuration file too large: {file_size} bytes "
                f"(maximum {MAX_CONFIG_SIZE} bytes)"
            )

        try:
            with open(resolved_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except PermissionError as e:
            raise PermissionError(f"Cannot read configuration file: {e}")

        config = self.load_dict(config)
        logger.info(f"Loaded configuration from {resolved_path}")
        return config

    def load_dict(self, config: Any) -> Dict[str, Any]:
        """Validate an already parsed configuration and apply defaults."""
        self._validate(config)
        config = self._apply_defaults(config)
        self._expand_env(config)
        self._check_values(config)
        return config

    def _validate_config_path(self, config_path: Path) -> None:
        """
        Validate that the configuration file path is safe to load.

        Args:
            config_path: Resolved absolute path to config file

        Raises:
            ValueError: If path is not safe to load
        """
        if config_path.is_dir():
            raise ValueError(f"Path is a directory, not a file: {config_path}")

        if config_path.suffix.lower() not in [".yaml", ".yml"]:
            logger.warning(
                f"Configuration file has unexpected extension: {config_path.suffix}. "
                f"Expected .yaml or .yml"
            )

        logger.debug(f"Configuration path validated: {config_path}")

    def _validate(self, config: Any) -> None:
        """Validate configuration structure"""
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a dictionary")

        for section in ("store", "auth", "assets", "display", "logging"):
            if section in config and not isinstance(config[section], dict):
                raise ValueError(f"'{section}' must be a dictionary")

    def _apply_defaults(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply default values to configuration"""
        store = config.setdefault("store", {})
        store.setdefault("backend", "firebase")
        store.setdefault("database_url", None)
        store.setdefault("credentials", None)

        auth = config.setdefault("auth", {})
        auth.setdefault("api_key", None)

        assets = config.setdefault("assets", {})
        assets.setdefault("cloud_name", "")
        assets.setdefault("upload_preset", "")

        display = config.setdefault("display", {})
        display.setdefault("locale", "tr")
        display.setdefault("output", None)
        display.setdefault("poll_interval", 0.01)

        logging_config = config.setdefault("logging", {})
        logging_config.setdefault("level", "INFO")

        return config

    def _expand_env(self, config: Dict[str, Any]) -> None:
        """Replace ${VAR} references with environment values"""
        for section in EXPANDED_SECTIONS:
            values = config[section]
            for key, value in values.items():
                if isinstance(value, str):
                    values[key] = expand_env_vars(value, f"{section}.{key}")

    def _check_values(self, config: Dict[str, Any]) -> None:
        """Semantic checks that need defaults and env values in place"""
        store = config["store"]
        if store["backend"] not in BACKENDS:
            raise ConfigurationError(
                f"store.backend must be one of {', '.join(BACKENDS)}, got '{store['backend']}'"
            )
        if store["backend"] == "firebase" and not store["database_url"]:
            raise ConfigurationError("store.database_url is required for the firebase backend")

        display = config["display"]
        if display["locale"] not in LOCALES:
            raise ConfigurationError(
                f"display.locale must be one of {', '.join(LOCALES)}, got '{display['locale']}'"
            )
        poll_interval = display["poll_interval"]
        if isinstance(poll_interval, bool) or not isinstance(poll_interval, (int, float)) \
                or poll_interval <= 0:
            raise ConfigurationError(f"display.poll_interval must be a positive number, got {poll_interval!r}")

        level = str(config["logging"]["level"]).upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(
                f"logging.level must be one of {', '.join(LOG_LEVELS)}, got '{level}'"
            )
        config["logging"]["level"] = level


def expand_env_vars(value: str, name: str = "value") -> str:
    """
    Expand ${VAR} references from the environment.

    Raises:
        ConfigurationError: If a referenced variable is not set
    """

    def _replace(match: "re.Match") -> str:
        var = match.group(1)
        if var not in os.environ:
            raise ConfigurationError(f"Environment variable '{var}' referenced by {name} is not set")
        return os.environ[var]

    return ENV_VAR_RE.sub(_replace, value)


def collect_warnings(config: Dict[str, Any]) -> List[str]:
    """Non-fatal remarks about a loaded configuration."""
    warnings = []
    if config["store"]["backend"] == "memory":
        warnings.append("store.backend is 'memory': content is not persisted or shared")
    if config["store"]["backend"] == "firebase" and not config["store"]["credentials"]:
        warnings.append("store.credentials not set, using application default credentials")
    if not config["auth"]["api_key"]:
        warnings.append("auth.api_key not set: admin commands cannot sign in")
    if not config["assets"]["cloud_name"] or not config["assets"]["upload_preset"]:
        warnings.append("assets.cloud_name/upload_preset not set: photo and logo uploads are disabled")
    if not config["display"]["output"]:
        warnings.append("display.output not set: the display page is rendered but not written")
    return warnings
