"""Configuration loading from YAML and the process environment."""

import logging
import os
from collections.abc import Mapping
from typing import Any

import yaml
from pydantic import ValidationError

from redlist.config.models import RedListConfig
from redlist.system.path_resolver import PathResolver

logger = logging.getLogger(__name__)

# Environment variables consulted at startup, mapped to config fields
ENV_OVERRIDES = {
    "API_URL": "api_url",
    "TOKEN": "token",
    "VIEW_LIMIT": "view_limit",
}


class ConfigurationError(ValueError):
    """Configuration is missing required settings or is malformed."""


class ConfigManager:
    """Loads configuration from an optional YAML file overlaid with environment variables."""

    def __init__(
        self,
        path_resolver: PathResolver | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        """Initialize ConfigManager.

        Args:
            path_resolver: Optional PathResolver instance. If None, creates a new one.
            environ: Environment mapping to read overrides from. Defaults to ``os.environ``.
        """
        self.path_resolver = path_resolver or PathResolver()
        self.environ = os.environ if environ is None else environ
        self.config_path = self.path_resolver.get_redlist_config_path()

    def load(self, **overrides: Any) -> RedListConfig:
        """Load configuration.

        Precedence, lowest to highest: YAML file, environment, ``overrides``.

        Returns:
            RedListConfig: Loaded and validated configuration

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        raw_config = self._read_yaml()
        raw_config.update(self._read_environment())
        raw_config.update({k: v for k, v in overrides.items() if v is not None})

        missing = [name for name in ("api_url", "token") if not raw_config.get(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)} "
                f"(set {', '.join(n.upper() for n in missing)} or edit {self.config_path})"
            )

        return self._create_config_object(raw_config)

    def _read_yaml(self) -> dict[str, Any]:
        """Read the YAML config file, if there is one.

        Returns:
            dict: Raw configuration dictionary
        """
        if not self.config_path.exists():
            logger.debug("No configuration file at %s", self.config_path)
            return {}

        try:
            data = yaml.safe_load(self.config_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping in {self.config_path}")
        return data

    def _read_environment(self) -> dict[str, Any]:
        return {
            field_name: self.environ[env_name]
            for env_name, field_name in ENV_OVERRIDES.items()
            if self.environ.get(env_name)
        }

    def _create_config_object(self, raw_config: dict[str, Any]) -> RedListConfig:
        """Create RedListConfig object from dictionary.

        Args:
            raw_config: Configuration dictionary

        Returns:
            RedListConfig: Typed configuration object
        """
        expected_fields = set(RedListConfig.model_fields.keys())
        filtered_config = {k: v for k, v in raw_config.items() if k in expected_fields}

        unexpected_fields = set(raw_config.keys()) - expected_fields
        if unexpected_fields:
            logger.warning("Ignoring unknown config fields: %s", sorted(unexpected_fields))

        try:
            return RedListConfig(**filtered_config)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e
