"""Configuration manager for loading and saving gb-tool config."""

import os
from pathlib import Path

import yaml

from gbtool.config.schema import GlobalConfig
from gbtool.utils.errors import InvalidConfigError, MissingApiKeyError
from gbtool.utils.paths import get_cache_file, get_config_dir

API_KEY_ENV_VAR = "GIANTBOMB_TOKEN"


class ConfigManager:
    """Manages the gb-tool configuration file."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the config manager.

        Args:
            config_dir: Optional custom config directory. Defaults to XDG config dir.
        """
        self.config_dir = config_dir if config_dir is not None else get_config_dir()
        self.config_file = self.config_dir / "config.yaml"

    def load_config(self) -> GlobalConfig:
        """Load and validate global configuration.

        Returns:
            Validated GlobalConfig instance

        Raises:
            InvalidConfigError: If config is invalid
        """
        if not self.config_file.exists():
            config = GlobalConfig()
            self.save_config(config)
            return config

        try:
            with open(self.config_file) as f:
                data = yaml.safe_load(f) or {}
            return GlobalConfig(**data)
        except Exception as e:
            raise InvalidConfigError(
                f"Invalid configuration in {self.config_file}: {e}"
            ) from e

    def save_config(self, config: GlobalConfig) -> None:
        """Save global configuration.

        Args:
            config: GlobalConfig instance to save
        """
        data = config.model_dump(mode="json")

        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def set_value(self, key: str, value: str) -> GlobalConfig:
        """Set a single top-level config value from its string form.

        Args:
            key: Config field name
            value: New value; converted and validated by the schema

        Returns:
            Updated configuration

        Raises:
            InvalidConfigError: If the key is unknown or the value invalid
        """
        config = self.load_config()
        if key not in GlobalConfig.model_fields:
            raise InvalidConfigError(f"Unknown config key: {key}")

        data = config.model_dump()
        data[key] = None if value.lower() in ("none", "null", "") else value
        try:
            updated = GlobalConfig(**data)
        except Exception as e:
            raise InvalidConfigError(f"Invalid value for {key}: {e}") from e

        self.save_config(updated)
        return updated


def resolve_api_key(config: GlobalConfig, override: str | None = None) -> str:
    """Pick the API key from the CLI, environment, or config file, in that order.

    Raises:
        MissingApiKeyError: If no key is available anywhere
    """
    api_key = override or os.environ.get(API_KEY_ENV_VAR) or config.api_key
    if not api_key:
        raise MissingApiKeyError(
            f"Must specify --api-key or set the {API_KEY_ENV_VAR} environment variable"
        )
    return api_key


def resolve_cache_file(config: GlobalConfig) -> Path:
    """Location of the API response cache."""
    return config.cache_file if config.cache_file is not None else get_cache_file()
