"""XDG-compliant path helpers for gb-tool."""

from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "gb-tool"


def get_config_dir() -> Path:
    """Get the configuration directory (e.g. ~/.config/gb-tool)."""
    return Path(user_config_dir(APP_NAME))


def get_cache_dir() -> Path:
    """Get the cache directory (e.g. ~/.cache/gb-tool)."""
    return Path(user_cache_dir(APP_NAME))


def get_cache_file() -> Path:
    """Get the default path of the API response cache."""
    return get_cache_dir() / "gb-tool.cache.json"
