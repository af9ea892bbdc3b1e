"""Utility functions and helpers for gb-tool."""

from gbtool.utils.errors import (
    AnchorNotFoundError,
    ApiError,
    ApiRequestError,
    ConfigError,
    EmptyResponseError,
    EpisodeNotFoundError,
    GBToolError,
    InputError,
    InvalidConfigError,
    MissingApiKeyError,
    NotFoundError,
    SaveError,
    SeasonNotFoundError,
    ShowNotFoundError,
    TransportError,
    UnsupportedSpecError,
    VideoNotFoundError,
)
from gbtool.utils.paths import (
    get_cache_dir,
    get_cache_file,
    get_config_dir,
)

__all__ = [
    # Errors
    "GBToolError",
    "ConfigError",
    "InvalidConfigError",
    "MissingApiKeyError",
    "ApiRequestError",
    "TransportError",
    "ApiError",
    "EmptyResponseError",
    "NotFoundError",
    "ShowNotFoundError",
    "VideoNotFoundError",
    "SeasonNotFoundError",
    "EpisodeNotFoundError",
    "AnchorNotFoundError",
    "InputError",
    "UnsupportedSpecError",
    "SaveError",
    # Paths
    "get_config_dir",
    "get_cache_dir",
    "get_cache_file",
]
