"""Configuration schema models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
Quality = Literal["highest", "auto", "hd", "high", "low"]

DEFAULT_BASE_URL = "https://www.giantbomb.com/api/"


class GlobalConfig(BaseModel):
    """Global gb-tool configuration."""

    version: str = "1"
    api_key: str | None = None  # GIANTBOMB_TOKEN or --api-key take precedence
    base_url: str = DEFAULT_BASE_URL
    log_level: LogLevel = "INFO"

    # Request pacing
    rate_limit_ms: int = Field(default=1000, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=1, ge=1)

    # Response cache
    cache_file: Path | None = None  # None: platform cache dir
    cache_ttl_hours: float = Field(default=4.0, ge=0)
    cache_flush_ms: int = Field(default=5000, ge=0)

    # Catalog
    copy_year: bool = False

    # Downloads
    default_quality: Quality = "highest"
