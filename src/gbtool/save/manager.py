"""Save videos, images and metadata to disk.

Every write goes to a temporary sibling first and is renamed into place,
so an interrupted save never damages a file that was already there.
Replacing a file moves the old one to a backup, which is restored if the
new write fails.
"""

import asyncio
import json
import logging
import secrets
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Literal
from urllib.parse import urlparse

import aiofiles
import httpx
from pydantic import BaseModel, Field

from gbtool.api.models import ImageSet, Video, VideoShow
from gbtool.save.template import with_extension
from gbtool.utils.errors import SaveError

logger = logging.getLogger(__name__)

Quality = Literal["highest", "auto", "hd", "high", "low"]

QUALITY_ORDER: dict[str, tuple[str, ...]] = {
    "highest": ("hd", "high", "low"),
    "auto": ("high", "hd", "low"),
}

CHUNK_SIZE = 1024 * 256


class SaveResult(BaseModel):
    """Outcome of one save."""

    path: Path
    size: int
    updated: bool
    quality: str | None = None


class DownloadProgress(BaseModel):
    """Progress of one download."""

    path: Path
    downloaded_bytes: int = Field(default=0, ge=0)
    total_bytes: int | None = Field(default=None, ge=0)

    @property
    def percentage(self) -> float | None:
        if self.total_bytes and self.total_bytes > 0:
            return (self.downloaded_bytes / self.total_bytes) * 100
        return None


def _tiers(quality: str) -> tuple[str, ...]:
    return QUALITY_ORDER.get(quality, (quality,))


def video_url(video: Video, quality: str) -> tuple[str, str] | None:
    """Source URL and actual tier for a video at ``quality``.

    ``highest`` tries hd, high, then low; ``auto`` prefers high over hd.
    """
    urls = {"hd": video.hd_url, "high": video.high_url, "low": video.low_url}
    for tier in _tiers(quality):
        if urls.get(tier):
            return urls[tier], tier
    return None


def image_url(image: ImageSet, quality: str) -> tuple[str, str] | None:
    """Source URL and actual tier for an image at ``quality``.

    hd and high take the largest image available; low skips the largest.
    """
    ranked = image.ranked_urls()
    for tier in _tiers(quality):
        candidates = ranked[1:] if tier == "low" else ranked
        url = next((u for u in candidates if u), None)
        if url:
            return url, tier
    return None


def extension_of(url: str) -> str:
    return Path(urlparse(url).path).suffix.lstrip(".")


Producer = Callable[[Path], Awaitable[int | None]]


def _describe(error: Exception) -> str:
    # httpx messages embed the request URL, which carries the API key
    if isinstance(error, httpx.HTTPStatusError):
        return f"HTTP {error.response.status_code}"
    if isinstance(error, httpx.HTTPError):
        return type(error).__name__
    return f"{type(error).__name__}: {error}"


class SaveManager:
    """Writes episode media and metadata.

    Example:
        >>> async with SaveManager(api_key="...") as saver:
        ...     await saver.save_video(video, "out/{show} - S{s}E{e}", quality="hd")
    """

    def __init__(
        self,
        api_key: str | None = None,
        backup: bool = False,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
        progress_callback: Callable[[DownloadProgress], None] | None = None,
    ) -> None:
        """Initialize the save manager.

        Args:
            api_key: Sent as a query parameter with media downloads
            backup: Keep replaced files as ``<name>.backup.<label>``
            timeout: Download timeout in seconds
            transport: Optional httpx transport (used by tests)
            progress_callback: Called as download chunks arrive
        """
        self.api_key = api_key
        self.backup = backup
        self.progress_callback = progress_callback
        self.http = httpx.AsyncClient(
            timeout=timeout, transport=transport, follow_redirects=True
        )

    async def __aenter__(self) -> "SaveManager":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    async def save_video(
        self, video: Video, filename: str, quality: Quality = "highest", replace: bool = False
    ) -> SaveResult:
        """Download a video file at the best available tier for ``quality``.

        Raises:
            SaveError: If the video has no URL for ``quality`` or the download fails
        """
        found = video_url(video, quality)
        if found is None:
            raise SaveError(f"Couldn't save video {video.name}: no {quality} video URL")
        url, tier = found
        path = Path(with_extension(filename, extension_of(url), tier))
        return await self._download(url, path, replace, tier)

    async def save_video_image(
        self, video: Video, filename: str, quality: Quality = "highest", replace: bool = False
    ) -> SaveResult:
        if video.image is None:
            raise SaveError(f"Video {video.name} has no image")
        return await self._save_image(video.image, filename, quality, replace)

    async def save_show_image(
        self, show: VideoShow, filename: str, quality: Quality = "highest", replace: bool = False
    ) -> SaveResult:
        if show.image is None:
            raise SaveError(f"Show {show.title} has no image")
        return await self._save_image(show.image, filename, quality, replace)

    async def save_video_info(self, video: Video, filename: str, replace: bool = False) -> SaveResult:
        """Write a video's metadata as JSON."""
        return await self._save_info(video.model_dump(mode="json"), filename, replace)

    async def save_show_info(self, show: VideoShow, filename: str, replace: bool = False) -> SaveResult:
        """Write a show's metadata as JSON."""
        return await self._save_info(show.model_dump(mode="json"), filename, replace)

    async def _save_image(
        self, image: ImageSet, filename: str, quality: str, replace: bool
    ) -> SaveResult:
        found = image_url(image, quality)
        if found is None:
            raise SaveError(f"Couldn't save image: no {quality} image URL")
        url, tier = found
        path = Path(with_extension(filename, extension_of(url), tier))
        return await self._download(url, path, replace, tier)

    async def _save_info(self, info: dict[str, Any], filename: str, replace: bool) -> SaveResult:
        path = Path(with_extension(filename, "json", "info"))
        content = json.dumps(info, indent=2)

        async def write(temp: Path) -> int | None:
            async with aiofiles.open(temp, "w", encoding="utf-8") as f:
                await f.write(content)
            return None

        return await self._replace_file(path, write, replace)

    async def _download(self, url: str, path: Path, replace: bool, quality: str) -> SaveResult:
        params = {"api_key": self.api_key} if self.api_key else None

        async def write(temp: Path) -> int | None:
            logger.debug(f"Downloading {url} to {path}")
            async with self.http.stream("GET", url, params=params) as response:
                response.raise_for_status()
                length = response.headers.get("Content-Length")
                expected = int(length) if length and length.isdigit() else None
                progress = DownloadProgress(path=path, total_bytes=expected)

                async with aiofiles.open(temp, "wb") as f:
                    async for chunk in response.aiter_bytes(CHUNK_SIZE):
                        await f.write(chunk)
                        if self.progress_callback:
                            progress.downloaded_bytes += len(chunk)
                            self.progress_callback(progress)
            return expected

        result = await self._replace_file(path, write, replace)
        result.quality = quality
        return result

    async def _replace_file(self, path: Path, produce: Producer, replace: bool) -> SaveResult:
        """Write ``path`` through a temporary sibling, backing up any old file.

        Raises:
            SaveError: If the write fails; the old file is restored
        """
        if path.exists() and not replace:
            logger.debug(f"{path} already exists; not replacing")
            return SaveResult(path=path, size=path.stat().st_size, updated=False)

        path.parent.mkdir(parents=True, exist_ok=True)

        label = secrets.token_hex(4)
        temp = path.with_name(f"{path.name}.update.{label}")
        backup = path.with_name(f"{path.name}.backup.{label}") if path.exists() else None

        if backup is not None:
            logger.debug(f"Backing up {path} to {backup}")
            await asyncio.to_thread(path.replace, backup)

        try:
            expected = await produce(temp)
            await asyncio.to_thread(temp.replace, path)
        except (OSError, httpx.HTTPError) as e:
            await asyncio.to_thread(temp.unlink, missing_ok=True)
            if backup is not None:
                logger.debug(f"Restoring {path} from {backup}")
                await asyncio.to_thread(backup.replace, path)
            raise SaveError(f"Failed to save {path}: {_describe(e)}") from e

        if backup is not None and not self.backup:
            try:
                await asyncio.to_thread(backup.unlink)
            except OSError as e:
                logger.error(f"Couldn't remove backup {backup}: {e}")

        size = path.stat().st_size
        if expected is not None and size != expected:
            logger.warning(
                f"Downloaded {size} bytes but expected {expected}; verify {path} works"
            )
        return SaveResult(path=path, size=size, updated=True)
