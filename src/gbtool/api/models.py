"""Models for remote API resources.

Responses are validated loosely: unknown fields are kept, and every field
the API may omit is optional.
"""

import re
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

GAME_MARKER = "/game/"

# Resource type prefixes used in GUIDs
VIDEO_TYPE_ID = 2300
SHOW_TYPE_ID = 2340

_ID_PATTERN = re.compile(r"^[1-9]\d*$")
_GUID_PATTERN = re.compile(r"^[1-9]\d*-[1-9]\d*$")

ResourceT = TypeVar("ResourceT")


def is_id(value: Any) -> bool:
    """Whether ``value`` is a positive integer or an all-digit string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    return isinstance(value, str) and bool(_ID_PATTERN.match(value.strip()))


def is_guid(value: Any) -> bool:
    """Whether ``value`` looks like ``2300-12345``."""
    return isinstance(value, str) and bool(_GUID_PATTERN.match(value.strip()))


class ApiModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class ImageSet(ApiModel):
    """Image URLs at the sizes the API offers."""

    icon_url: str | None = None
    medium_url: str | None = None
    screen_url: str | None = None
    screen_large_url: str | None = None
    small_url: str | None = None
    super_url: str | None = None
    thumb_url: str | None = None
    tiny_url: str | None = None
    original_url: str | None = None
    image_tags: str | None = None

    def ranked_urls(self) -> list[str | None]:
        """Image URLs from largest to smallest."""
        return [self.screen_large_url, self.super_url, self.medium_url, self.small_url]


class Association(ApiModel):
    """Reference to another resource, such as a game."""

    id: int | None = None
    guid: str | None = None
    name: str | None = None
    api_detail_url: str | None = None
    site_detail_url: str | None = None

    @property
    def is_game(self) -> bool:
        return GAME_MARKER in (self.api_detail_url or "")


class ShowRef(ApiModel):
    """Show summary embedded in a video."""

    id: int | None = None
    guid: str | None = None
    title: str | None = None
    position: int | None = None
    api_detail_url: str | None = None
    site_detail_url: str | None = None
    image: ImageSet | None = None


class Video(ApiModel):
    """One video (an episode when it belongs to a show)."""

    id: int
    guid: str | None = None
    name: str | None = None
    deck: str | None = None
    publish_date: str | None = None
    associations: list[Association] = Field(default_factory=list)
    video_show: ShowRef | None = None
    video_categories: list[Association] | None = None
    hd_url: str | None = None
    high_url: str | None = None
    low_url: str | None = None
    image: ImageSet | None = None
    length_seconds: int | None = None
    premium: bool | None = None
    site_detail_url: str | None = None

    @property
    def game(self) -> Association | None:
        """First associated game, if any."""
        return next((a for a in self.associations if a.is_game), None)

    @property
    def show_id(self) -> int | None:
        return self.video_show.id if self.video_show else None

    @property
    def ref(self) -> str:
        """GUID to fetch this video by."""
        return self.guid or f"{VIDEO_TYPE_ID}-{self.id}"


class VideoShow(ApiModel):
    """A recurring show."""

    id: int
    guid: str | None = None
    title: str | None = None
    deck: str | None = None
    position: int | None = None
    active: bool | None = None
    premium: bool | None = None
    image: ImageSet | None = None
    logo: ImageSet | None = None
    latest: list[Video] | None = None
    site_detail_url: str | None = None
    api_detail_url: str | None = None
    api_videos_url: str | None = None

    @property
    def ref(self) -> str:
        """GUID to fetch this show by."""
        return self.guid or f"{SHOW_TYPE_ID}-{self.id}"


class ListPage(ApiModel):
    """A page of list or search results, or several pages merged."""

    error: str = "OK"
    status_code: int = 1
    limit: int = 0
    offset: int = 0
    number_of_page_results: int = 0
    number_of_total_results: int = 0
    results: list[dict[str, Any]] = Field(default_factory=list)


class Listing(BaseModel, Generic[ResourceT]):
    """Validated items from a list or search request."""

    items: list[ResourceT] = Field(default_factory=list)
    total: int = 0

    @property
    def truncated(self) -> bool:
        """Whether the server holds more matches than were fetched."""
        return len(self.items) < self.total
