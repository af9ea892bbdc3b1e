"""Typed access to the video and video show endpoints."""

import logging
from collections.abc import Callable

from gbtool.api.client import ApiClient
from gbtool.api.filters import Query
from gbtool.api.models import Listing, ListPage, Video, VideoShow

logger = logging.getLogger(__name__)

VIDEO_RESOURCE = "video"
CATALOG_FIELDS = ["id", "guid", "associations", "name", "publish_date"]


def _videos(page: ListPage) -> Listing[Video]:
    return Listing[Video](
        items=[Video.model_validate(item) for item in page.results],
        total=page.number_of_total_results,
    )


def _shows(page: ListPage) -> Listing[VideoShow]:
    return Listing[VideoShow](
        items=[VideoShow.model_validate(item) for item in page.results],
        total=page.number_of_total_results,
    )


def _raw(predicate: Callable[[Video], bool]) -> Callable[[dict], bool]:
    return lambda item: predicate(Video.model_validate(item))


class GiantBombApi:
    """Video and show endpoints on top of an :class:`ApiClient`."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    # Videos

    async def get_video(self, guid: str, query: Query | None = None) -> Video:
        results = await self.client.fetch_item(
            f"video/{guid.strip()}/", (query or Query()).to_params()
        )
        return Video.model_validate(results)

    async def list_videos(self, query: Query | None = None) -> Listing[Video]:
        page = await self.client.fetch_list("videos/", (query or Query()).to_params())
        return _videos(page)

    async def all_videos(self, query: Query | None = None) -> Listing[Video]:
        page = await self.client.autopage("videos/", (query or Query()).to_params())
        return _videos(page)

    async def find_video(
        self, predicate: Callable[[Video], bool], query: Query | None = None
    ) -> Video | None:
        """First video, in list order, that satisfies ``predicate``."""
        page = await self.client.autopage(
            "videos/", (query or Query()).to_params(), stop=_raw(predicate)
        )
        return _last_match(_videos(page).items, predicate)

    async def search_videos(self, text: str, query: Query | None = None) -> Listing[Video]:
        page = await self.client.search(text, [VIDEO_RESOURCE], (query or Query()).to_params())
        return _videos(page)

    async def search_all_videos(self, text: str, query: Query | None = None) -> Listing[Video]:
        page = await self.client.autopage_search(
            text, [VIDEO_RESOURCE], (query or Query()).to_params()
        )
        return _videos(page)

    async def search_for_video(
        self,
        text: str,
        predicate: Callable[[Video], bool],
        query: Query | None = None,
    ) -> Video | None:
        """First search result that satisfies ``predicate``."""
        page = await self.client.autopage_search(
            text, [VIDEO_RESOURCE], (query or Query()).to_params(), stop=_raw(predicate)
        )
        return _last_match(_videos(page).items, predicate)

    async def show_videos(self, show_id: int) -> list[Video]:
        """Every video of a show, oldest first, with the fields a catalog needs."""
        query = Query(
            fields=CATALOG_FIELDS,
            sort="publish_date",
            direction="asc",
            filters={"video_show": show_id},
        )
        return (await self.all_videos(query)).items

    # Shows

    async def get_show(self, guid: str, query: Query | None = None) -> VideoShow:
        results = await self.client.fetch_item(
            f"video_show/{guid.strip()}/", (query or Query()).to_params()
        )
        return VideoShow.model_validate(results)

    async def list_shows(self, query: Query | None = None) -> Listing[VideoShow]:
        page = await self.client.fetch_list("video_shows/", (query or Query()).to_params())
        return _shows(page)

    async def all_shows(self, query: Query | None = None) -> Listing[VideoShow]:
        page = await self.client.autopage("video_shows/", (query or Query()).to_params())
        return _shows(page)


def _last_match(items: list[Video], predicate: Callable[[Video], bool]) -> Video | None:
    if items and predicate(items[-1]):
        return items[-1]
    return None
