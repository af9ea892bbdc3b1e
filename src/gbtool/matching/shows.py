"""Match a user-supplied show identifier to shows.

Identifiers are tried as an ID, then a GUID, then part of a show title,
then as text found in video names or video search results.
"""

import logging
import re
from enum import Enum

from pydantic import BaseModel

from gbtool.api.endpoints import GiantBombApi
from gbtool.api.filters import Query
from gbtool.api.models import Listing, Video, VideoShow, is_guid, is_id
from gbtool.utils.errors import ApiError, EmptyResponseError

logger = logging.getLogger(__name__)

VIDEO_SHOW_FIELDS = ["name", "video_show", "id"]
MAX_LOGGED = 5


class ShowMatchType(str, Enum):
    ID = "id"
    TITLE = "title"
    VIDEO = "video"
    ASSOCIATION = "association"


class ShowMatch(BaseModel):
    show: VideoShow
    match_type: ShowMatchType


def _owning_shows(videos: list[Video]) -> list[tuple[int, str | None]]:
    """Unique (show id, title) pairs of videos, ordered by video ID."""
    seen: dict[int, str | None] = {}
    for video in sorted(videos, key=lambda v: v.id):
        if video.video_show and video.video_show.id is not None:
            seen.setdefault(video.video_show.id, video.video_show.title)
    return list(seen.items())


class ShowMatcher:
    """Resolves show identifiers against the API."""

    def __init__(self, api: GiantBombApi) -> None:
        self.api = api

    async def _by_id(self, ident: str | int) -> VideoShow | None:
        listing = await self.api.list_shows(Query(filters={"id": str(ident).strip()}))
        return listing.items[0] if listing.items else None

    async def _by_guid(self, ident: str) -> VideoShow | None:
        try:
            return await self.api.get_show(ident)
        except (ApiError, EmptyResponseError):
            logger.debug(f"{ident} was not found as a GUID")
            return None

    async def _by_title(self, ident: str) -> list[VideoShow]:
        # The API cannot filter shows by title, so match locally
        shows = await self.api.all_shows(Query(fields=["title", "id", "guid"]))
        pattern = re.compile(re.escape(ident.strip()), re.IGNORECASE)
        return [show for show in shows.items if pattern.search(show.title or "")]

    async def _videos_for(self, ident: str, match_type: ShowMatchType) -> Listing[Video]:
        query = Query(fields=VIDEO_SHOW_FIELDS)
        if match_type is ShowMatchType.VIDEO:
            return await self.api.list_videos(query.with_filters(name=ident))
        return await self.api.search_videos(ident, query)

    async def find(self, ident: str | int) -> ShowMatch | None:
        """Best match for ``ident``, or None.

        Title and video matches can be ambiguous; the first is returned and
        the alternatives are logged.
        """
        if is_id(ident):
            show = await self._by_id(ident)
            if show is None:
                logger.debug(f"{ident} is a number, but no show has that ID")
                return None
            logger.debug(f"{ident} is an ID; found {show.title} ({show.guid})")
            return ShowMatch(show=show, match_type=ShowMatchType.ID)

        ident = str(ident)
        if is_guid(ident):
            show = await self._by_guid(ident.strip())
            if show is not None:
                logger.debug(f"{ident} is a GUID; found {show.title} ({show.guid})")
                return ShowMatch(show=show, match_type=ShowMatchType.ID)

        titles = await self._by_title(ident)
        if len(titles) > 1:
            logger.warning(f"{ident!r} is ambiguous: {len(titles)} shows match, e.g.")
            for show in titles[:MAX_LOGGED]:
                logger.warning(f"  {show.title} ({show.guid})")
        if titles:
            show = await self.api.get_show(titles[0].ref)
            logger.debug(f"{ident!r} is a title; found {show.title} ({show.guid})")
            return ShowMatch(show=show, match_type=ShowMatchType.TITLE)

        for match_type in (ShowMatchType.VIDEO, ShowMatchType.ASSOCIATION):
            videos = await self._videos_for(ident, match_type)
            owners = _owning_shows(videos.items)
            if not owners:
                continue

            if len(owners) > 1:
                logger.warning(f"{ident!r} matches videos in {len(owners)} shows, e.g.")
                for _, title in owners[:MAX_LOGGED]:
                    logger.warning(f"  {title}")
            elif videos.truncated:
                logger.warning(
                    f"{ident!r} matches {videos.total} videos and may match other shows"
                )

            show = await self._by_id(owners[0][0])
            if show is not None:
                logger.debug(f"{ident!r} found as a {match_type.value}; belongs to {show.title}")
                return ShowMatch(show=show, match_type=match_type)

        return None

    async def list(self, ident: str | int) -> list[ShowMatch]:
        """Every show matching ``ident``, strongest matches first."""
        matches: list[ShowMatch] = []
        seen: set[int] = set()

        def add(show: VideoShow, match_type: ShowMatchType) -> None:
            if show.id not in seen:
                seen.add(show.id)
                matches.append(ShowMatch(show=show, match_type=match_type))

        if is_id(ident):
            show = await self._by_id(ident)
            if show is not None:
                add(show, ShowMatchType.ID)

        ident = str(ident)
        if is_guid(ident):
            show = await self._by_guid(ident.strip())
            if show is not None:
                add(show, ShowMatchType.ID)

        for summary in await self._by_title(ident):
            if summary.id not in seen:
                add(await self.api.get_show(summary.ref), ShowMatchType.TITLE)

        # Shows cannot be searched; videos featuring the text are the next best thing
        for match_type in (ShowMatchType.VIDEO, ShowMatchType.ASSOCIATION):
            videos = await self._videos_for(ident, match_type)
            if not seen and videos.truncated:
                logger.warning(
                    f"{ident!r} matches {videos.total} {match_type.value}s "
                    "and may match additional shows"
                )
            for show_id, _ in _owning_shows(videos.items):
                if show_id in seen:
                    continue
                show = await self._by_id(show_id)
                if show is not None:
                    add(show, match_type)

        return matches
