"""Match a user-supplied video query to videos, optionally within one show."""

import logging
import re
from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel

from gbtool.api.endpoints import CATALOG_FIELDS, GiantBombApi
from gbtool.api.filters import DateRange, FilterValue, Query, encode_value
from gbtool.api.models import Video, VideoShow, is_guid, is_id
from gbtool.utils.datetime import parse_api_date
from gbtool.utils.errors import ApiError, EmptyResponseError

logger = logging.getLogger(__name__)

MAX_LOGGED = 5


class VideoMatchType(str, Enum):
    ID = "id"
    NAME = "name"
    ASSOCIATION = "association"


class VideoMatch(BaseModel):
    video: Video
    match_type: VideoMatchType


def matches_filters(video: Video, filters: Mapping[str, FilterValue]) -> bool:
    """Check a fetched video against list filters locally.

    Date ranges compare the field as a timestamp; other values match on
    equality or case-insensitive substring.
    """
    for field, expected in filters.items():
        actual = getattr(video, field, None)
        if isinstance(expected, DateRange):
            if not actual:
                return False
            published = parse_api_date(str(actual))
            if not expected.start <= published <= expected.end:
                return False
            continue
        if actual == expected:
            continue
        if actual is None or not re.search(
            re.escape(encode_value(expected)), str(actual), re.IGNORECASE
        ):
            return False
    return True


def _name_pattern(query: str) -> re.Pattern[str]:
    return re.compile(re.escape(query.strip()), re.IGNORECASE)


def _game_matches(video: Video, pattern: re.Pattern[str]) -> bool:
    return any(a.is_game and pattern.search(a.name or "") for a in video.associations)


class VideoMatcher:
    """Resolves video queries against the API."""

    def __init__(self, api: GiantBombApi) -> None:
        self.api = api

    async def _by_id(
        self, query: str | int, show: VideoShow | None, filters: Mapping[str, FilterValue]
    ) -> Video | None:
        extra = {"id": str(query).strip()}
        if show is not None:
            extra["video_show"] = str(show.id)
        listing = await self.api.list_videos(Query(filters={**filters, **extra}))
        return listing.items[0] if listing.items else None

    async def _by_guid(
        self, query: str, show: VideoShow | None, filters: Mapping[str, FilterValue]
    ) -> Video | None:
        try:
            video = await self.api.get_video(query.strip())
        except (ApiError, EmptyResponseError):
            logger.debug(f"{query} was not found as a GUID")
            return None

        if show is not None and video.show_id != show.id:
            logger.debug(f"{query} belongs to another show")
            return None
        if not matches_filters(video, filters):
            logger.debug(f"{query} is {video.name} ({video.guid}) but fails the filters")
            return None
        return video

    async def _show_episodes(
        self, show: VideoShow, filters: Mapping[str, FilterValue]
    ) -> list[Video]:
        query = Query(
            fields=CATALOG_FIELDS,
            sort="publish_date",
            filters={**filters, "video_show": show.id},
        )
        return (await self.api.all_videos(query)).items

    async def find(
        self,
        query: str | int,
        show: VideoShow | None = None,
        filters: Mapping[str, FilterValue] | None = None,
    ) -> VideoMatch | None:
        """Best match for ``query``, or None.

        Args:
            query: Video ID, GUID, or text
            show: Restrict matches to this show's videos
            filters: Extra list filters, e.g. ``{"premium": True}``
        """
        filters = dict(filters or {})

        if is_id(query):
            video = await self._by_id(query, show, filters)
            if video is not None:
                logger.debug(f"{query} is an ID; found {video.name} ({video.guid})")
                return VideoMatch(video=video, match_type=VideoMatchType.ID)
            if show is None:
                logger.debug(f"{query} is a number, but no video has that ID")
                return None

        text = str(query)
        if is_guid(text):
            video = await self._by_guid(text, show, filters)
            if video is not None:
                return VideoMatch(video=video, match_type=VideoMatchType.ID)

        if show is not None:
            episodes = await self._show_episodes(show, filters)
            pattern = _name_pattern(text)
            match_type = VideoMatchType.NAME
            found = [v for v in episodes if pattern.search(v.name or "")]
            if not found:
                match_type = VideoMatchType.ASSOCIATION
                found = [v for v in episodes if _game_matches(v, pattern)]

            if len(found) > 1:
                logger.warning(f"{text!r} matches {len(found)} {match_type.value}s, e.g.")
                for video in found[:MAX_LOGGED]:
                    logger.warning(f"  {video.name}")
            if found:
                video = await self.api.get_video(found[0].ref)
                return VideoMatch(video=video, match_type=match_type)
            return None

        for match_type in (VideoMatchType.NAME, VideoMatchType.ASSOCIATION):
            if match_type is VideoMatchType.NAME:
                listing = await self.api.list_videos(
                    Query(filters={**filters, "name": text}, sort="publish_date", limit=5)
                )
            else:
                listing = await self.api.search_videos(text, Query(limit=5))

            videos = [v for v in listing.items if matches_filters(v, filters)]
            if len(videos) > 1:
                logger.warning(f"{text!r} matches {len(videos)} {match_type.value}s, e.g.")
                for video in videos:
                    logger.info(f"  {video.name}")
            if videos:
                return VideoMatch(video=videos[0], match_type=match_type)

        return None

    async def list(
        self,
        query: str | int,
        show: VideoShow | None = None,
        filters: Mapping[str, FilterValue] | None = None,
    ) -> "list[VideoMatch]":
        """Every video matching ``query``, strongest matches first."""
        filters = dict(filters or {})
        matches: list[VideoMatch] = []
        seen: set[int] = set()

        def add(video: Video, match_type: VideoMatchType) -> None:
            if video.id not in seen:
                seen.add(video.id)
                matches.append(VideoMatch(video=video, match_type=match_type))

        if is_id(query):
            video = await self._by_id(query, show, filters)
            if video is not None:
                add(video, VideoMatchType.ID)

        text = str(query)
        if is_guid(text):
            video = await self._by_guid(text, show, filters)
            if video is not None:
                add(video, VideoMatchType.ID)

        if show is not None:
            episodes = await self._show_episodes(show, filters)
            pattern = _name_pattern(text)
            by_type = {
                VideoMatchType.NAME: [v for v in episodes if pattern.search(v.name or "")],
                VideoMatchType.ASSOCIATION: [v for v in episodes if _game_matches(v, pattern)],
            }
            for match_type, found in by_type.items():
                for summary in found:
                    if summary.id not in seen:
                        add(await self.api.get_video(summary.ref), match_type)
            return matches

        for match_type in (VideoMatchType.NAME, VideoMatchType.ASSOCIATION):
            if match_type is VideoMatchType.NAME:
                listing = await self.api.list_videos(
                    Query(filters={**filters, "name": text}, sort="publish_date", limit=30)
                )
            else:
                listing = await self.api.search_videos(text, Query(limit=10))

            if listing.truncated:
                logger.warning(
                    f"{text!r} matches {listing.total} {match_type.value}s "
                    "(some will be omitted)"
                )
            for video in listing.items:
                if matches_filters(video, filters):
                    add(video, match_type)

        return matches
