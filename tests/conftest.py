"""Shared fixtures for gb-tool tests."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

from gbtool.api.models import Video, VideoShow
from gbtool.catalog.builder import build_catalog
from gbtool.catalog.models import Catalog
from gbtool.config.schema import GlobalConfig

BASE_URL = "https://gb.test/api/"
GAME_URL = "https://gb.test/api/game/3030-{id}/"


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


def video_data(
    video_id: int,
    publish_date: str,
    name: str | None = None,
    show: dict[str, Any] | None = None,
    game: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Raw API representation of a video."""
    data: dict[str, Any] = {
        "id": video_id,
        "guid": f"2300-{video_id}",
        "name": name or f"Video {video_id}",
        "publish_date": publish_date,
        "associations": [],
        "premium": False,
    }
    if game is not None:
        data["associations"] = [
            {
                "id": sum(map(ord, game)),
                "name": game,
                "api_detail_url": GAME_URL.format(id=sum(map(ord, game))),
            }
        ]
    if show is not None:
        data["video_show"] = {"id": show["id"], "guid": show["guid"], "title": show["title"]}
    data.update(extra)
    return data


class FakeGiantBomb:
    """In-memory stand-in for the remote API, served through httpx.MockTransport.

    Supports the list, detail and search endpoints with ``filter``,
    ``sort``, ``offset``, ``limit`` and ``page`` parameters.
    """

    def __init__(self, page_size: int = 100, search_page_size: int = 10) -> None:
        self.shows: list[dict[str, Any]] = []
        self.videos: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.page_size = page_size
        self.search_page_size = search_page_size

    def add_show(self, show_id: int, title: str, **extra: Any) -> dict[str, Any]:
        show = {
            "id": show_id,
            "guid": f"2340-{show_id}",
            "title": title,
            "deck": f"All about {title}",
            "image": {
                "screen_large_url": f"https://media.test/shows/{show_id}_large.jpg",
                "small_url": f"https://media.test/shows/{show_id}_small.jpg",
            },
            **extra,
        }
        self.shows.append(show)
        return show

    def add_video(
        self,
        video_id: int,
        publish_date: str,
        name: str | None = None,
        show: dict[str, Any] | None = None,
        game: str | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        extra.setdefault("hd_url", f"https://media.test/videos/{video_id}_hd.mp4")
        extra.setdefault("high_url", f"https://media.test/videos/{video_id}_high.mp4")
        extra.setdefault(
            "image", {"screen_large_url": f"https://media.test/images/{video_id}.jpg"}
        )
        video = video_data(video_id, publish_date, name, show=show, game=game, **extra)
        self.videos.append(video)
        return video

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def paths(self) -> list[str]:
        """Request paths received, in order."""
        return [request.url.path for request in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        if parts and parts[0] == "api":
            parts = parts[1:]
        resource = parts[0] if parts else ""
        ident = parts[1] if len(parts) > 1 else None
        params = request.url.params

        if resource == "video_shows":
            return self._list(self.shows, params)
        if resource == "videos":
            return self._list(self.videos, params)
        if resource == "video_show":
            return self._item(self.shows, ident)
        if resource == "video":
            return self._item(self.videos, ident)
        if resource == "search":
            return self._search(params)
        return httpx.Response(404, text="Not Found")

    def _filtered(self, items: list[dict[str, Any]], params: httpx.QueryParams) -> list[dict]:
        selected = list(items)
        for clause in filter(None, params.get("filter", "").split(",")):
            field, _, expected = clause.partition(":")
            selected = [item for item in selected if _matches(item, field, expected)]

        sort = params.get("sort")
        if sort:
            field, _, direction = sort.partition(":")
            selected.sort(key=lambda item: str(item.get(field) or ""), reverse=direction == "desc")
        return selected

    def _list(self, items: list[dict[str, Any]], params: httpx.QueryParams) -> httpx.Response:
        selected = self._filtered(items, params)
        offset = int(params.get("offset", 0))
        limit = min(int(params.get("limit", self.page_size)), self.page_size)
        page = selected[offset : offset + limit]
        return httpx.Response(200, json=_envelope(page, limit, offset, len(selected)))

    def _item(self, items: list[dict[str, Any]], ident: str | None) -> httpx.Response:
        for item in items:
            if item["guid"] == ident:
                return httpx.Response(200, json={"error": "OK", "status_code": 1, "results": item})
        return httpx.Response(
            200, json={"error": "Object Not Found", "status_code": 101, "results": []}
        )

    def _search(self, params: httpx.QueryParams) -> httpx.Response:
        text = params.get("query", "").lower()
        found = [
            video
            for video in self.videos
            if text in (video.get("name") or "").lower()
            or any(text in (a.get("name") or "").lower() for a in video.get("associations", []))
        ]
        page_number = int(params.get("page", 1))
        size = min(int(params.get("limit", self.search_page_size)), self.search_page_size)
        start = (page_number - 1) * size
        page = found[start : start + size]
        return httpx.Response(200, json=_envelope(page, size, start, len(found)))


def _matches(item: dict[str, Any], field: str, expected: str) -> bool:
    actual = item.get(field)
    if isinstance(actual, dict):
        actual = actual.get("id")
    if isinstance(actual, bool):
        return expected == ("true" if actual else "false")
    if field in ("name", "title"):
        return expected.lower() in str(actual or "").lower()
    return str(actual) == expected


def _envelope(results: list[dict], limit: int, offset: int, total: int) -> dict[str, Any]:
    return {
        "error": "OK",
        "status_code": 1,
        "limit": limit,
        "offset": offset,
        "number_of_page_results": len(results),
        "number_of_total_results": total,
        "results": results,
    }


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock for cache tests."""
    return FakeClock()


@pytest.fixture
def fake_api() -> FakeGiantBomb:
    """Empty fake API."""
    return FakeGiantBomb()


@pytest.fixture
def gb_config(tmp_path: Path) -> GlobalConfig:
    """Config with no request spacing and a cache file under tmp_path."""
    return GlobalConfig(
        base_url=BASE_URL,
        rate_limit_ms=0,
        cache_file=tmp_path / "cache.json",
        cache_flush_ms=0,
    )


@pytest.fixture
def make_video() -> Callable[..., Video]:
    """Factory for validated Video models."""

    def factory(
        video_id: int,
        publish_date: str,
        name: str | None = None,
        game: str | None = None,
        **extra: Any,
    ) -> Video:
        return Video.model_validate(video_data(video_id, publish_date, name, game=game, **extra))

    return factory


@pytest.fixture
def make_show() -> Callable[..., VideoShow]:
    """Factory for validated VideoShow models."""

    def factory(show_id: int = 1, title: str = "Quick Look", **extra: Any) -> VideoShow:
        return VideoShow.model_validate(
            {"id": show_id, "guid": f"2340-{show_id}", "title": title, **extra}
        )

    return factory


@pytest.fixture
def sample_config_dict() -> dict[str, Any]:
    """Sample global configuration."""
    return {
        "version": "1",
        "log_level": "INFO",
        "rate_limit_ms": 1500,
        "cache_ttl_hours": 2,
        "copy_year": False,
        "default_quality": "hd",
    }


@pytest.fixture
def yearly(make_video) -> Catalog:
    """Three year seasons of 3, 20 and 2 episodes, with no games."""
    videos = [make_video(100 + n, f"2017-06-{n:02d} 10:00:00") for n in range(1, 4)]
    videos += [make_video(200 + n, f"2018-03-{n:02d} 10:00:00") for n in range(1, 21)]
    videos += [make_video(300 + n, f"2019-06-{n:02d} 10:00:00") for n in range(1, 3)]
    return build_catalog(videos, show_id=1, show_title="Quick Look")


@pytest.fixture
def by_game(make_video) -> Catalog:
    """Two games of six episodes each, one per year."""
    videos = [make_video(n, f"2018-01-{n:02d} 10:00:00", game="Persona 4") for n in range(1, 7)]
    videos += [
        make_video(n, f"2019-06-{n:02d} 10:00:00", game="Chrono Trigger") for n in range(7, 13)
    ]
    return build_catalog(videos, show_id=2, show_title="Endurance Run")
