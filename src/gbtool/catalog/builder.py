"""Build season catalogs from a show's episode list.

Episodes are grouped two ways: by release year and by the game they cover.
Year seasons get two corrections so that a December finale published in
early January stays with its year:

* an episode whose name mentions the previous season's year stays in it;
* a short run of episodes at the start of a year, published within a month
  of the previous season's end and followed by a gap of over 10.5 months,
  moves back to the previous season.

``copy_year`` disables both corrections.
"""

import logging
import re
from datetime import datetime, timedelta

from gbtool.api.endpoints import GiantBombApi
from gbtool.api.models import Video, VideoShow
from gbtool.catalog.models import NO_GAME, Catalog, PartitionKind, Season
from gbtool.utils.datetime import parse_api_date, year_of

logger = logging.getLogger(__name__)

MONTH = timedelta(days=30)
LEAD_IN_WINDOW = MONTH
SEASON_GAP = MONTH * 10.5

# Games are preferred with at least two of them averaging this many episodes
GAMES_EPISODE_RATIO = 5


def _published(video: Video) -> datetime | None:
    if not video.publish_date:
        return None
    try:
        return parse_api_date(video.publish_date)
    except ValueError:
        return None


def partition_by_year(episodes: list[Video], copy_year: bool = False) -> list[Season]:
    """Group episodes into consecutive release-year seasons."""
    groups: list[tuple[str, list[Video]]] = []

    for episode in episodes:
        year = year_of(episode.publish_date)
        if groups and groups[-1][0] != year:
            previous = groups[-1][0]
            if not copy_year and re.search(re.escape(previous), episode.name or "", re.IGNORECASE):
                logger.debug(f"Keeping {year} release {episode.name!r} in {previous} season")
                groups[-1][1].append(episode)
                continue

        if not groups or groups[-1][0] != year:
            logger.debug(f"Starting {year} season at {episode.name!r}")
            groups.append((year, []))
        groups[-1][1].append(episode)

    return [Season(name=name, episodes=tuple(items)) for name, items in groups]


def partition_by_game(episodes: list[Video]) -> list[Season]:
    """Group episodes by their first associated game, in order of first appearance."""
    groups: dict[str, list[Video]] = {}

    for episode in episodes:
        game = episode.game
        name = (game.name if game else None) or NO_GAME
        groups.setdefault(name, []).append(episode)

    return [Season(name=name, episodes=tuple(items)) for name, items in groups.items()]


def correct_year_boundaries(seasons: list[Season]) -> list[Season]:
    """Move year-opening lead-in runs back to the previous season.

    Returns a new list; the input is not modified. Applying it to its own
    output changes nothing.
    """
    corrected = list(seasons)

    for s in range(1, len(corrected)):
        previous, current = corrected[s - 1], corrected[s]
        previous_final = _published(previous.episodes[-1])
        if previous_final is None:
            continue

        episodes = current.episodes
        for e in range(1, len(episodes)):
            before, after = _published(episodes[e - 1]), _published(episodes[e])
            if before is None or after is None:
                continue
            if before - previous_final < LEAD_IN_WINDOW and after - before > SEASON_GAP:
                logger.debug(f"Moving {e} episodes from {current.name} to {previous.name}")
                corrected[s - 1] = Season(
                    name=previous.name, episodes=previous.episodes + episodes[:e]
                )
                corrected[s] = Season(name=current.name, episodes=episodes[e:])
                break

    return corrected


def preferred_partition(episode_count: int, game_season_count: int) -> PartitionKind:
    if game_season_count > 1 and episode_count / game_season_count >= GAMES_EPISODE_RATIO:
        return PartitionKind.GAMES
    return PartitionKind.YEARS


def build_catalog(
    episodes: list[Video],
    copy_year: bool = False,
    show_id: int | None = None,
    show_title: str | None = None,
) -> Catalog:
    """Build a catalog from episodes already sorted by publish date.

    Args:
        episodes: Every episode of the show, oldest first
        copy_year: Use literal release years with no corrections
        show_id: Owning show's ID
        show_title: Owning show's title

    Returns:
        Catalog with both partitions and the preferred one selected
    """
    years = partition_by_year(episodes, copy_year=copy_year)
    if not copy_year:
        years = correct_year_boundaries(years)
    games = partition_by_game(episodes)
    preferred = preferred_partition(len(episodes), len(games))

    logger.debug(
        f"Show {show_title} ({show_id}) has {len(episodes)} episodes across "
        f"{len(years)} years and {len(games)} games ({preferred.value} preferred)"
    )

    return Catalog(
        show_id=show_id,
        show_title=show_title,
        episodes=tuple(episodes),
        years=tuple(years),
        games=tuple(games),
        preferred=preferred,
    )


class CatalogBuilder:
    """Fetches a show's episodes and builds its catalog."""

    def __init__(self, api: GiantBombApi, copy_year: bool = False) -> None:
        self.api = api
        self.copy_year = copy_year

    async def build(self, show: VideoShow) -> Catalog:
        """Build the catalog for ``show``.

        A show with no episodes gives an empty catalog.
        """
        logger.debug(f"Retrieving all videos for show {show.title} ({show.id})")
        episodes = await self.api.show_videos(show.id)
        if not episodes:
            logger.warning(f"Show {show.title} ({show.id}) has no videos")

        return build_catalog(
            episodes,
            copy_year=self.copy_year,
            show_id=show.id,
            show_title=show.title,
        )
