"""Find seasons and episodes in a catalog by number or name."""

import logging
import re
from collections.abc import Iterator

from gbtool.catalog.models import (
    Catalog,
    EpisodeReference,
    PartitionKind,
    Season,
    SeasonReference,
)
from gbtool.utils.errors import EpisodeNotFoundError, SeasonNotFoundError

logger = logging.getLogger(__name__)

SeasonSpec = int | str


def _is_number(season: SeasonSpec) -> bool:
    if isinstance(season, int):
        return True
    return season.strip().isdigit()


def _name_match(seasons: tuple[Season, ...], text: str) -> int | None:
    pattern = re.compile(re.escape(text.strip()), re.IGNORECASE)
    for index, season in enumerate(seasons):
        if pattern.search(season.name):
            return index + 1
    return None


def season_candidates(
    catalog: Catalog, season: SeasonSpec, kind: PartitionKind | None = None
) -> Iterator[tuple[PartitionKind, int]]:
    """Possible (partition, season number) readings of ``season``, best first.

    A number indexes the requested partition, then matches year names. Any
    value may match a game name.
    """
    kind = kind or catalog.preferred

    if _is_number(season):
        number = int(season)
        if 1 <= number <= len(catalog.seasons(kind)):
            yield kind, number
        else:
            logger.debug(f"No {kind.value} season {number}; trying year names")
            match = _name_match(catalog.years, str(season))
            if match is not None:
                yield PartitionKind.YEARS, match

    match = _name_match(catalog.games, str(season))
    if match is not None:
        yield PartitionKind.GAMES, match


def locate_season(
    catalog: Catalog, season: SeasonSpec, kind: PartitionKind | None = None
) -> tuple[PartitionKind, int]:
    """Best (partition, season number) reading of ``season``.

    Raises:
        SeasonNotFoundError: If nothing matches
    """
    for candidate in season_candidates(catalog, season, kind):
        return candidate
    requested = (kind or catalog.preferred).value
    raise SeasonNotFoundError(f"No match found for {requested} season {season}")


def find_season(
    catalog: Catalog, season: SeasonSpec, kind: PartitionKind | None = None
) -> SeasonReference:
    """Describe the season that ``season`` refers to."""
    found_kind, number = locate_season(catalog, season, kind)
    seasons = catalog.seasons(found_kind)
    match = seasons[number - 1]

    return SeasonReference(
        kind=found_kind,
        number=number,
        name=match.name,
        season_count=len(seasons),
        season_episode_count=len(match),
        show_episode_count=len(catalog.episodes),
    )


def find_episode(
    catalog: Catalog,
    episode: int,
    season: SeasonSpec | None = None,
    kind: PartitionKind | None = None,
) -> EpisodeReference:
    """Describe an episode given by show position, or by season and position.

    Args:
        catalog: Catalog to search
        episode: 1-based episode number, in the show or in ``season``
        season: Optional season number or name
        kind: Partition to read season numbers from (preferred by default)

    Raises:
        SeasonNotFoundError: If ``season`` matches nothing
        EpisodeNotFoundError: If the position is out of range
    """
    kind = kind or catalog.preferred

    if season is None:
        if not 1 <= episode <= len(catalog.episodes):
            raise EpisodeNotFoundError(
                f"Show has {len(catalog.episodes)} episodes; no episode {episode}"
            )
        return describe_episode(catalog, catalog.episodes[episode - 1].id, kind)

    candidates = list(season_candidates(catalog, season, kind))
    if not candidates:
        raise SeasonNotFoundError(f"No match found for {kind.value} season {season}")

    for found_kind, number in candidates:
        match = catalog.seasons(found_kind)[number - 1]
        if 1 <= episode <= len(match):
            return describe_episode(catalog, match.episodes[episode - 1].id, found_kind)

    raise EpisodeNotFoundError(f"No match found for {kind.value} season {season} episode {episode}")


def describe_episode(
    catalog: Catalog, video_id: int, kind: PartitionKind | None = None
) -> EpisodeReference:
    """Season and show positions of an episode already in the catalog.

    Raises:
        EpisodeNotFoundError: If the episode is not in the catalog
    """
    kind = kind or catalog.preferred
    seasons = catalog.seasons(kind)

    for season_index, season in enumerate(seasons):
        for episode_index, video in enumerate(season.episodes):
            if video.id != video_id:
                continue
            show_position = catalog.position_of(video_id)
            return EpisodeReference(
                video=video,
                kind=kind,
                number=season_index + 1,
                name=season.name,
                season_count=len(seasons),
                season_episode_count=len(season),
                show_episode_count=len(catalog.episodes),
                season_episode_number=episode_index + 1,
                show_episode_number=(show_position or 0) + 1,
            )

    raise EpisodeNotFoundError(f"Video {video_id} is not an episode of {catalog.show_title}")
