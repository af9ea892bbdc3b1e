"""Combine anchors into the set of episodes they all allow."""

from collections.abc import Iterable

from gbtool.anchors.parser import Direction, Structure
from gbtool.anchors.resolver import AnchorResult
from gbtool.catalog.models import Catalog


def _flat_ids(anchor: AnchorResult, catalog: Catalog) -> set[int]:
    episodes = catalog.episodes
    start = catalog.position_of(anchor.episode.video.id)
    if start is None:
        return set()

    if anchor.direction is Direction.FORWARD:
        first = start if anchor.inclusive else start + 1
        return {episode.id for episode in episodes[first:]}

    last = start if anchor.inclusive else start - 1
    return {episode.id for episode in episodes[: last + 1]} if last >= 0 else set()


def _season_ids(anchor: AnchorResult, catalog: Catalog) -> set[int]:
    seasons = catalog.seasons(anchor.kind)
    season_index = anchor.episode.number - 1
    episode_index = anchor.episode.season_episode_number - 1
    ids: set[int] = set()

    if anchor.direction is Direction.FORWARD:
        first = episode_index if anchor.inclusive else episode_index + 1
        ids.update(episode.id for episode in seasons[season_index].episodes[first:])
        for season in seasons[season_index + 1 :]:
            ids.update(episode.id for episode in season.episodes)
        return ids

    last = episode_index if anchor.inclusive else episode_index - 1
    if last >= 0:
        ids.update(episode.id for episode in seasons[season_index].episodes[: last + 1])
    for season in seasons[:season_index]:
        ids.update(episode.id for episode in season.episodes)
    return ids


def anchored_ids(anchor: AnchorResult, catalog: Catalog) -> set[int]:
    """Episode IDs on the allowed side of one anchor."""
    if anchor.structure is Structure.SEASON:
        return _season_ids(anchor, catalog)
    return _flat_ids(anchor, catalog)


def intersect(anchors: Iterable[AnchorResult], catalog: Catalog) -> set[int]:
    """IDs of the episodes allowed by every anchor.

    With no anchors, every episode is included. Anchors that exclude each
    other give an empty set.
    """
    included = set(catalog.episode_ids())
    for anchor in anchors:
        included &= anchored_ids(anchor, catalog)
    return included
