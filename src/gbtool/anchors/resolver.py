"""Resolve anchor specs to catalog episodes."""

import logging

from pydantic import BaseModel

from gbtool.anchors.parser import (
    AnchorSpec,
    AnchorType,
    Direction,
    EpisodeOnly,
    SeasonEpisode,
    SeasonOnly,
    Structure,
    Unsupported,
    VideoGuid,
    parse_identifier,
)
from gbtool.api.models import VideoShow
from gbtool.catalog.lookup import describe_episode, find_episode, find_season
from gbtool.catalog.models import Catalog, EpisodeReference, PartitionKind
from gbtool.matching.videos import VideoMatcher
from gbtool.utils.errors import (
    AnchorNotFoundError,
    InputError,
    NotFoundError,
    UnsupportedSpecError,
)

logger = logging.getLogger(__name__)


class AnchorResult(BaseModel):
    """One boundary of a range of episodes."""

    anchor_type: AnchorType
    episode: EpisodeReference
    inclusive: bool
    direction: Direction
    structure: Structure

    @property
    def kind(self) -> PartitionKind:
        return self.episode.kind


class AnchorResolver:
    """Turns anchor specs into :class:`AnchorResult` boundaries.

    Args:
        catalog: Catalog of the show being ranged over
        show: The show, used to scope video queries
        videos: Matcher for free-text video queries
    """

    def __init__(
        self,
        catalog: Catalog,
        show: VideoShow | None = None,
        videos: VideoMatcher | None = None,
    ) -> None:
        self.catalog = catalog
        self.show = show
        self.videos = videos

    async def resolve(
        self,
        anchor_type: AnchorType,
        spec: AnchorSpec,
        kind: PartitionKind | None = None,
    ) -> AnchorResult:
        """Resolve one anchor.

        Raises:
            InputError: If the anchor is empty or self-contradictory
            UnsupportedSpecError: For date-form identifiers
            AnchorNotFoundError: If no episode matches
        """
        kind = kind or self.catalog.preferred

        if spec.video is not None and spec.season is not None:
            raise InputError(
                "Cannot combine a video query with a season; "
                "drop the season or use an episode number instead"
            )

        given = [v for v in (spec.identifier, spec.video, spec.episode) if v is not None]
        if len(given) > 1 or (not given and spec.season is None):
            raise InputError(
                "Specify one identifier, video, or episode (optionally with a season), "
                "or a season alone"
            )

        try:
            if not given:
                episode, structure = self._season_boundary(anchor_type, spec.season, kind)
            elif spec.episode is not None:
                episode, structure = self._numbered(spec.episode, spec.season, kind)
            elif spec.video is not None:
                episode, structure = await self._video(spec.video, kind)
            else:
                episode, structure = await self._identifier(
                    anchor_type, spec.identifier, spec.season, kind
                )
        except AnchorNotFoundError:
            raise
        except NotFoundError as e:
            raise AnchorNotFoundError(f"{anchor_type.value} anchor: {e}") from e

        logger.debug(
            f"{anchor_type.value} anchor resolved to {episode.kind.value} season "
            f"{episode.number} episode {episode.season_episode_number} ({episode.video.name})"
        )
        return AnchorResult(
            anchor_type=anchor_type,
            episode=episode,
            inclusive=anchor_type.inclusive,
            direction=anchor_type.direction,
            structure=structure,
        )

    def _season_boundary(
        self, anchor_type: AnchorType, season: str, kind: PartitionKind
    ) -> tuple[EpisodeReference, Structure]:
        # The season's outer edge relative to the anchor: "after" and
        # "through" land on its last episode, "from" and "to" on its first
        reference = find_season(self.catalog, season, kind)
        number = reference.season_episode_count if anchor_type.takes_season_end else 1
        episode = find_episode(self.catalog, number, season=reference.number, kind=reference.kind)
        return episode, Structure.SEASON

    def _numbered(
        self, episode: int, season: str | None, kind: PartitionKind
    ) -> tuple[EpisodeReference, Structure]:
        reference = find_episode(self.catalog, episode, season=season, kind=kind)
        return reference, Structure.SEASON if season is not None else Structure.FLAT

    async def _video(self, query: str, kind: PartitionKind) -> tuple[EpisodeReference, Structure]:
        if self.videos is None:
            raise InputError("Video queries need a video matcher")

        match = await self.videos.find(query, show=self.show)
        if match is None:
            raise AnchorNotFoundError(f"No videos found for {query!r}")
        if self.catalog.position_of(match.video.id) is None:
            raise AnchorNotFoundError(f"{match.video.name} is not an episode of this show")

        return describe_episode(self.catalog, match.video.id, kind), Structure.FLAT

    async def _identifier(
        self,
        anchor_type: AnchorType,
        identifier: str,
        season: str | None,
        kind: PartitionKind,
    ) -> tuple[EpisodeReference, Structure]:
        parsed = parse_identifier(identifier)

        if isinstance(parsed, SeasonEpisode):
            return self._numbered(parsed.episode, parsed.season, kind)
        if isinstance(parsed, EpisodeOnly):
            return self._numbered(parsed.episode, season, kind)
        if isinstance(parsed, SeasonOnly):
            return self._season_boundary(anchor_type, parsed.season, kind)
        if isinstance(parsed, VideoGuid):
            return await self._video(parsed.guid, kind)
        if isinstance(parsed, Unsupported):
            raise UnsupportedSpecError(f"Can't anchor on {parsed.text!r}: {parsed.reason}")

        raise InputError(
            f"Couldn't make sense of identifier {parsed.text!r}; try something like 'S02E14'"
        )
