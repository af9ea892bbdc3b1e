"""Plan and run batch downloads of a show's episodes.

A single video, episode, or season becomes the anchor pair ``from X`` and
``through X``. User anchors are added to that list, and the episodes
allowed by every anchor make up the plan.
"""

import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from gbtool.anchors.compositor import intersect
from gbtool.anchors.parser import AnchorSpec, AnchorType
from gbtool.anchors.resolver import AnchorResolver, AnchorResult
from gbtool.api.models import VideoShow
from gbtool.catalog.lookup import describe_episode
from gbtool.catalog.models import Catalog, EpisodeReference, PartitionKind
from gbtool.save.manager import Quality, SaveManager, SaveResult
from gbtool.save.template import is_disabled, render
from gbtool.session import Session
from gbtool.utils.errors import (
    InputError,
    ShowNotFoundError,
    VideoNotFoundError,
)

logger = logging.getLogger(__name__)


class DownloadRequest(BaseModel):
    """What the user asked to download."""

    model_config = ConfigDict(frozen=True)

    show: str | None = None
    video: str | None = None
    episode: int | None = None
    season: str | None = None
    season_type: PartitionKind | None = None
    anchors: tuple[tuple[AnchorType, AnchorSpec], ...] = ()

    def validate_combination(self) -> None:
        """Reject option combinations that cannot be satisfied.

        Raises:
            InputError: On a contradictory or incomplete request
        """
        if self.video is not None and self.episode is not None:
            raise InputError("Can't use both a video and an episode number")
        if self.video is not None and self.season is not None:
            raise InputError(
                "Can't combine a video with a season; drop the season or use an episode number"
            )
        if self.anchors and (self.video is not None or self.episode is not None):
            raise InputError("Can't combine single-episode downloads with from/after/to/through")
        if self.show is None and self.video is None:
            raise InputError("Specify a show, or a video to find its show")


class DownloadPlan(BaseModel):
    """Episodes selected for download."""

    show: VideoShow
    catalog: Catalog
    kind: PartitionKind
    anchors: list[AnchorResult]
    included: set[int]

    def episodes(self) -> list[EpisodeReference]:
        """Included episodes, in season order."""
        selected = []
        for season in self.catalog.seasons(self.kind):
            for video in season.episodes:
                if video.id in self.included:
                    selected.append(describe_episode(self.catalog, video.id, self.kind))
        return selected


class OutputTemplates(BaseModel):
    """Filename templates per output kind. ``out`` is the fallback for the others."""

    out: str | None = None
    video_out: str | None = None
    image_out: str | None = None
    metadata_out: str | None = None
    show_out: str | None = None

    def _filename(
        self, template: str | None, fallback: str | None, show: VideoShow, episode: EpisodeReference
    ) -> str | None:
        if is_disabled(template):
            return None
        if not template:
            return fallback
        return render(template, show, episode)

    def for_episode(
        self, show: VideoShow, episode: EpisodeReference
    ) -> tuple[str | None, str | None, str | None]:
        """(video, image, metadata) filenames for an episode; None means skip."""
        base = self._filename(self.out, None, show, episode)
        return (
            self._filename(self.video_out, base, show, episode),
            self._filename(self.image_out, base, show, episode),
            self._filename(self.metadata_out, base, show, episode),
        )

    def for_show(self, show: VideoShow) -> str | None:
        if not self.show_out or is_disabled(self.show_out):
            return None
        return render(self.show_out, show)

    @property
    def any_enabled(self) -> bool:
        return any(
            t and not is_disabled(t)
            for t in (self.out, self.video_out, self.image_out, self.metadata_out, self.show_out)
        )


async def plan_download(session: Session, request: DownloadRequest) -> DownloadPlan:
    """Resolve the request to a show, its catalog, and the included episodes.

    Raises:
        InputError: On a contradictory request
        ShowNotFoundError: If no show matches
        VideoNotFoundError: If ``video`` matches nothing
        AnchorNotFoundError: If an anchor matches nothing
    """
    request.validate_combination()

    show: VideoShow | None = None
    if request.show is not None:
        match = await session.attempt(lambda: session.shows.find(request.show))
        if match is None:
            raise ShowNotFoundError(f"No shows found for {request.show!r}")
        show = match.show
        logger.info(f"Found {show.title} by {match.match_type.value}")

    video_id: int | None = None
    if request.video is not None:
        video_match = await session.attempt(lambda: session.videos.find(request.video, show=show))
        if video_match is None:
            raise VideoNotFoundError(f"No videos found for {request.video!r}")
        video_id = video_match.video.id
        logger.info(f"Found {video_match.video.name} by {video_match.match_type.value}")

        if show is None:
            show_id = video_match.video.show_id
            if show_id is None:
                raise ShowNotFoundError(f"{video_match.video.name} does not belong to a show")
            owner = await session.attempt(lambda: session.shows.find(show_id))
            if owner is None:
                raise ShowNotFoundError(f"No shows found for ID {show_id}")
            show = owner.show

    if show is None:
        raise InputError("Specify a show, or a video to find its show")
    catalog = await session.attempt(lambda: session.builder.build(show))
    kind = request.season_type or catalog.preferred

    anchors: list[tuple[AnchorType, AnchorSpec]] = []
    single: AnchorSpec | None = None
    if video_id is not None:
        position = catalog.position_of(video_id)
        if position is None:
            raise VideoNotFoundError(f"Video {video_id} is not an episode of {show.title}")
        single = AnchorSpec(episode=position + 1)
    elif request.episode is not None:
        single = AnchorSpec(episode=request.episode, season=request.season)
    elif request.season is not None:
        single = AnchorSpec(season=request.season)

    if single is not None:
        anchors += [(AnchorType.FROM, single), (AnchorType.THROUGH, single)]
    anchors += [
        (anchor_type, spec.with_default_season(request.season))
        for anchor_type, spec in request.anchors
    ]

    resolver = AnchorResolver(catalog, show=show, videos=session.videos)
    results = [await resolver.resolve(anchor_type, spec, kind) for anchor_type, spec in anchors]
    included = intersect(results, catalog)

    logger.debug(f"{len(included)} of {len(catalog.episodes)} episodes selected")
    return DownloadPlan(show=show, catalog=catalog, kind=kind, anchors=results, included=included)


async def run_download(
    session: Session,
    plan: DownloadPlan,
    saver: SaveManager,
    templates: OutputTemplates,
    quality: Quality = "highest",
    replace: bool = False,
    on_episode: Callable[[EpisodeReference], None] | None = None,
) -> list[SaveResult]:
    """Save every planned episode's metadata, image and video.

    Args:
        session: Open API session, used to fetch full video details
        plan: Episodes to save
        saver: Save manager performing the writes
        templates: Output filename templates
        quality: Requested quality tier
        replace: Replace files that already exist
        on_episode: Called before each episode is saved

    Returns:
        One result per file written or skipped
    """
    results: list[SaveResult] = []

    show_filename = templates.for_show(plan.show)
    if show_filename:
        results.append(await saver.save_show_info(plan.show, show_filename, replace=replace))
        if plan.show.image is not None:
            results.append(
                await saver.save_show_image(plan.show, show_filename, quality, replace=replace)
            )

    for reference in plan.episodes():
        video = await session.attempt(lambda: session.api.get_video(reference.video.ref))
        episode = reference.model_copy(update={"video": video})
        if on_episode:
            on_episode(episode)

        video_name, image_name, metadata_name = templates.for_episode(plan.show, episode)
        if metadata_name:
            logger.info(f"Saving video metadata to {metadata_name}")
            results.append(await saver.save_video_info(video, metadata_name, replace=replace))
        if image_name:
            logger.info(f"Saving {quality} quality image to {image_name}")
            results.append(await saver.save_video_image(video, image_name, quality, replace=replace))
        if video_name:
            logger.info(f"Saving {quality} quality video to {video_name}")
            results.append(await saver.save_video(video, video_name, quality, replace=replace))

    return results
