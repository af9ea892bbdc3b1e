"""Season catalog models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from gbtool.api.models import Video

NO_GAME = "None"


class PartitionKind(str, Enum):
    """How a show's episodes are grouped into seasons."""

    YEARS = "years"
    GAMES = "games"


class Season(BaseModel):
    """A named, ordered run of episodes."""

    model_config = ConfigDict(frozen=True)

    name: str
    episodes: tuple[Video, ...]

    def __len__(self) -> int:
        return len(self.episodes)


class Catalog(BaseModel):
    """Every episode of a show plus both season partitions.

    Episodes are ordered by publish date. Seasons are numbered by position,
    starting at 1.
    """

    model_config = ConfigDict(frozen=True)

    show_id: int | None = None
    show_title: str | None = None
    episodes: tuple[Video, ...] = ()
    years: tuple[Season, ...] = ()
    games: tuple[Season, ...] = ()
    preferred: PartitionKind = PartitionKind.YEARS

    def seasons(self, kind: PartitionKind | None = None) -> tuple[Season, ...]:
        """Seasons of one partition (the preferred one by default)."""
        kind = kind or self.preferred
        return self.years if kind is PartitionKind.YEARS else self.games

    def episode_ids(self) -> list[int]:
        return [episode.id for episode in self.episodes]

    def position_of(self, video_id: int) -> int | None:
        """0-based position of an episode in the show, if present."""
        for index, episode in enumerate(self.episodes):
            if episode.id == video_id:
                return index
        return None

    @property
    def is_empty(self) -> bool:
        return not self.episodes


class SeasonReference(BaseModel):
    """Where a season sits in its partition."""

    kind: PartitionKind
    number: int
    name: str
    season_count: int
    season_episode_count: int
    show_episode_count: int


class EpisodeReference(SeasonReference):
    """Where an episode sits in its season and its show."""

    video: Video
    season_episode_number: int
    show_episode_number: int
