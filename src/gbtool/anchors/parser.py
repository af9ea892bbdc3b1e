"""Parse anchor identifiers and option values.

An identifier is read in a fixed order: season and episode (``S04E17``,
``E17``, ``Season 4 Episode 17``), season alone (``S04``), video GUID,
then date-like text, which is recognized but not supported.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from gbtool.api.models import is_guid
from gbtool.utils.errors import InputError

SEASON_EPISODE_PATTERN = re.compile(
    r"^\s*(?:S(?:eason)?\s*(\d+)[\s._-]*)?E(?:p(?:isode)?)?\s*(\d+)\s*$", re.IGNORECASE
)
SEASON_ONLY_PATTERN = re.compile(r"^\s*S(?:eason)?\s*(\d+)\s*$", re.IGNORECASE)
YEAR_PATTERN = re.compile(r"^\s*\d{4}\s*$")

_MONTH_FORMATS = ("%B %Y", "%b %Y", "%B %d %Y", "%b %d %Y", "%B %d, %Y", "%b %d, %Y")


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class Structure(str, Enum):
    FLAT = "flat"
    SEASON = "season"


class AnchorType(str, Enum):
    """Range boundary keywords."""

    FROM = "from"
    AFTER = "after"
    TO = "to"
    THROUGH = "through"

    @property
    def inclusive(self) -> bool:
        return self in (AnchorType.FROM, AnchorType.THROUGH)

    @property
    def direction(self) -> Direction:
        if self in (AnchorType.FROM, AnchorType.AFTER):
            return Direction.FORWARD
        return Direction.BACKWARD

    @property
    def takes_season_end(self) -> bool:
        """Whether a season-only anchor lands on the season's last episode."""
        return self in (AnchorType.AFTER, AnchorType.THROUGH)


@dataclass(frozen=True)
class SeasonEpisode:
    season: str
    episode: int


@dataclass(frozen=True)
class EpisodeOnly:
    episode: int


@dataclass(frozen=True)
class SeasonOnly:
    season: str


@dataclass(frozen=True)
class VideoGuid:
    guid: str


@dataclass(frozen=True)
class Unsupported:
    text: str
    reason: str


@dataclass(frozen=True)
class Unrecognized:
    text: str


Identifier = SeasonEpisode | EpisodeOnly | SeasonOnly | VideoGuid | Unsupported | Unrecognized


def looks_like_date(text: str) -> bool:
    """Whether ``text`` reads as a calendar date, month, or year."""
    text = text.strip()
    if YEAR_PATTERN.match(text):
        return True
    try:
        datetime.fromisoformat(text)
        return True
    except ValueError:
        pass
    if re.match(r"^\d{4}-\d{2}$", text):
        return True
    for fmt in _MONTH_FORMATS:
        try:
            datetime.strptime(text, fmt)
            return True
        except ValueError:
            continue
    return False


def parse_identifier(text: str) -> Identifier:
    """Classify a one-word anchor identifier."""
    match = SEASON_EPISODE_PATTERN.match(text)
    if match:
        season, episode = match.group(1), int(match.group(2))
        if season is None:
            return EpisodeOnly(episode=episode)
        return SeasonEpisode(season=str(int(season)), episode=episode)

    match = SEASON_ONLY_PATTERN.match(text)
    if match:
        return SeasonOnly(season=str(int(match.group(1))))

    if is_guid(text):
        return VideoGuid(guid=text.strip())

    if looks_like_date(text):
        return Unsupported(
            text=text,
            reason='date anchors such as "through 2018" or "after May 2017" are not supported',
        )

    return Unrecognized(text=text)


@dataclass(frozen=True)
class AnchorSpec:
    """Raw anchor input: exactly one of identifier, video, or episode,
    optionally with a season; or a season alone."""

    identifier: str | None = None
    video: str | None = None
    episode: int | None = None
    season: str | None = None

    def with_default_season(self, season: str | None) -> "AnchorSpec":
        """Fill in the season when the anchor names none and has no video."""
        if season is None or self.season is not None or self.video is not None:
            return self
        return AnchorSpec(self.identifier, self.video, self.episode, season)


_OPTION_KEYS = {
    "season": "season",
    "s": "season",
    "episode": "episode",
    "e": "episode",
    "video": "video",
    "v": "video",
    "id": "identifier",
    "identifier": "identifier",
}


def parse_anchor_option(value: str) -> AnchorSpec:
    """Parse a command-line anchor value.

    Either a one-word identifier (``S04E17``, ``S04``, ``E17``) or
    comma-separated ``key=value`` pairs using ``season``, ``episode``,
    ``video`` and ``identifier``.

    Raises:
        InputError: If a key is unknown or an episode is not a number
    """
    value = value.strip()
    if "=" not in value:
        return AnchorSpec(identifier=value)

    fields: dict[str, str] = {}
    for part in value.split(","):
        key, sep, item = part.partition("=")
        name = _OPTION_KEYS.get(key.strip().lower())
        if not sep or name is None:
            raise InputError(f"Can't read anchor option {part!r}; expected season=, episode= or video=")
        fields[name] = item.strip()

    episode = fields.pop("episode", None)
    if episode is not None and not episode.isdigit():
        raise InputError(f"Episode must be a number, not {episode!r}")

    return AnchorSpec(
        identifier=fields.get("identifier"),
        video=fields.get("video"),
        episode=int(episode) if episode is not None else None,
        season=fields.get("season"),
    )
