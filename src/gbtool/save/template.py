"""Filename templates for saved episodes.

Templates use ``{key}`` placeholders, matched case-insensitively, with
several aliases per key (``{e}``, ``{ep}`` and ``{episode}`` are the same).
``{ext}`` and ``{quality}`` are left in place and filled at save time.
"""

import re

from gbtool.api.models import VideoShow
from gbtool.catalog.models import EpisodeReference
from gbtool.utils.datetime import day_of, year_of
from gbtool.utils.errors import InputError

DISABLED_OUTPUTS = ("no", "null", "none")

TEMPLATE_ALIASES: dict[str, list[str]] = {
    "name": ["name", "video", "episode_name", "video_name", "title", "episode_title", "video_title"],
    "game": ["game", "association"],
    "time": ["time", "publish_time", "publication_time"],
    "date": ["date", "publish_date", "publication_date"],
    "year": ["year", "publish_year", "publication_year"],
    "episode": [
        "number",
        "season_episode",
        "season_episode_number",
        "episode_number",
        "season_video",
        "season_video_number",
        "video_number",
        "episode",
        "ep",
        "e",
    ],
    "show_episode_number": ["show_episode_number", "show_video_number", "show_episode", "show_video"],
    "episode_count": ["count", "season_episode_count", "episode_count"],
    "show_episode_count": ["show_episode_count", "show_video_count"],
    "guid": ["guid"],
    "id": ["id"],
    "show": ["show", "show_name", "show_title"],
    "show_guid": ["show_guid"],
    "show_id": ["show_id"],
    "season_name": ["season_name", "season_title"],
    "season_number": ["season", "season_number", "s"],
    "season_count": ["season_count"],
}

ALIAS_TO_KEY = {alias: key for key, aliases in TEMPLATE_ALIASES.items() for alias in aliases}
SHOW_KEYS = {"show", "show_guid", "show_id"}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")
_UNSAFE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def padded(number: int, cap: int) -> str:
    """Zero-pad ``number`` to the width ``cap`` calls for.

    Counts of seven or more already get two digits, so numbering stays
    aligned when a season grows past nine episodes.
    """
    digits = 0
    remaining = float(cap)
    while remaining > 0.6:
        digits += 1
        remaining /= 10
    return str(number).zfill(digits)


def sanitize(value: str) -> str:
    """Make one template value safe to use inside a filename."""
    cleaned = _UNSAFE.sub("-", value).strip()
    return cleaned.rstrip(". ") or "-"


def is_disabled(template: str | None) -> bool:
    return template is not None and template.strip().lower() in DISABLED_OUTPUTS


def _episode_value(key: str, episode: EpisodeReference) -> str:
    video = episode.video
    if key == "name":
        return video.name or ""
    if key == "game":
        association = video.game or (video.associations[0] if video.associations else None)
        return (association.name if association else None) or "None"
    if key == "time":
        return video.publish_date or ""
    if key == "date":
        return day_of(video.publish_date)
    if key == "year":
        return year_of(video.publish_date)
    if key == "episode":
        return padded(episode.season_episode_number, max(10, episode.season_episode_count))
    if key == "show_episode_number":
        return padded(episode.show_episode_number, max(10, episode.show_episode_count))
    if key == "episode_count":
        return padded(episode.season_episode_count, max(10, episode.season_episode_count))
    if key == "show_episode_count":
        return padded(episode.show_episode_count, max(10, episode.show_episode_count))
    if key == "guid":
        return video.ref
    if key == "id":
        return str(video.id)
    if key == "season_name":
        return episode.name
    if key == "season_number":
        return padded(episode.number, episode.season_count)
    if key == "season_count":
        return str(episode.season_count)
    raise InputError(f"No value for template key {key}")


def value(alias: str, show: VideoShow, episode: EpisodeReference | None = None) -> str:
    """Filename-safe value of one template key or alias.

    Raises:
        InputError: If the key is unknown, or needs an episode and none is given
    """
    key = ALIAS_TO_KEY.get(alias.lower())
    if key is None:
        raise InputError(f"Unknown template key {alias}")

    if key == "show":
        raw = show.title or ""
    elif key == "show_guid":
        raw = show.ref
    elif key == "show_id":
        raw = str(show.id)
    elif episode is None:
        raise InputError(f"Template key {{{alias}}} needs an episode")
    else:
        raw = _episode_value(key, episode)
    return sanitize(raw)


def render(template: str, show: VideoShow, episode: EpisodeReference | None = None) -> str:
    """Fill every known placeholder in ``template``.

    Unknown placeholders, including ``{ext}`` and ``{quality}``, are kept.
    """

    def replace(match: re.Match[str]) -> str:
        alias = match.group(1)
        if alias.lower() not in ALIAS_TO_KEY:
            return match.group(0)
        return value(alias, show, episode)

    return _PLACEHOLDER.sub(replace, template)


def with_extension(filename: str, extension: str, quality: str | None = None) -> str:
    """Fill ``{ext}`` and ``{quality}`` and make sure the name ends in the extension."""
    full = re.sub(r"\{ext\}", extension, filename, flags=re.IGNORECASE)
    if quality is not None:
        full = re.sub(r"\{quality\}", quality, full, flags=re.IGNORECASE)
    if extension and not full.endswith(f".{extension}"):
        full = f"{full}.{extension}"
    return full
