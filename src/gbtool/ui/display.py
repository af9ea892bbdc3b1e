"""Rich rendering of shows, videos, seasons and download plans."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from gbtool.api.models import VideoShow
from gbtool.catalog.models import Catalog, PartitionKind
from gbtool.download import DownloadPlan
from gbtool.matching.shows import ShowMatch
from gbtool.matching.videos import VideoMatch
from gbtool.save.manager import DownloadProgress
from gbtool.utils.datetime import day_of


def number(value: int) -> str:
    return str(value).zfill(2)


def render_shows(
    console: Console, matches: list[ShowMatch] | list[VideoShow], details: bool = False
) -> None:
    """Table of shows, with match type and deck when ``details`` is set."""
    table = Table(title="[bold]Shows[/bold]")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("GUID", style="dim")
    table.add_column("Title", style="bold")
    if details:
        table.add_column("Match", style="yellow")
        table.add_column("Deck", style="white")

    for match in matches:
        show = match.show if isinstance(match, ShowMatch) else match
        row = [str(show.id), show.guid or "—", escape(show.title or "—")]
        if details:
            match_type = match.match_type.value if isinstance(match, ShowMatch) else "—"
            row += [match_type, escape(show.deck or "")]
        table.add_row(*row)

    console.print(table)
    console.print(f"\n[dim]Total: {len(matches)} show(s)[/dim]")


def render_videos(console: Console, matches: list[VideoMatch], details: bool = False) -> None:
    table = Table(title="[bold]Videos[/bold]")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Date", style="green")
    table.add_column("Name", style="bold")
    table.add_column("Show", style="blue")
    if details:
        table.add_column("Match", style="yellow")
        table.add_column("Tags", style="magenta")

    for match in matches:
        video = match.video
        show = video.video_show.title if video.video_show and video.video_show.title else "—"
        row = [str(video.id), day_of(video.publish_date), escape(video.name or "—"), escape(show)]
        if details:
            tags = ["Premium"] if video.premium else []
            row += [match.match_type.value, ", ".join(tags)]
        table.add_row(*row)

    console.print(table)
    console.print(f"\n[dim]Total: {len(matches)} video(s)[/dim]")


def render_seasons(
    console: Console, catalog: Catalog, kind: PartitionKind, details: bool = False
) -> None:
    """Season list of one partition; with ``details``, every episode too."""
    seasons = catalog.seasons(kind)
    marker = " (preferred)" if kind is catalog.preferred else ""
    console.print(
        f"\n[bold blue]{escape(catalog.show_title or '')}[/bold blue]  [dim](id: {catalog.show_id})[/dim]"
    )
    console.print(
        f"[dim]{len(catalog.episodes)} episodes in {len(seasons)} {kind.value} seasons{marker}[/dim]\n"
    )

    for index, season in enumerate(seasons, start=1):
        console.print(
            f"  [bold]Season {number(index)}[/bold] - {escape(season.name)}  "
            f"[dim]({len(season)} episodes)[/dim]"
        )
        if details:
            for e, video in enumerate(season.episodes, start=1):
                console.print(
                    f"    Episode {number(e)} - {escape(video.name or '')}  [dim]{day_of(video.publish_date)}[/dim]"
                )


def render_plan(console: Console, plan: DownloadPlan, details: bool = False) -> None:
    """Episodes selected for download, grouped by season.

    With ``details``, excluded episodes are listed too and included ones
    are marked with ``+``.
    """
    console.print("Episodes identified for download:\n")
    if plan.included or details:
        style = "blue" if plan.included else "dim"
        console.print(f"[{style}]{escape(plan.show.title or '')}  (id: {plan.show.id})[/{style}]")

    for s, season in enumerate(plan.catalog.seasons(plan.kind), start=1):
        season_included = any(video.id in plan.included for video in season.episodes)
        if not season_included and not details:
            continue

        style = "blue" if season_included else "dim"
        console.print(f"[{style}]  Season {number(s)} - {escape(season.name)}[/{style}]")
        for e, video in enumerate(season.episodes, start=1):
            included = video.id in plan.included
            if not included and not details:
                continue
            prefix = (" + " if included else "   ") if details else "  "
            style = "blue" if included else "dim"
            console.print(f"[{style}]  {prefix}Episode {number(e)} - {escape(video.name or '')}[/{style}]")
    console.print()


def download_progress(console: Console) -> Progress:
    """Transient progress bars for file downloads."""
    return Progress(
        TextColumn("  [progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console,
        transient=True,
    )


class ProgressReporter:
    """Feeds :class:`DownloadProgress` updates into a rich Progress, one task per file."""

    def __init__(self, progress: Progress) -> None:
        self.progress = progress
        self._tasks: dict[Path, TaskID] = {}

    def __call__(self, update: DownloadProgress) -> None:
        task = self._tasks.get(update.path)
        if task is None:
            task = self.progress.add_task(escape(update.path.name), total=update.total_bytes)
            self._tasks[update.path] = task
        self.progress.update(task, completed=update.downloaded_bytes)
