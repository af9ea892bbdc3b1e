"""CLI entry point for gb-tool."""

import asyncio
import sys
from enum import Enum
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gbtool.anchors.parser import AnchorSpec, AnchorType, parse_anchor_option
from gbtool.api.filters import FilterValue
from gbtool.catalog.models import PartitionKind
from gbtool.config.logging import setup_logging
from gbtool.config.manager import ConfigManager, resolve_api_key
from gbtool.config.schema import GlobalConfig
from gbtool.download import DownloadRequest, OutputTemplates, plan_download, run_download
from gbtool.save.manager import SaveManager
from gbtool.session import open_cache, open_session
from gbtool.ui.display import (
    ProgressReporter,
    download_progress,
    render_plan,
    render_seasons,
    render_shows,
    render_videos,
)
from gbtool.utils.errors import (
    ConfigError,
    GBToolError,
    InputError,
    NotFoundError,
    ShowNotFoundError,
    UnsupportedSpecError,
)

app = typer.Typer(
    name="gb-tool",
    help="Find, organize, and archive Giant Bomb videos by show and season",
    no_args_is_help=True,
)
console = Console()

EXIT_ERROR = 1
EXIT_INPUT = 2
EXIT_NOT_FOUND = 3
EXIT_CONFIG = 4
EXIT_INTERRUPTED = 130


class QualityChoice(str, Enum):
    HIGHEST = "highest"
    AUTO = "auto"
    HD = "hd"
    HIGH = "high"
    LOW = "low"


def exit_code_for(error: GBToolError) -> int:
    """Process exit code for an error that ended a command."""
    if isinstance(error, NotFoundError):
        return EXIT_NOT_FOUND
    if isinstance(error, (InputError, UnsupportedSpecError)):
        return EXIT_INPUT
    if isinstance(error, ConfigError):
        return EXIT_CONFIG
    return EXIT_ERROR


def _abort(error: GBToolError) -> NoReturn:
    console.print(f"[red]✗[/red] {escape(str(error))}")
    sys.exit(exit_code_for(error))


def _load(ctx: typer.Context) -> GlobalConfig:
    """Load config and apply its log level."""
    options = ctx.obj or {}
    config = ConfigManager().load_config()
    setup_logging(
        verbose=options.get("verbose", False),
        log_file=options.get("log_file"),
        level=config.log_level,
    )
    return config


def _api_key(ctx: typer.Context, config: GlobalConfig) -> str:
    return resolve_api_key(config, (ctx.obj or {}).get("api_key"))


def _run(coro) -> None:
    """Run a command coroutine, mapping errors to exit codes."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(EXIT_INTERRUPTED)
    except GBToolError as e:
        _abort(e)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file"
    ),
    api_key: str | None = typer.Option(
        None, "--api-key", help="API key (overrides GIANTBOMB_TOKEN and the config file)"
    ),
) -> None:
    """gb-tool - Giant Bomb show catalogs and downloads."""
    setup_logging(verbose=verbose, log_file=log_file)
    ctx.obj = {"verbose": verbose, "log_file": log_file, "api_key": api_key}


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from gbtool import __version__

    console.print(f"[bold cyan]gb-tool[/bold cyan] v{__version__}")


@app.command("shows")
def shows_command(
    ctx: typer.Context,
    query: str | None = typer.Argument(None, help="Show ID, GUID, or part of a title"),
    details: bool = typer.Option(False, "--details", "-d", help="Show match type and description"),
) -> None:
    """List shows, or the shows matching a query.

    Examples:
        gb-tool shows

        gb-tool shows "quick look"
    """

    async def run_shows() -> None:
        config = _load(ctx)
        async with open_session(config, _api_key(ctx, config)) as session:
            if query is None:
                listing = await session.attempt(lambda: session.api.all_shows())
                render_shows(console, listing.items, details=details)
                return

            matches = await session.attempt(lambda: session.shows.list(query))
            if not matches:
                raise ShowNotFoundError(f"No shows found for {query!r}")
            render_shows(console, matches, details=details)

    _run(run_shows())


@app.command("videos")
def videos_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Video ID, GUID, or text"),
    show: str | None = typer.Option(None, "--show", help="Only videos of this show"),
    premium: bool = typer.Option(False, "--premium", help="Only premium videos"),
    free: bool = typer.Option(False, "--free", help="Only free videos"),
    details: bool = typer.Option(False, "--details", "-d", help="Show match type and tags"),
) -> None:
    """Find videos by ID, GUID, name, or associated game.

    Examples:
        gb-tool videos "nidhogg"

        gb-tool videos "bombcast" --show "Giant Bombcast" --premium
    """

    async def run_videos() -> None:
        if premium and free:
            raise InputError("Can't combine --premium and --free; nothing will match")
        filters: dict[str, FilterValue] = {}
        if premium or free:
            filters["premium"] = premium

        config = _load(ctx)
        async with open_session(config, _api_key(ctx, config)) as session:
            target = None
            if show is not None:
                match = await session.attempt(lambda: session.shows.find(show))
                if match is None:
                    raise ShowNotFoundError(f"No shows found for {show!r}")
                target = match.show

            matches = await session.attempt(
                lambda: session.videos.list(query, show=target, filters=filters)
            )
            if not matches:
                console.print(f"[yellow]No videos found for {escape(query)!r}[/yellow]")
                return
            render_videos(console, matches, details=details)

    _run(run_videos())


@app.command("seasons")
def seasons_command(
    ctx: typer.Context,
    show: str = typer.Argument(..., help="Show ID, GUID, or part of a title"),
    season_type: PartitionKind | None = typer.Option(
        None, "--season-type", "-t", help="Group by years or games (default: preferred)"
    ),
    details: bool = typer.Option(False, "--details", "-d", help="List every episode"),
) -> None:
    """Show a show's seasons.

    Examples:
        gb-tool seasons "quick look"

        gb-tool seasons "endurance run" --season-type games --details
    """

    async def run_seasons() -> None:
        config = _load(ctx)
        async with open_session(config, _api_key(ctx, config)) as session:
            match = await session.attempt(lambda: session.shows.find(show))
            if match is None:
                raise ShowNotFoundError(f"No shows found for {show!r}")

            catalog = await session.attempt(lambda: session.builder.build(match.show))
            if catalog.is_empty:
                console.print(f"[yellow]{escape(match.show.title or show)} has no videos[/yellow]")
                return
            render_seasons(console, catalog, season_type or catalog.preferred, details=details)

    _run(run_seasons())


@app.command("download")
def download_command(
    ctx: typer.Context,
    show: str | None = typer.Argument(None, help="Show ID, GUID, or part of a title"),
    video: str | None = typer.Option(None, "--video", help="A single video, by ID, GUID, or text"),
    episode: int | None = typer.Option(None, "--episode", "-e", help="Episode number"),
    season: str | None = typer.Option(None, "--season", "-s", help="Season number or name"),
    season_type: PartitionKind | None = typer.Option(
        None, "--season-type", "-t", help="Group by years or games (default: preferred)"
    ),
    from_: str | None = typer.Option(None, "--from", help="Start here (S04E17, S04, E17, season=..,episode=..)"),
    after: str | None = typer.Option(None, "--after", help="Start just after here"),
    to: str | None = typer.Option(None, "--to", help="Stop just before here"),
    through: str | None = typer.Option(None, "--through", help="Stop here"),
    quality: QualityChoice | None = typer.Option(None, "--quality", "-q", help="Video and image quality"),
    out: str | None = typer.Option(None, "--out", "-o", help="Filename template for every output"),
    video_out: str | None = typer.Option(None, "--video-out", help="Video filename template"),
    image_out: str | None = typer.Option(None, "--image-out", help="Image filename template"),
    metadata_out: str | None = typer.Option(None, "--metadata-out", help="Metadata filename template"),
    show_out: str | None = typer.Option(None, "--show-out", help="Show metadata and image template"),
    replace: bool = typer.Option(False, "--replace", help="Replace files that already exist"),
    backup: bool = typer.Option(False, "--backup", help="Keep replaced files as backups"),
    details: bool = typer.Option(False, "--details", "-d", help="List excluded episodes too"),
    commit: bool = typer.Option(False, "--commit", help="Skip the confirmation prompt"),
) -> None:
    """Download episodes of a show.

    Without anchors, downloads the given video, episode, or season. Anchors
    narrow a range: --from and --through include their episode, --after and
    --to exclude it. Use "none" as a template to skip an output.

    Examples:
        gb-tool download "endurance run" --season 2 --out "{show}/S{s}E{e} - {name}"

        gb-tool download "quick look" --from S04E17 --to S05 --video-out none --commit
    """

    async def run_download_command() -> None:
        anchors: list[tuple[AnchorType, AnchorSpec]] = []
        for anchor_type, value in (
            (AnchorType.FROM, from_),
            (AnchorType.AFTER, after),
            (AnchorType.TO, to),
            (AnchorType.THROUGH, through),
        ):
            if value is not None:
                anchors.append((anchor_type, parse_anchor_option(value)))

        request = DownloadRequest(
            show=show,
            video=video,
            episode=episode,
            season=season,
            season_type=season_type,
            anchors=tuple(anchors),
        )
        templates = OutputTemplates(
            out=out,
            video_out=video_out,
            image_out=image_out,
            metadata_out=metadata_out,
            show_out=show_out,
        )

        config = _load(ctx)
        tier = quality.value if quality is not None else config.default_quality
        api_key = _api_key(ctx, config)

        async with open_session(config, api_key) as session:
            plan = await plan_download(session, request)
            render_plan(console, plan, details=details)

            selected = plan.episodes()
            if not selected:
                console.print(
                    "No episodes flagged for download "
                    "(try relaxing your from/after/to/through requirements)."
                )
                return

            if not templates.any_enabled:
                console.print("To save, specify --out, --video-out, etc. as a templated filename")
                return

            if not commit:
                video_name, image_name, metadata_name = templates.for_episode(
                    plan.show, selected[0]
                )
                action = "download (and replace)" if replace else "download (if missing)"
                console.print(
                    f"Will {action} data for {len(selected)} video(s) to template-based files, "
                    "saving (e.g.)"
                )
                if video_name:
                    console.print(f"  {tier} quality video to {escape(video_name)}\\[.ext]")
                if image_name:
                    console.print(f"  {tier} quality image to {escape(image_name)}\\[.ext]")
                if metadata_name:
                    console.print(f"  json-format video metadata to {escape(metadata_name)}\\[.ext]")
                console.print()

                answer = await asyncio.to_thread(
                    typer.prompt, 'To confirm, type "commit" and press ENTER', default=""
                )
                if answer.strip() != "commit":
                    console.print("[yellow]Cancelled[/yellow]")
                    return

            with download_progress(console) as progress:
                async with SaveManager(
                    api_key=api_key,
                    backup=backup,
                    progress_callback=ProgressReporter(progress),
                ) as saver:
                    results = await run_download(
                        session,
                        plan,
                        saver,
                        templates,
                        quality=tier,
                        replace=replace,
                        on_episode=lambda ep: console.print(
                            f"Saving S{ep.number:02d}E{ep.season_episode_number:02d} - "
                            f"{escape(ep.video.name or '')}..."
                        ),
                    )

            updated = sum(1 for result in results if result.updated)
            console.print(
                f"\n[green]✓[/green] Done! {updated} file(s) written, "
                f"{len(results) - updated} already present"
            )

    _run(run_download_command())


@app.command("cache")
def cache_command(
    ctx: typer.Context,
    action: str = typer.Argument(..., help="Action: stats, clear"),
) -> None:
    """Manage the API response cache.

    Actions:
        stats: Show cache statistics
        clear: Remove every cached response

    Examples:
        gb-tool cache stats

        gb-tool cache clear
    """

    async def run_cache() -> None:
        config = _load(ctx)
        cache = await open_cache(config)
        try:
            if action == "stats":
                stats = cache.stats()

                console.print("\n[bold]API Cache Statistics[/bold]\n")

                table = Table(show_header=False, box=None)
                table.add_column("Key", style="cyan")
                table.add_column("Value", style="white")

                table.add_row("Total entries", str(stats["total_entries"]))
                table.add_row("Size", f"{stats['size_kb']} KB")
                table.add_row("Oldest entry", f"{stats['oldest_entry_age_minutes']} min ago")
                table.add_row("Newest entry", f"{stats['newest_entry_age_minutes']} min ago")
                table.add_row("TTL", f"{stats['ttl_hours']:g} h")
                table.add_row("Cache file", stats["path"])

                console.print(table)

            elif action == "clear":
                count = await cache.clear()
                console.print(f"[green]✓[/green] Cleared {count} cache entries")

            else:
                raise InputError(f"Unknown action: {action}. Valid actions: stats, clear")
        finally:
            await cache.close()

    _run(run_cache())


@app.command("config")
def config_command(
    ctx: typer.Context,
    action: str = typer.Argument(..., help="Action: show, or set <key> <value>"),
    key: str | None = typer.Argument(None, help="Config key (for 'set' action)"),
    value: str | None = typer.Argument(None, help="Config value (for 'set' action)"),
) -> None:
    """Manage gb-tool configuration.

    Actions:
        show: Display current configuration
        set:  Set a configuration value

    Examples:
        gb-tool config show

        gb-tool config set rate_limit_ms 1500
    """
    try:
        manager = ConfigManager()

        if action == "show":
            config = manager.load_config()

            console.print("\n[bold]gb-tool Configuration[/bold]\n")

            table = Table(show_header=False, box=None)
            table.add_column("Key", style="cyan")
            table.add_column("Value", style="white")

            table.add_row("Config file", str(manager.config_file))
            table.add_row("", "")
            for name, field_value in config.model_dump().items():
                if name == "api_key":
                    field_value = "(set)" if field_value else "(not set)"
                table.add_row(name, escape(str(field_value)))

            console.print(table)

        elif action == "set":
            if not key or value is None:
                raise InputError("Usage: gb-tool config set <key> <value>")

            manager.set_value(key, value)
            shown = "(hidden)" if key == "api_key" else escape(value)
            console.print(f"[green]✓[/green] Set [cyan]{key}[/cyan] = [yellow]{shown}[/yellow]")

        else:
            raise InputError(f"Unknown action: {action}. Valid actions: show, set")

    except GBToolError as e:
        _abort(e)


if __name__ == "__main__":
    app()
