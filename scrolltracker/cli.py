"""
scrolltracker CLI - Command line interface for operators.

Usage:
    scrolltracker --help                          Show all commands
    scrolltracker create-tracker --owner OWNER    Create a tracker and print its embed code
    scrolltracker list-trackers --owner OWNER     List an owner's trackers
    scrolltracker delete-tracker ID               Delete a tracker and its events
    scrolltracker stats ID                        Print engagement statistics
    scrolltracker export ID -o events.csv         Export events as CSV
"""

import asyncio
from pathlib import Path

import typer

app = typer.Typer(
    name="scrolltracker",
    help="scrolltracker CLI - tracker management and engagement reports",
    no_args_is_help=True,
)


def _print_success(message: str) -> None:
    """Print a success message."""
    typer.echo(f"  ✅ {message}")


def _print_error(message: str) -> None:
    """Print an error message to stderr."""
    typer.echo(f"❌ {message}", err=True)


async def _create_tracker(owner: str) -> None:
    from scrolltracker.config import get_settings
    from scrolltracker.core.database import AsyncSessionLocal
    from scrolltracker.services.script_service import build_embed_code
    from scrolltracker.services.tracker_service import create_tracker

    async with AsyncSessionLocal() as db:
        tracker = await create_tracker(db, owner)
        await db.commit()

    _print_success(f"Created tracker {tracker.id}")
    typer.echo(build_embed_code(get_settings().base_url, tracker.id))


async def _list_trackers(owner: str) -> None:
    from scrolltracker.core.database import AsyncSessionLocal
    from scrolltracker.services.tracker_service import list_trackers

    async with AsyncSessionLocal() as db:
        trackers = await list_trackers(db, owner)

    if not trackers:
        typer.echo("No trackers")
        return
    for tracker in trackers:
        typer.echo(f"{tracker.id}  {tracker.created_at:%Y-%m-%d %H:%M}")


async def _delete_tracker(tracker_id: str) -> bool:
    from scrolltracker.core.database import AsyncSessionLocal
    from scrolltracker.services.tracker_service import delete_tracker, get_tracker

    async with AsyncSessionLocal() as db:
        tracker = await get_tracker(db, tracker_id)
        if tracker is None:
            return False
        await delete_tracker(db, tracker)
        await db.commit()
    return True


async def _print_stats(tracker_id: str) -> bool:
    from scrolltracker.config import get_config
    from scrolltracker.core.database import AsyncSessionLocal
    from scrolltracker.metrics.engagement import summarize
    from scrolltracker.metrics.records import to_records
    from scrolltracker.services.tracker_service import get_tracker, load_events

    async with AsyncSessionLocal() as db:
        if await get_tracker(db, tracker_id) is None:
            return False
        events = await load_events(db, tracker_id, get_config().dashboard.event_limit)

    summary = summarize(to_records(events))
    m = summary.milestones
    typer.echo(f"\nEvents: {m.total}")
    typer.echo(f"Milestones: 25%={m.p25}%  50%={m.p50}%  75%={m.p75}%  100%={m.p100}%")

    overall = summary.engagement.overall
    typer.echo(
        f"Sessions: {overall.sessions}  avg time {overall.avg_time_on_page}s  "
        f"completion {overall.completion_rate}%  active {overall.active_rate}%  "
        f"speed {overall.avg_scroll_speed}ms/event"
    )
    for insight in summary.insights.devices:
        typer.echo(
            f"  {insight.device}: {insight.sessions} sessions, {insight.avg_time_on_page}s avg, "
            f"{insight.completion_rate}% completion, {insight.active_rate}% active"
        )
    if summary.insights.best:
        typer.echo(f"Most engaged device: {summary.insights.best.device}")
    return True


async def _export(tracker_id: str) -> str | None:
    from scrolltracker.config import get_config
    from scrolltracker.core.database import AsyncSessionLocal
    from scrolltracker.metrics.records import to_records
    from scrolltracker.services.export_service import events_to_csv
    from scrolltracker.services.tracker_service import load_events

    async with AsyncSessionLocal() as db:
        events = await load_events(db, tracker_id, get_config().dashboard.event_limit)

    if not events:
        return None
    return events_to_csv(to_records(events))


@app.command("create-tracker")
def create_tracker_cmd(
    owner: str = typer.Option(..., "--owner", help="Owner id (auth provider subject)"),
):
    """Create a tracker and print its embed code."""
    from scrolltracker.core.logging import setup_logging

    setup_logging()
    asyncio.run(_create_tracker(owner))


@app.command("list-trackers")
def list_trackers_cmd(
    owner: str = typer.Option(..., "--owner", help="Owner id (auth provider subject)"),
):
    """List an owner's trackers, newest first."""
    from scrolltracker.core.logging import setup_logging

    setup_logging()
    asyncio.run(_list_trackers(owner))


@app.command("delete-tracker")
def delete_tracker_cmd(
    tracker_id: str = typer.Argument(..., help="Tracker id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a tracker and all of its events."""
    from scrolltracker.core.logging import setup_logging

    setup_logging()
    if not yes:
        typer.confirm(f"Delete tracker {tracker_id} and all its events?", abort=True)

    if not asyncio.run(_delete_tracker(tracker_id)):
        _print_error(f"Unknown tracker: {tracker_id}")
        raise typer.Exit(1)
    _print_success(f"Deleted tracker {tracker_id}")


@app.command()
def stats(
    tracker_id: str = typer.Argument(..., help="Tracker id"),
):
    """Print milestone and engagement statistics for a tracker."""
    from scrolltracker.core.logging import setup_logging

    setup_logging()
    if not asyncio.run(_print_stats(tracker_id)):
        _print_error(f"Unknown tracker: {tracker_id}")
        raise typer.Exit(1)


@app.command()
def export(
    tracker_id: str = typer.Argument(..., help="Tracker id"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write CSV to this file"),
):
    """Export a tracker's events as CSV."""
    from scrolltracker.core.logging import setup_logging
    from scrolltracker.services.export_service import export_filename

    setup_logging()
    content = asyncio.run(_export(tracker_id))
    if content is None:
        _print_error("No data to export")
        raise typer.Exit(1)

    path = output or Path(export_filename(tracker_id))
    path.write_text(content, encoding="utf-8")
    _print_success(f"Wrote {path}")


if __name__ == "__main__":
    app()
