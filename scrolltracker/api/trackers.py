"""Owner-scoped dashboard API: tracker management, events and aggregates."""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Response, status

from scrolltracker.dependencies import AppSettings, Config, CurrentOwner, DBSession, OwnedTracker
from scrolltracker.metrics.engagement import summarize
from scrolltracker.metrics.geo import CountryResolver, build_visitors, country_breakdown
from scrolltracker.metrics.records import to_records
from scrolltracker.schemas.stats import StatsResponse, VisitorsResponse
from scrolltracker.schemas.tracker import EmbedResponse, ScrollEventResponse, TrackerResponse
from scrolltracker.services.export_service import events_to_csv, export_filename
from scrolltracker.services.script_service import build_embed_code, build_script_url
from scrolltracker.services.tracker_service import (
    create_tracker,
    delete_tracker,
    list_trackers,
    load_events,
    load_recent_events,
)

router = APIRouter()


@router.get("/trackers", response_model=list[TrackerResponse])
async def get_trackers(db: DBSession, owner: CurrentOwner) -> list[TrackerResponse]:
    """List the current owner's trackers, newest first."""
    trackers = await list_trackers(db, owner)
    return [TrackerResponse.model_validate(t) for t in trackers]


@router.post("/trackers", response_model=TrackerResponse, status_code=status.HTTP_201_CREATED)
async def post_tracker(db: DBSession, owner: CurrentOwner) -> TrackerResponse:
    """Create a tracker for the current owner."""
    tracker = await create_tracker(db, owner)
    return TrackerResponse.model_validate(tracker)


@router.delete("/trackers/{tracker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_tracker(tracker: OwnedTracker, db: DBSession) -> Response:
    """
    Delete a tracker and, through the cascade, all of its events.

    Trackers owned by someone else are reported as not found.
    """
    await delete_tracker(db, tracker)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/trackers/{tracker_id}/embed", response_model=EmbedResponse)
async def get_embed_code(tracker: OwnedTracker, settings: AppSettings) -> EmbedResponse:
    """Embed snippet for a tracker."""
    return EmbedResponse(
        tracker_id=tracker.id,
        script_url=build_script_url(settings.base_url, tracker.id),
        embed_code=build_embed_code(settings.base_url, tracker.id),
    )


@router.get("/trackers/{tracker_id}/events", response_model=list[ScrollEventResponse])
async def get_events(
    tracker: OwnedTracker,
    db: DBSession,
    config: Config,
) -> list[ScrollEventResponse]:
    """A tracker's events, oldest first, capped at the configured row limit."""
    events = await load_events(db, tracker.id, config.dashboard.event_limit)
    return [ScrollEventResponse.model_validate(e) for e in events]


@router.get("/trackers/{tracker_id}/stats", response_model=StatsResponse)
async def get_stats(tracker: OwnedTracker, db: DBSession, config: Config) -> StatsResponse:
    """
    Aggregated engagement statistics for a tracker.

    Computed over the same capped event set as the events endpoint.
    Dashboards poll this every ``refresh_interval_seconds``.
    """
    events = await load_events(db, tracker.id, config.dashboard.event_limit)
    summary = summarize(to_records(events))
    return StatsResponse(
        **asdict(summary),
        refresh_interval_seconds=config.dashboard.refresh_interval_seconds,
    )


@router.get("/trackers/{tracker_id}/visitors", response_model=VisitorsResponse)
async def get_visitors(tracker: OwnedTracker, db: DBSession, config: Config) -> VisitorsResponse:
    """
    Distinct visitors (by network address) in the active window.

    Countries are placeholders derived from a hash of the address, not a
    geolocation lookup.
    """
    window_hours = config.dashboard.active_window_hours
    events = await load_recent_events(db, tracker.id, window_hours)
    visitors = build_visitors(to_records(events), CountryResolver())
    countries = country_breakdown(visitors, limit=config.dashboard.top_countries)
    return VisitorsResponse(
        window_hours=window_hours,
        active_users=len(visitors),
        visitors=[asdict(v) for v in visitors],
        countries=[asdict(c) for c in countries],
    )


@router.get("/trackers/{tracker_id}/export")
async def export_events(tracker: OwnedTracker, db: DBSession, config: Config) -> Response:
    """Download a tracker's events as CSV."""
    events = await load_events(db, tracker.id, config.dashboard.event_limit)
    if not events:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No data to export",
        )

    return Response(
        content=events_to_csv(to_records(events)),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(tracker.id)}"'
        },
    )
