"""Tracker and scroll event storage operations.

Shared by the HTTP API and the CLI. Owner scoping is enforced here: every
owner-facing query filters on Tracker.owner.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scrolltracker.core.datetime_utils import from_epoch_millis, get_cutoff
from scrolltracker.core.logging import get_logger
from scrolltracker.core.security import generate_tracker_id
from scrolltracker.metrics.engagement import round_half_up
from scrolltracker.models.tracker import ScrollEvent, Tracker
from scrolltracker.schemas.track import TrackEventPayload

logger = get_logger(__name__)

UNKNOWN_ADDRESS = "unknown"


async def get_tracker(db: AsyncSession, tracker_id: str) -> Tracker | None:
    """Look up a tracker by id, regardless of owner."""
    result = await db.execute(select(Tracker).where(Tracker.id == tracker_id))
    return result.scalar_one_or_none()


async def get_owned_tracker(db: AsyncSession, tracker_id: str, owner: str) -> Tracker | None:
    """Look up a tracker only if it belongs to ``owner``."""
    result = await db.execute(
        select(Tracker).where(Tracker.id == tracker_id, Tracker.owner == owner)
    )
    return result.scalar_one_or_none()


async def list_trackers(db: AsyncSession, owner: str) -> list[Tracker]:
    """List an owner's trackers, newest first."""
    result = await db.execute(
        select(Tracker).where(Tracker.owner == owner).order_by(Tracker.created_at.desc())
    )
    return list(result.scalars().all())


async def create_tracker(db: AsyncSession, owner: str) -> Tracker:
    """Create a tracker with a fresh random id."""
    tracker = Tracker(id=generate_tracker_id(), owner=owner)
    db.add(tracker)
    await db.flush()
    await db.refresh(tracker)

    logger.bind(tracker_id=tracker.id, owner=owner).info("tracker_created")
    return tracker


async def delete_tracker(db: AsyncSession, tracker: Tracker) -> None:
    """Delete a tracker. Its events go with it through the ON DELETE CASCADE foreign key."""
    await db.delete(tracker)
    await db.flush()

    logger.bind(tracker_id=tracker.id, owner=tracker.owner).info("tracker_deleted")


def client_address(forwarded_for: str | None, real_ip: str | None) -> str:
    """
    Caller address from proxy headers.

    Uses the first (client) entry of X-Forwarded-For, then X-Real-IP, then
    the "unknown" sentinel.
    """
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return UNKNOWN_ADDRESS


def _optional_int(value: float | int | None) -> int | None:
    # Absent and zero are both stored as NULL
    if not value:
        return None
    return round_half_up(value)


def build_event(payload: TrackEventPayload, ip_address: str) -> ScrollEvent:
    """Map a validated payload onto a new scroll_events row."""
    device = payload.device
    return ScrollEvent(
        tracker_id=payload.tracker_id,
        scroll_depth=round_half_up(payload.scroll_depth),
        page_url=payload.page_url,
        occurred_at=from_epoch_millis(payload.timestamp),
        time_on_page=_optional_int(payload.time_on_page),
        total_time_on_page=_optional_int(payload.total_time_on_page),
        max_scroll_depth=_optional_int(payload.max_scroll_depth),
        scroll_events_count=_optional_int(payload.scroll_events),
        engagement_data=payload.engagement_json(),
        ua=(device.ua or None) if device else None,
        viewport_w=device.width if device else None,
        viewport_h=device.height if device else None,
        ip_address=ip_address,
    )


async def record_event(
    db: AsyncSession,
    payload: TrackEventPayload,
    ip_address: str,
) -> ScrollEvent:
    """Insert one scroll event. No deduplication: every call adds a row."""
    event = build_event(payload, ip_address)
    db.add(event)
    await db.flush()
    return event


async def load_events(db: AsyncSession, tracker_id: str, limit: int) -> list[ScrollEvent]:
    """A tracker's events, oldest first, capped at ``limit`` rows."""
    result = await db.execute(
        select(ScrollEvent)
        .where(ScrollEvent.tracker_id == tracker_id)
        .order_by(ScrollEvent.occurred_at.asc(), ScrollEvent.id.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def load_recent_events(
    db: AsyncSession,
    tracker_id: str,
    hours: int,
) -> list[ScrollEvent]:
    """A tracker's events inside the look-back window, newest first."""
    result = await db.execute(
        select(ScrollEvent)
        .where(
            ScrollEvent.tracker_id == tracker_id,
            ScrollEvent.occurred_at >= get_cutoff(hours=hours),
        )
        .order_by(ScrollEvent.occurred_at.desc(), ScrollEvent.id.desc())
    )
    return list(result.scalars().all())
