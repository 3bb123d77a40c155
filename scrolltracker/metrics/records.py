"""Immutable event records consumed by the aggregation functions."""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scrolltracker.models.tracker import ScrollEvent


@dataclass(frozen=True)
class EventRecord:
    """Read-only view of one stored scroll event."""

    occurred_at: datetime
    scroll_depth: int
    page_url: str = ""
    time_on_page: int | None = None
    total_time_on_page: int | None = None
    max_scroll_depth: int | None = None
    scroll_events_count: int | None = None
    ua: str | None = None
    viewport_w: int | None = None
    viewport_h: int | None = None
    ip_address: str | None = None

    @classmethod
    def from_model(cls, event: "ScrollEvent") -> "EventRecord":
        return cls(
            occurred_at=event.occurred_at,
            scroll_depth=event.scroll_depth,
            page_url=event.page_url,
            time_on_page=event.time_on_page,
            total_time_on_page=event.total_time_on_page,
            max_scroll_depth=event.max_scroll_depth,
            scroll_events_count=event.scroll_events_count,
            ua=event.ua,
            viewport_w=event.viewport_w,
            viewport_h=event.viewport_h,
            ip_address=event.ip_address,
        )


def to_records(events: "list[ScrollEvent]") -> tuple[EventRecord, ...]:
    """Snapshot ORM rows into an immutable tuple of records."""
    return tuple(EventRecord.from_model(e) for e in events)
