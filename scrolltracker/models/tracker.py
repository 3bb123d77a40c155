from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scrolltracker.core.datetime_utils import utc_now
from scrolltracker.models.base import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONVariant = JSON().with_variant(JSONB(), "postgresql")


class Tracker(Base):
    """A monitored page or site, owned by one account."""

    __tablename__ = "trackers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner: Mapped[str] = mapped_column(String(255), index=True)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)

    # Relationships
    events: Mapped[list[ScrollEvent]] = relationship(
        back_populates="tracker",
        cascade="save-update, merge, delete",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Tracker {self.id}>"


class ScrollEvent(Base):
    """One reported scroll-depth observation. Insert-only."""

    __tablename__ = "scroll_events"
    __table_args__ = (
        CheckConstraint("scroll_depth BETWEEN 0 AND 100", name="ck_scroll_events_depth"),
        CheckConstraint(
            "viewport_w IS NULL OR (viewport_w > 0 AND viewport_w <= 20000)",
            name="ck_scroll_events_viewport_w",
        ),
        CheckConstraint(
            "viewport_h IS NULL OR (viewport_h > 0 AND viewport_h <= 20000)",
            name="ck_scroll_events_viewport_h",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tracker_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("trackers.id", ondelete="CASCADE"), index=True
    )
    scroll_depth: Mapped[int] = mapped_column(Integer)
    page_url: Mapped[str] = mapped_column(Text)
    occurred_at: Mapped[datetime] = mapped_column(default=utc_now, index=True)

    # Session engagement (milliseconds / percent / count)
    time_on_page: Mapped[int | None] = mapped_column(Integer, default=None, index=True)
    total_time_on_page: Mapped[int | None] = mapped_column(Integer, default=None)
    max_scroll_depth: Mapped[int | None] = mapped_column(Integer, default=None, index=True)
    scroll_events_count: Mapped[int | None] = mapped_column(Integer, default=None)
    engagement_data: Mapped[dict | None] = mapped_column(JSONVariant, default=None)

    # Device descriptor
    ua: Mapped[str | None] = mapped_column(String(512), default=None)
    viewport_w: Mapped[int | None] = mapped_column(Integer, default=None)
    viewport_h: Mapped[int | None] = mapped_column(Integer, default=None)

    ip_address: Mapped[str | None] = mapped_column(String(255), default=None)

    tracker: Mapped[Tracker] = relationship(back_populates="events")

    def __repr__(self) -> str:
        return f"<ScrollEvent {self.tracker_id} {self.scroll_depth}% @ {self.occurred_at}>"
