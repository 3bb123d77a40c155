from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class TrackerResponse(BaseModel):
    """A tracker owned by the current user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime


class EmbedResponse(BaseModel):
    """Snippet an owner pastes into the monitored page."""

    tracker_id: str
    script_url: str
    embed_code: str


class ScrollEventResponse(BaseModel):
    """A stored scroll event as returned to the dashboard."""

    model_config = ConfigDict(from_attributes=True)

    occurred_at: datetime
    scroll_depth: int
    page_url: str
    time_on_page: int | None = None
    total_time_on_page: int | None = None
    max_scroll_depth: int | None = None
    scroll_events_count: int | None = None
    engagement_data: dict[str, Any] | None = None
    ua: str | None = None
    viewport_w: int | None = None
    viewport_h: int | None = None
