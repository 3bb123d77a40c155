from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    TypeAdapter,
    ValidationError,
)

_url_adapter = TypeAdapter(AnyUrl)


def _validate_url(value: str) -> str:
    # Validate, but keep the client's spelling of the URL for storage
    try:
        _url_adapter.validate_python(value)
    except ValidationError as e:
        raise ValueError("Invalid url") from e
    return value


PageUrl = Annotated[str, AfterValidator(_validate_url)]


# Last millisecond of year 9999, the largest instant datetime can hold
MAX_TIMESTAMP_MS = 253402300799999


class EngagementPayload(BaseModel):
    """Session engagement snapshot sent with milestone and unload events."""

    time_on_page: StrictInt = Field(alias="timeOnPage", ge=0)
    max_depth: StrictFloat = Field(alias="maxDepth", ge=0, le=100)
    scroll_events: StrictInt = Field(alias="scrollEvents", ge=0)
    avg_scroll_speed: StrictFloat = Field(alias="avgScrollSpeed", ge=0)


class DevicePayload(BaseModel):
    """Device descriptor reported by the tracking script."""

    ua: str | None = Field(default=None, max_length=512)
    width: StrictInt | None = Field(default=None, gt=0, le=20000)
    height: StrictInt | None = Field(default=None, gt=0, le=20000)


class TrackEventPayload(BaseModel):
    """
    Request body for POST /track.

    Numbers must arrive as JSON numbers: booleans and numeric strings are rejected.
    """

    model_config = ConfigDict(populate_by_name=True)

    tracker_id: str = Field(alias="trackerId", min_length=8, max_length=64)
    scroll_depth: StrictFloat = Field(alias="scrollDepth", ge=0, le=100)
    page_url: PageUrl = Field(alias="pageUrl")
    timestamp: StrictInt = Field(gt=0, le=MAX_TIMESTAMP_MS)  # Epoch milliseconds
    time_on_page: StrictInt | None = Field(default=None, alias="timeOnPage", ge=0)
    total_time_on_page: StrictInt | None = Field(default=None, alias="totalTimeOnPage", ge=0)
    max_scroll_depth: StrictFloat | None = Field(
        default=None, alias="maxScrollDepth", ge=0, le=100
    )
    scroll_events: StrictInt | None = Field(default=None, alias="scrollEvents", ge=0)
    engagement: EngagementPayload | None = None
    device: DevicePayload | None = None

    def engagement_json(self) -> dict[str, Any] | None:
        """Engagement block in the client's camelCase shape, for the JSON column."""
        if self.engagement is None:
            return None
        return self.engagement.model_dump(by_alias=True)
