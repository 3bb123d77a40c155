from scrolltracker.schemas.stats import StatsResponse, VisitorsResponse
from scrolltracker.schemas.track import DevicePayload, EngagementPayload, TrackEventPayload
from scrolltracker.schemas.tracker import EmbedResponse, ScrollEventResponse, TrackerResponse

__all__ = [
    "TrackEventPayload",
    "EngagementPayload",
    "DevicePayload",
    "TrackerResponse",
    "EmbedResponse",
    "ScrollEventResponse",
    "StatsResponse",
    "VisitorsResponse",
]
