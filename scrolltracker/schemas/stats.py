from datetime import datetime

from pydantic import BaseModel


class MilestoneStatsResponse(BaseModel):
    p25: int
    p50: int
    p75: int
    p100: int
    total: int


class SessionSummaryResponse(BaseModel):
    sessions: int
    avg_time_on_page: int
    completion_rate: int
    active_rate: int
    avg_scroll_speed: int


class EngagementStatsResponse(BaseModel):
    overall: SessionSummaryResponse
    desktop: SessionSummaryResponse
    mobile: SessionSummaryResponse
    tablet: SessionSummaryResponse


class DeviceInsightResponse(BaseModel):
    device: str
    sessions: int
    avg_time_on_page: int
    completion_rate: int
    active_rate: int


class DeviceInsightsResponse(BaseModel):
    best: DeviceInsightResponse | None
    devices: list[DeviceInsightResponse]


class ChartSeriesResponse(BaseModel):
    timestamps: list[datetime]
    depths: list[int]


class StatsResponse(BaseModel):
    """Aggregated dashboard statistics for one tracker."""

    milestones: MilestoneStatsResponse
    engagement: EngagementStatsResponse
    insights: DeviceInsightsResponse
    chart: ChartSeriesResponse
    refresh_interval_seconds: int


class VisitorResponse(BaseModel):
    ip: str
    country: str
    country_name: str
    last_seen: datetime
    avatar: str
    device_type: str


class CountryCountResponse(BaseModel):
    country: str
    country_name: str
    count: int
    share: int


class VisitorsResponse(BaseModel):
    """Active visitors in the look-back window with placeholder countries."""

    window_hours: int
    active_users: int
    visitors: list[VisitorResponse]
    countries: list[CountryCountResponse]
