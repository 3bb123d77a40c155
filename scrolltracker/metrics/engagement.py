"""Scroll engagement aggregation.

Pure functions from an immutable collection of event records to derived
statistics. Nothing here touches the database or keeps state between calls,
so the same input always yields the same output.

Sessions are reconstructed heuristically: events carrying session metrics
are deduplicated on (total_time_on_page, max_scroll_depth). Two distinct
visits that coincidentally share both values collapse into one session.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from scrolltracker.metrics.devices import DeviceType, classify_device
from scrolltracker.metrics.records import EventRecord

MILESTONES: tuple[int, ...] = (25, 50, 75, 100)

COMPLETION_DEPTH = 100
ACTIVE_DEPTH = 75
ACTIVE_MIN_TIME_MS = 10_000

# Device classes reported on the dashboard, in display order
REPORTED_DEVICES: tuple[DeviceType, ...] = (
    DeviceType.DESKTOP,
    DeviceType.MOBILE,
    DeviceType.TABLET,
)


@dataclass(frozen=True)
class MilestoneStats:
    p25: int
    p50: int
    p75: int
    p100: int
    total: int


@dataclass(frozen=True)
class SessionSummary:
    """Engagement figures for a group of sessions. Times in seconds, rates in percent."""

    sessions: int = 0
    avg_time_on_page: int = 0
    completion_rate: int = 0
    active_rate: int = 0
    avg_scroll_speed: int = 0


@dataclass(frozen=True)
class EngagementStats:
    overall: SessionSummary
    desktop: SessionSummary
    mobile: SessionSummary
    tablet: SessionSummary

    def for_device(self, device: DeviceType) -> SessionSummary:
        return {
            DeviceType.DESKTOP: self.desktop,
            DeviceType.MOBILE: self.mobile,
            DeviceType.TABLET: self.tablet,
        }[device]


@dataclass(frozen=True)
class DeviceInsight:
    device: str
    sessions: int
    avg_time_on_page: int
    completion_rate: int
    active_rate: int


@dataclass(frozen=True)
class DeviceInsights:
    best: DeviceInsight | None
    devices: tuple[DeviceInsight, ...]


@dataclass(frozen=True)
class ChartSeries:
    timestamps: tuple[datetime, ...]
    depths: tuple[int, ...]


@dataclass(frozen=True)
class DashboardSummary:
    milestones: MilestoneStats
    engagement: EngagementStats
    insights: DeviceInsights
    chart: ChartSeries


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def _percent(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


def milestone_percentage(events: Sequence[EventRecord], milestone: int) -> int:
    """
    Share of events whose depth reached ``milestone``, as a whole percentage.

    The percentage is truncated, and an empty set uses a denominator of 1.
    Truncation is deliberate: depths 20/60/100 must report 66/66/33/33, which
    rounding to nearest (67/67/33/33) would break.
    """
    total = max(len(events), 1)
    reached = sum(1 for e in events if e.scroll_depth >= milestone)
    return reached * 100 // total


def compute_milestones(events: Sequence[EventRecord]) -> MilestoneStats:
    """Milestone crossing percentages for 25/50/75/100."""
    p25, p50, p75, p100 = (milestone_percentage(events, m) for m in MILESTONES)
    return MilestoneStats(p25=p25, p50=p50, p75=p75, p100=p100, total=len(events))


def reconstruct_sessions(events: Iterable[EventRecord]) -> tuple[EventRecord, ...]:
    """
    Group raw events into sessions.

    Only events carrying both total time-on-page and max depth are
    considered. The first event seen for each (total_time_on_page,
    max_scroll_depth) pair represents the session.
    """
    sessions: dict[tuple[int, int], EventRecord] = {}
    for event in events:
        if not event.total_time_on_page or not event.max_scroll_depth:
            continue
        key = (event.total_time_on_page, event.max_scroll_depth)
        if key not in sessions:
            sessions[key] = event
    return tuple(sessions.values())


def _is_complete(session: EventRecord) -> bool:
    return (session.max_scroll_depth or 0) >= COMPLETION_DEPTH


def _is_active(session: EventRecord) -> bool:
    return (session.max_scroll_depth or 0) >= ACTIVE_DEPTH and (
        session.total_time_on_page or 0
    ) > ACTIVE_MIN_TIME_MS


def _scroll_speed(session: EventRecord) -> float:
    """Milliseconds per scroll event; 0 when either figure is missing."""
    if session.scroll_events_count and session.total_time_on_page:
        return session.total_time_on_page / session.scroll_events_count
    return 0.0


def summarize_sessions(sessions: Sequence[EventRecord]) -> SessionSummary:
    """Engagement figures for a group of reconstructed sessions."""
    count = len(sessions)
    if count == 0:
        return SessionSummary()

    total_time_ms = sum(s.total_time_on_page or 0 for s in sessions)
    return SessionSummary(
        sessions=count,
        avg_time_on_page=round_half_up(total_time_ms / count / 1000),
        completion_rate=_percent(sum(1 for s in sessions if _is_complete(s)), count),
        active_rate=_percent(sum(1 for s in sessions if _is_active(s)), count),
        avg_scroll_speed=round_half_up(sum(_scroll_speed(s) for s in sessions) / count),
    )


def session_device(session: EventRecord) -> DeviceType:
    return classify_device(session.ua, session.viewport_w, session.viewport_h)


def compute_engagement(events: Sequence[EventRecord]) -> EngagementStats:
    """
    Overall and per-device engagement statistics.

    Sessions with an unknown device count towards the overall figures only.
    """
    sessions = reconstruct_sessions(events)

    by_device: dict[DeviceType, list[EventRecord]] = {d: [] for d in REPORTED_DEVICES}
    for session in sessions:
        device = session_device(session)
        if device in by_device:
            by_device[device].append(session)

    return EngagementStats(
        overall=summarize_sessions(sessions),
        desktop=summarize_sessions(by_device[DeviceType.DESKTOP]),
        mobile=summarize_sessions(by_device[DeviceType.MOBILE]),
        tablet=summarize_sessions(by_device[DeviceType.TABLET]),
    )


def device_insights(engagement: EngagementStats) -> DeviceInsights:
    """Device classes with sessions, and the one with the highest active rate."""
    devices: list[DeviceInsight] = []
    for device in REPORTED_DEVICES:
        summary = engagement.for_device(device)
        if summary.sessions == 0:
            continue
        devices.append(
            DeviceInsight(
                device=device.value,
                sessions=summary.sessions,
                avg_time_on_page=summary.avg_time_on_page,
                completion_rate=summary.completion_rate,
                active_rate=summary.active_rate,
            )
        )

    # First device wins ties
    best: DeviceInsight | None = None
    for insight in devices:
        if best is None or insight.active_rate > best.active_rate:
            best = insight
    return DeviceInsights(best=best, devices=tuple(devices))


def build_chart_series(events: Sequence[EventRecord]) -> ChartSeries:
    """Depth-over-time series in event order."""
    return ChartSeries(
        timestamps=tuple(e.occurred_at for e in events),
        depths=tuple(e.scroll_depth for e in events),
    )


def summarize(events: Sequence[EventRecord]) -> DashboardSummary:
    """All dashboard aggregates for one loaded event set."""
    engagement = compute_engagement(events)
    return DashboardSummary(
        milestones=compute_milestones(events),
        engagement=engagement,
        insights=device_insights(engagement),
        chart=build_chart_series(events),
    )
