"""Tests for scroll engagement aggregation."""

from datetime import datetime, timedelta

import pytest

from scrolltracker.metrics.engagement import (
    DeviceInsights,
    build_chart_series,
    compute_engagement,
    compute_milestones,
    device_insights,
    milestone_percentage,
    reconstruct_sessions,
    round_half_up,
    summarize,
    summarize_sessions,
)

DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0"
IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"
IPAD_UA = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X)"


class TestMilestones:
    """Tests for milestone crossing percentages."""

    def test_truncated_percentages(self, make_record):
        """Depths 20/60/100 should give 66/66/33/33 with total 3."""
        events = [make_record(scroll_depth=d) for d in (20, 60, 100)]

        stats = compute_milestones(events)

        assert (stats.p25, stats.p50, stats.p75, stats.p100) == (66, 66, 33, 33)
        assert stats.total == 3

    def test_empty_set_is_zero(self):
        """No events should yield zeros, not a division error."""
        stats = compute_milestones([])

        assert (stats.p25, stats.p50, stats.p75, stats.p100, stats.total) == (0, 0, 0, 0, 0)

    def test_boundary_depth_counts(self, make_record):
        """An event exactly at a milestone reaches it."""
        events = [make_record(scroll_depth=25)]

        assert milestone_percentage(events, 25) == 100
        assert milestone_percentage(events, 50) == 0

    def test_percentages_are_monotonic(self, make_record):
        """Deeper milestones can never have a higher percentage."""
        events = [make_record(scroll_depth=d) for d in (0, 10, 30, 55, 80, 99, 100, 100)]

        stats = compute_milestones(events)

        assert stats.p25 >= stats.p50 >= stats.p75 >= stats.p100

    def test_idempotent(self, make_record):
        """Same input should give the same output."""
        events = tuple(make_record(scroll_depth=d) for d in (5, 50, 95))

        assert compute_milestones(events) == compute_milestones(events)


class TestSessions:
    """Tests for session reconstruction and summaries."""

    def test_deduplicates_on_time_and_depth(self, make_session):
        """Events sharing total time and max depth collapse into one session."""
        events = [
            make_session(12000, 80),
            make_session(12000, 80),
            make_session(12000, 90),
        ]

        assert len(reconstruct_sessions(events)) == 2

    def test_first_event_represents_session(self, make_session):
        """The first event seen for a key supplies the session's fields."""
        first = make_session(12000, 80, scroll_events_count=4)
        second = make_session(12000, 80, scroll_events_count=9)

        sessions = reconstruct_sessions([first, second])

        assert sessions == (first,)

    def test_skips_events_without_metrics(self, make_record, make_session):
        """Events lacking total time or max depth are not sessions."""
        events = [
            make_record(scroll_depth=50),
            make_session(0, 50),
            make_session(5000, 0),
        ]

        assert reconstruct_sessions(events) == ()

    def test_summary_rates(self, make_session):
        """Completion needs depth 100; active needs depth >= 75 and more than 10s."""
        sessions = [
            make_session(20000, 100, scroll_events_count=10),  # complete, active
            make_session(10000, 80, scroll_events_count=5),  # not active: exactly 10s
            make_session(15000, 75, scroll_events_count=3),  # active
            make_session(3000, 30),  # neither, no speed
        ]

        summary = summarize_sessions(sessions)

        assert summary.sessions == 4
        assert summary.avg_time_on_page == 12  # 48000ms / 4 = 12s
        assert summary.completion_rate == 25
        assert summary.active_rate == 50
        # (2000 + 2000 + 5000 + 0) / 4 = 2250ms per event
        assert summary.avg_scroll_speed == 2250

    def test_empty_summary(self):
        """No sessions should give an all-zero summary."""
        summary = summarize_sessions([])

        assert summary.sessions == 0
        assert summary.avg_time_on_page == 0
        assert summary.completion_rate == 0


class TestEngagementByDevice:
    """Tests for per-device engagement and insights."""

    def test_split_by_device(self, make_session):
        """Sessions should be grouped into desktop, mobile and tablet."""
        events = [
            make_session(20000, 100, ua=DESKTOP_UA, viewport_w=1920, viewport_h=1080),
            make_session(8000, 50, ua=IPHONE_UA, viewport_w=390, viewport_h=844),
            make_session(30000, 90, ua=IPAD_UA, viewport_w=1366, viewport_h=1024),
        ]

        engagement = compute_engagement(events)

        assert engagement.overall.sessions == 3
        assert engagement.desktop.sessions == 1
        assert engagement.mobile.sessions == 1
        assert engagement.tablet.sessions == 1
        assert engagement.tablet.active_rate == 100

    def test_unknown_device_counts_overall_only(self, make_session):
        """Sessions without a user agent only count towards overall."""
        engagement = compute_engagement([make_session(20000, 100)])

        assert engagement.overall.sessions == 1
        assert engagement.desktop.sessions == 0
        assert engagement.mobile.sessions == 0
        assert engagement.tablet.sessions == 0

    def test_best_device_has_highest_active_rate(self, make_session):
        """The most engaged device should be the one with the highest active rate."""
        events = [
            make_session(5000, 40, ua=DESKTOP_UA),
            make_session(20000, 90, ua=IPHONE_UA),
        ]

        insights = device_insights(compute_engagement(events))

        assert [d.device for d in insights.devices] == ["Desktop", "Mobile"]
        assert insights.best is not None
        assert insights.best.device == "Mobile"

    def test_first_device_wins_ties(self, make_session):
        """On equal active rates the first device in display order is best."""
        events = [
            make_session(20000, 90, ua=IPHONE_UA),
            make_session(21000, 95, ua=DESKTOP_UA),
        ]

        insights = device_insights(compute_engagement(events))

        assert insights.best is not None
        assert insights.best.device == "Desktop"

    def test_no_sessions_no_best(self):
        """Without sessions there is no best device."""
        assert device_insights(compute_engagement([])) == DeviceInsights(best=None, devices=())


class TestChartAndSummary:
    """Tests for the chart series and full summary."""

    def test_chart_keeps_event_order(self, make_record):
        """The series should follow the order of the input."""
        start = datetime(2026, 1, 10, 12, 0, 0)
        events = [
            make_record(scroll_depth=d, occurred_at=start + timedelta(seconds=i))
            for i, d in enumerate((10, 40, 30))
        ]

        chart = build_chart_series(events)

        assert chart.depths == (10, 40, 30)
        assert chart.timestamps[0] == start

    def test_summarize_is_pure(self, make_record):
        """summarize should not depend on anything but its input."""
        events = tuple(make_record(scroll_depth=d) for d in (25, 50))

        assert summarize(events) == summarize(events)


class TestRoundHalfUp:
    """Tests for percentage rounding."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (66.6, 67), (0, 0)],
    )
    def test_round_half_up(self, value, expected):
        """Halves should always round up, unlike banker's rounding."""
        assert round_half_up(value) == expected
