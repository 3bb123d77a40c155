"""CSV export of a tracker's scroll events."""

import csv
import io
from collections.abc import Sequence
from datetime import date

from scrolltracker.core.datetime_utils import to_iso_utc, utc_now
from scrolltracker.metrics.records import EventRecord

CSV_HEADER = ["Timestamp", "Scroll Depth (%)", "Page URL"]


def events_to_csv(events: Sequence[EventRecord]) -> str:
    """Render events as CSV with an ISO-8601 timestamp, depth and page URL per row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for event in events:
        writer.writerow(
            [to_iso_utc(event.occurred_at), event.scroll_depth, event.page_url or "N/A"]
        )
    return buffer.getvalue()


def export_filename(tracker_id: str, day: date | None = None) -> str:
    day = day or utc_now().date()
    return f"scrolltracker-{tracker_id}-{day.isoformat()}.csv"
