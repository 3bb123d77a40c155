"""Tracking script generator.

The script body lives in ``scrolltracker/static/tracker.js`` with a few
placeholders that are filled in per request.
"""

import json
from functools import lru_cache
from pathlib import Path

TEMPLATE_PATH = Path(__file__).parent.parent / "static" / "tracker.js"

TRACK_PATH = "/track"
SCRIPT_PATH = "/tracker-script"


@lru_cache
def _load_template() -> str:
    return TEMPLATE_PATH.read_text(encoding="utf-8")


def render_tracker_script(
    tracker_id: str | None = None,
    send_timeout_ms: int = 3000,
) -> str:
    """
    Render the embeddable tracking script.

    The tracker id is resolved in the browser from the page's ``id`` query
    parameter, the tag's ``data-id`` attribute or the script URL's ``id``
    parameter. A ``tracker_id`` given here is baked in as the last fallback.
    Values are JSON-encoded, so nothing from the request can break out of the
    string literal.

    Args:
        tracker_id: Optional tracker id from the script request
        send_timeout_ms: Abort timeout for each event send

    Returns:
        JavaScript source
    """
    # json.dumps does not escape "</script>", so escape "/" as well
    default_id = json.dumps(tracker_id or "").replace("/", "\\/")
    return (
        _load_template()
        .replace("__DEFAULT_TRACKER_ID__", default_id)
        .replace("__TRACK_PATH__", json.dumps(TRACK_PATH))
        .replace("__SEND_TIMEOUT_MS__", str(int(send_timeout_ms)))
    )


def build_script_url(base_url: str, tracker_id: str) -> str:
    return f"{base_url.rstrip('/')}{SCRIPT_PATH}?id={tracker_id}"


def build_embed_code(base_url: str, tracker_id: str) -> str:
    """HTML snippet an owner pastes into the monitored page."""
    return f'<script src="{build_script_url(base_url, tracker_id)}" async></script>'
