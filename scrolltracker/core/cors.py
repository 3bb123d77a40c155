"""CORS headers for the public embedding surface (/track and /tracker-script).

These routes are called from arbitrary third-party pages, so headers are set
per response instead of through CORSMiddleware.
"""

from scrolltracker.config import Settings

TRACK_METHODS = "POST, OPTIONS"
SCRIPT_METHODS = "GET, OPTIONS"
PREFLIGHT_MAX_AGE = "86400"


def resolve_allowed_origin(origin: str | None, settings: Settings) -> str:
    """
    Pick the Access-Control-Allow-Origin value.

    Outside production every origin is allowed. In production the request
    origin is echoed when allow-listed, otherwise the first allow-list entry
    is returned (the browser will then block the response).
    """
    allowed = settings.allowed_origin_list
    if not settings.is_production or not allowed or "*" in allowed:
        return "*"
    if origin and origin in allowed:
        return origin
    return allowed[0]


def track_cors_headers(origin: str | None, settings: Settings) -> dict[str, str]:
    """CORS headers for the ingestion endpoint."""
    return {
        "Access-Control-Allow-Origin": resolve_allowed_origin(origin, settings),
        "Access-Control-Allow-Methods": TRACK_METHODS,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Max-Age": PREFLIGHT_MAX_AGE,
    }


def script_cors_headers() -> dict[str, str]:
    """CORS headers for the tracking script; always public."""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": SCRIPT_METHODS,
        "Access-Control-Allow-Headers": "Content-Type",
    }
