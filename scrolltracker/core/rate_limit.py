"""Rate limiting for the public ingestion endpoint using SlowAPI."""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from scrolltracker.config import get_config, get_settings
from scrolltracker.core.cors import track_cors_headers
from scrolltracker.core.logging import get_logger
from scrolltracker.services.script_service import TRACK_PATH
from scrolltracker.services.tracker_service import UNKNOWN_ADDRESS, client_address

logger = get_logger(__name__)


def client_key(request: Request) -> str:
    """
    Rate-limit key: the same client address stored with each event.

    Behind a proxy every visitor shares the peer address, so the forwarded
    client is used; direct connections fall back to the peer address.
    """
    address = client_address(
        request.headers.get("x-forwarded-for"),
        request.headers.get("x-real-ip"),
    )
    if address == UNKNOWN_ADDRESS:
        return get_remote_address(request)
    return address


# memory:// is per-process; multi-instance deployments point
# RATE_LIMIT_STORAGE_URI at a shared backend.
limiter = Limiter(
    key_func=client_key,
    storage_uri=get_settings().rate_limit_storage_uri,
)


def track_rate_limit() -> str:
    """Limit string for POST /track, read from config.yml on every request."""
    return get_config().tracking.rate_limit


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """429 response; ingestion responses keep their CORS headers so browsers can read it."""
    logger.bind(
        path=request.url.path,
        client=client_key(request),
        limit=exc.detail,
    ).warning("rate_limit_exceeded")

    headers: dict[str, str] = {}
    if request.url.path == TRACK_PATH:
        headers = track_cors_headers(request.headers.get("origin"), get_settings())
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please try again later."},
        headers=headers,
    )
