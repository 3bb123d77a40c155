"""Public embedding surface: the tracking script and the ingestion endpoint.

Both are called from arbitrary third-party pages, so every response carries
CORS headers and nothing here requires authentication.
"""

from typing import Any

from fastapi import APIRouter, Query, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from scrolltracker.core.cors import script_cors_headers, track_cors_headers
from scrolltracker.core.logging import get_logger
from scrolltracker.core.rate_limit import limiter, track_rate_limit
from scrolltracker.dependencies import AppSettings, Config, DBSession
from scrolltracker.schemas.track import TrackEventPayload
from scrolltracker.services.script_service import render_tracker_script
from scrolltracker.services.tracker_service import client_address, get_tracker, record_event

logger = get_logger(__name__)

router = APIRouter()


def _validation_details(exc: ValidationError) -> dict[str, Any]:
    """Flatten pydantic errors into form-level and per-field messages."""
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        if loc:
            field_errors.setdefault(".".join(str(p) for p in loc), []).append(error["msg"])
        else:
            form_errors.append(error["msg"])
    return {"formErrors": form_errors, "fieldErrors": field_errors}


@router.get("/tracker-script")
@router.get("/tracker.js", include_in_schema=False)
async def get_tracker_script(
    config: Config,
    tracker_id: str | None = Query(default=None, alias="id", max_length=64),
) -> Response:
    """
    Serve the embeddable tracking script.

    Cacheable for a few minutes and loadable from any origin.
    """
    script = render_tracker_script(
        tracker_id=tracker_id,
        send_timeout_ms=config.tracking.send_timeout_ms,
    )
    return Response(
        content=script,
        media_type="application/javascript; charset=utf-8",
        headers={
            "Cache-Control": f"public, max-age={config.tracking.script_max_age}",
            **script_cors_headers(),
        },
    )


@router.options("/tracker-script")
@router.options("/tracker.js", include_in_schema=False)
async def tracker_script_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=script_cors_headers())


@router.options("/track")
async def track_preflight(request: Request, settings: AppSettings) -> Response:
    """Answer CORS preflight without touching storage."""
    return Response(
        status_code=status.HTTP_200_OK,
        headers=track_cors_headers(request.headers.get("origin"), settings),
    )


@router.post("/track", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(track_rate_limit)
async def track_event(
    request: Request,
    db: DBSession,
    settings: AppSettings,
) -> Response:
    """
    Record one scroll event.

    The body is parsed as JSON whatever its Content-Type, since
    navigator.sendBeacon posts strings as text/plain. Duplicate sends are
    stored as duplicate rows.
    """
    headers = track_cors_headers(request.headers.get("origin"), settings)

    raw = await request.body()
    try:
        payload = TrackEventPayload.model_validate_json(raw)
    except ValidationError as e:
        logger.bind(error_count=e.error_count()).debug("track_payload_invalid")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid payload", "details": _validation_details(e)},
            headers=headers,
        )

    try:
        tracker = await get_tracker(db, payload.tracker_id)
        if tracker is None:
            logger.bind(tracker_id=payload.tracker_id).debug("track_unknown_tracker")
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": "Unknown trackerId"},
                headers=headers,
            )

        ip_address = client_address(
            request.headers.get("x-forwarded-for"),
            request.headers.get("x-real-ip"),
        )
        await record_event(db, payload, ip_address)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.bind(error=str(e), tracker_id=payload.tracker_id).error("track_storage_failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Server error"},
            headers=headers,
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=headers)
