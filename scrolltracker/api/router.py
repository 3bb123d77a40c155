from fastapi import APIRouter

from scrolltracker.api.track import router as track_router
from scrolltracker.api.trackers import router as trackers_router

api_router = APIRouter()

# Public embedding routes at the root (/track, /tracker-script)
api_router.include_router(track_router, tags=["tracking"])

# Dashboard routes at /api/*
api_router.include_router(trackers_router, prefix="/api", tags=["trackers"])
