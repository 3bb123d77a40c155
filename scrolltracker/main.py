from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from scrolltracker.api.router import api_router
from scrolltracker.config import get_settings
from scrolltracker.core.logging import setup_logging
from scrolltracker.core.rate_limit import limiter, rate_limit_exceeded_handler

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging()
    yield


app = FastAPI(
    title="scrolltracker",
    description="Scroll-depth telemetry ingestion and engagement analytics",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
)

# Rate limiting (POST /track)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

# CORS for /track and /tracker-script is set per response (see core/cors.py);
# the dashboard API is same-origin and authenticated with bearer tokens.
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers."""
    return {"status": "healthy"}
