from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from scrolltracker.config import AppConfig, Settings, get_config, get_settings
from scrolltracker.core.database import get_db
from scrolltracker.core.security import InvalidTokenError, decode_access_token, keys_match
from scrolltracker.models.tracker import Tracker
from scrolltracker.services.tracker_service import get_owned_tracker

# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Config = Annotated[AppConfig, Depends(get_config)]

bearer_scheme = HTTPBearer(auto_error=False)


async def require_api_key(
    settings: AppSettings,
    apikey: str | None = Header(default=None),
) -> None:
    """
    Check the ``apikey`` header when a public key is configured.

    Either the public key or the service key is accepted.
    """
    if not settings.public_api_key:
        return
    presented = apikey or ""
    if keys_match(presented, settings.public_api_key) or keys_match(
        presented, settings.service_api_key
    ):
        return
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid API key",
    )


async def get_current_owner(
    settings: AppSettings,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    _: None = Depends(require_api_key),
) -> str:
    """Get the authenticated owner id from the bearer token, raise 401 otherwise."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = decode_access_token(
            credentials.credentials,
            settings.auth_jwt_secret,
            settings.auth_jwt_audience,
        )
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    owner: str = claims["sub"]
    return owner


CurrentOwner = Annotated[str, Depends(get_current_owner)]


async def get_owned_tracker_or_404(
    tracker_id: str,
    db: DBSession,
    owner: CurrentOwner,
) -> Tracker:
    """Resolve a path tracker id for the current owner; other owners' trackers are 404."""
    tracker = await get_owned_tracker(db, tracker_id, owner)
    if not tracker:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tracker not found",
        )
    return tracker


OwnedTracker = Annotated[Tracker, Depends(get_owned_tracker_or_404)]
