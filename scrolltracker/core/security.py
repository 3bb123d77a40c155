import hmac
import uuid
from typing import Any

import jwt

from scrolltracker.core.logging import get_logger

logger = get_logger(__name__)

TRACKER_ID_LENGTH = 16


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be verified."""


def generate_tracker_id() -> str:
    """Generate a random, collision-resistant tracker id (16 hex chars)."""
    return uuid.uuid4().hex[:TRACKER_ID_LENGTH]


def decode_access_token(token: str, secret: str, audience: str) -> dict[str, Any]:
    """
    Verify an owner's bearer token issued by the auth provider.

    Tokens are HS256 JWTs signed with the provider's shared secret. The
    owner id is carried in the ``sub`` claim.

    Raises:
        InvalidTokenError: If the signature, expiry, audience or subject is invalid
    """
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=audience,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token expired") from e
    except jwt.InvalidTokenError as e:
        logger.bind(error=str(e)).debug("token_validation_failed")
        raise InvalidTokenError("Invalid token") from e

    if not claims.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return claims


def keys_match(presented: str, expected: str) -> bool:
    """Constant-time comparison for API keys."""
    if not presented or not expected:
        return False
    return hmac.compare_digest(presented.encode(), expected.encode())
