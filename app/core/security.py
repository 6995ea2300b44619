"""Clerk session token verification."""

import logging

from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)


def decode_session_token(token: str) -> dict | None:
    """Verify a Clerk session JWT and return its claims, or None if invalid.

    Clerk puts the user id (``user_...``) in ``sub``. Audience is not checked
    because Clerk session tokens do not carry one by default.
    """
    if not settings.clerk_jwt_key:
        logger.warning("CLERK_JWT_KEY not configured; rejecting session token")
        return None

    options = {"verify_aud": False}
    kwargs = {}
    if settings.clerk_issuer:
        kwargs["issuer"] = settings.clerk_issuer
    else:
        options["verify_iss"] = False

    try:
        payload = jwt.decode(
            token,
            settings.clerk_jwt_key,
            algorithms=[settings.clerk_jwt_algorithm],
            options=options,
            **kwargs,
        )
    except JWTError as e:
        logger.debug(f"Session token rejected: {e}")
        return None

    if not payload.get("sub"):
        return None
    return payload
