# app/api/dependencies/internal_auth.py
import logging
import secrets
from typing import Optional

from fastapi import Header, HTTPException, status

from app.core.config import get_settings

logger = logging.getLogger(__name__)

LOCAL_ENVIRONMENTS = ("local", "test")


def _key_matches(provided: Optional[str], expected: str) -> bool:
    if not provided:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def verify_internal_api_key(
    internal_api_key: Optional[str] = Header(
        default=None,
        alias="X-Internal-Api-Key",
        description="Internal API key required for /internal endpoints in non-local environments.",
    ),
) -> None:
    """
    Dependency guarding the /internal endpoints used by other services.

    Rules
    -----
    - APP_ENV in ("local", "test"):
        - INTERNAL_API_KEY unset -> open (convenient for local dev).
        - INTERNAL_API_KEY set   -> header must match.
    - Any other APP_ENV (dev/stage/prod):
        - INTERNAL_API_KEY unset -> 500 (misconfiguration).
        - Header missing/wrong   -> 401.
    """
    settings = get_settings()
    env = (settings.APP_ENV or "local").lower()
    expected = getattr(settings, "INTERNAL_API_KEY", None)

    if not expected:
        if env in LOCAL_ENVIRONMENTS:
            return
        logger.error("INTERNAL_API_KEY is not configured for environment '%s'", env)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="INTERNAL_API_KEY not configured for this environment.",
        )

    if not _key_matches(internal_api_key, expected):
        logger.warning("Rejected internal request with missing or invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing internal API key.",
        )
