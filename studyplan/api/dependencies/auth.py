"""FastAPI dependency resolving the calling user.

Authentication itself happens upstream; requests reach this service with the
caller's id in the X-User-Id header. DEV_USER_ID stands in for it locally.
"""

from __future__ import annotations

from fastapi import Header, HTTPException, status
from loguru import logger

from studyplan.config.settings import settings


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """FastAPI dependency returning the current user ID.

    Args:
        x_user_id: Value of the X-User-Id header, if sent

    Returns:
        User ID (string)

    Raises:
        HTTPException: 401 if no user can be identified
    """
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()

    if settings.dev_user_id:
        logger.debug(f"Using DEV_USER_ID for unauthenticated request: {settings.dev_user_id}")
        return settings.dev_user_id

    logger.warning("Request rejected: no X-User-Id header and DEV_USER_ID is not set")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
    )
