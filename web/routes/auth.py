"""
Authentication helpers for dashboard routes.
"""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from config.settings import DASHBOARD_PASSWORD, DASHBOARD_USERNAME

security = HTTPBasic(realm="cf-match-bot")


def _matches(provided: str, expected: str) -> bool:
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def require_dashboard_auth(
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """
    Enforce basic auth with the configured dashboard user and password.

    Returns:
        The authenticated username
    """
    if not DASHBOARD_PASSWORD:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard password is not configured.",
        )

    # Check both before failing so timing does not reveal which one was wrong
    user_ok = _matches(credentials.username, DASHBOARD_USERNAME)
    password_ok = _matches(credentials.password, DASHBOARD_PASSWORD)
    if not (user_ok and password_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid dashboard credentials.",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
