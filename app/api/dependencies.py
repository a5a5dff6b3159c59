"""
app/api/dependencies.py

Shared FastAPI dependencies for upload validation and admin access.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt
from fastapi import File, Header, HTTPException, UploadFile, status

from app.config import get_auth_settings

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}

ADMIN_ROLE = "admin"


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").split(";", 1)[0].strip().lower()

    is_csv_filename = filename.endswith(".csv")
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def _extract_token(x_auth_token: str | None, authorization: str | None) -> str | None:
    if x_auth_token and x_auth_token.strip():
        return x_auth_token.strip()
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        return token or None
    return None


def require_admin(
    x_auth_token: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> dict[str, Any]:
    """
    Require a valid token whose user carries the admin role.

    Tokens are signed by the authentication service with the shared
    JWT_SECRET and carry {"user": {"id": ..., "role": ...}}.
    """

    settings = get_auth_settings()
    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured; refusing admin request")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured.",
        )

    token = _extract_token(x_auth_token, authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is missing.",
        )

    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is invalid.",
        ) from exc

    user = payload.get("user")
    if not isinstance(user, dict) or user.get("role") != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required.",
        )
    return user
