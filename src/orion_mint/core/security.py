"""Admin bearer token helpers built on python-jose."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from orion_mint.core.settings import settings

ADMIN_SCOPE = "admin"


class AdminTokenError(ValueError):
    """Raised when an admin token cannot be issued or validated."""


def _require_secret() -> str:
    if not settings.secret_key:
        raise AdminTokenError("SECRET_KEY is not configured")
    return settings.secret_key


def create_admin_token(subject: str, expires_minutes: int | None = None) -> str:
    """Issue a signed admin token for ``subject``.

    Args:
        subject: Operator identifier recorded in the ``sub`` claim.
        expires_minutes: Lifetime override; defaults to ADMIN_TOKEN_EXPIRE_MINUTES.

    Returns:
        Encoded JWT string.
    """
    lifetime = expires_minutes or settings.admin_token_expire_minutes
    expire = datetime.now(UTC) + timedelta(minutes=lifetime)
    claims: dict[str, Any] = {"sub": subject, "scope": ADMIN_SCOPE, "exp": expire}
    return jwt.encode(claims, _require_secret(), algorithm=settings.jwt_algorithm)


def decode_admin_token(token: str) -> str:
    """Return the subject of a valid admin token.

    Raises:
        AdminTokenError: If the token is malformed, expired, or lacks admin scope.
    """
    try:
        payload = jwt.decode(token, _require_secret(), algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise AdminTokenError("Could not validate credentials") from err

    subject = payload.get("sub")
    if subject is None or payload.get("scope") != ADMIN_SCOPE:
        raise AdminTokenError("Could not validate credentials")
    return str(subject)
