"""Session token handling: JWT creation/validation and the FastAPI account dependency."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings
from .errors import UnauthorizedError

_bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(
    account_id: str,
    settings: Settings,
    *,
    expires_minutes: int = 30,
) -> str:
    """Create a signed access token for *account_id*."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {
        "sub": account_id,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(
        payload,
        settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT token. Raises ``JWTError`` on failure."""
    return jwt.decode(
        token,
        settings.jwt_secret.get_secret_value(),
        algorithms=[settings.jwt_algorithm],
    )


def authenticate(token: str | None, settings: Settings) -> str:
    """Return the account id carried by *token*; raise :class:`UnauthorizedError` otherwise."""
    if not token:
        raise UnauthorizedError("No authentication token found")
    try:
        payload = decode_token(token, settings)
    except JWTError:
        raise UnauthorizedError("Invalid or expired token") from None

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")
    account_id = payload.get("sub")
    if not account_id:
        raise UnauthorizedError("Token has no subject")
    return str(account_id)


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    settings: Annotated[Settings, Depends(_get_settings)],
) -> str:
    """Account id of the caller; unauthenticated requests never reach the pipeline."""
    token = credentials.credentials if credentials is not None else None
    return authenticate(token, settings)
