from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from brandbite.core.config import settings

bearer_scheme = HTTPBearer(auto_error=False)


def _normalize_token(token: str | None) -> str:
    """
    Tolerate copy-paste noise: whitespace, surrounding quotes and a
    duplicated 'Bearer ' prefix.
    """
    if token is None:
        return ""

    t = token.strip()

    if (t.startswith('"') and t.endswith('"')) or (t.startswith("'") and t.endswith("'")):
        t = t[1:-1].strip()

    if t.lower().startswith("bearer "):
        t = t[7:].strip()

    return t


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    role: str


def create_access_token(subject: str, role: str, expires_minutes: Optional[int] = None) -> str:
    """
    Sign an access token for a user. The platform role is embedded so a
    role change by an admin invalidates tokens issued before it.
    """
    now = datetime.now(timezone.utc)
    expire_dt = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "role": getattr(role, "value", role),
        "exp": int(expire_dt.timestamp()),
        "iat": int(now.timestamp()),
    }

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_access_token(token: str | None) -> TokenClaims:
    """Return the user id and role carried by the token or raise 401."""
    token = _normalize_token(token)
    if not token:
        raise _unauthorized("Unauthenticated")

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_sub": True, "require_exp": True},
        )
    except JWTError:
        # expired signature, bad format, bad signature, wrong algorithm...
        raise _unauthorized("Invalid token")

    role = payload.get("role")
    if not role:
        raise _unauthorized("Invalid token")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token subject")

    return TokenClaims(user_id=user_id, role=str(role))
