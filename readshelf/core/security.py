"""Access-token helpers (PyJWT).

Tokens are issued by the identity provider; this service only verifies them.
``create_access_token`` mirrors what the provider issues and is used by
tooling and tests.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

import jwt

from readshelf.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": user_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "auth_time": int(now.timestamp()),
        "iat": now,
        "exp": expire,
        "jti": uuid4().hex,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Return the verified claims, or None if the token is invalid or expired."""
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as exc:
        logger.debug("Rejected access token: %s", exc)
        return None
