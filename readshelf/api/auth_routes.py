"""Session routes.

Tokens are minted by the identity provider, so the only session operation
this service owns is telling a client who its token says it is.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Response

from readshelf.api.schemas import AuthUserResponse
from readshelf.core.dependencies import get_current_claims

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


@router.get("/user", response_model=AuthUserResponse)
async def get_auth_user(
    response: Response,
    claims: Annotated[dict[str, Any], Depends(get_current_claims)],
) -> AuthUserResponse:
    """Echo the verified claims of the bearer token.

    The caller's id is also returned in the ``user-id`` header.
    """
    audience = claims.get("aud")
    if isinstance(audience, str):
        audience = [audience]
    response.headers["user-id"] = claims["sub"]
    logger.debug("Resolved token claims for user %s", claims["sub"])
    return AuthUserResponse(
        user_id=claims["sub"],
        subject=claims["sub"],
        issuer=claims.get("iss"),
        audience=audience or [],
        auth_time=_timestamp(claims.get("auth_time")),
        issued_at=_timestamp(claims.get("iat")),
        expires=_timestamp(claims["exp"]),
    )
