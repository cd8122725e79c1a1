from datetime import timedelta

import jwt
import pytest
from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials

from readshelf.core.config import settings
from readshelf.core.dependencies import (
    get_current_claims,
    get_current_user_id,
    resolve_target_user,
)
from readshelf.core.security import create_access_token, decode_access_token
from readshelf.domain.errors import PermissionDeniedError, UnauthenticatedError


def _bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_token_carries_subject_and_id():
    claims = decode_access_token(create_access_token("u1"))

    assert claims["sub"] == "u1"
    assert claims["jti"]
    assert claims["exp"] > claims["iat"]


def test_expired_token_does_not_decode():
    token = create_access_token("u1", expires_delta=timedelta(seconds=-5))

    assert decode_access_token(token) is None


def test_token_signed_with_other_key_does_not_decode():
    token = jwt.encode(
        {"sub": "u1"}, "some-other-secret-key-of-reasonable-length", algorithm=settings.jwt_algorithm
    )

    assert decode_access_token(token) is None


def _request():
    return Request({"type": "http", "headers": []})


async def test_valid_token_resolves_user():
    request = _request()
    claims = await get_current_claims(_bearer(create_access_token("u1")))

    user_id = await get_current_user_id(request, claims)

    assert user_id == "u1"
    assert request.state.user_id == "u1"


async def test_missing_credentials():
    with pytest.raises(UnauthenticatedError):
        await get_current_claims(None)


async def test_token_without_subject():
    token = jwt.encode(
        {"jti": "abc", "iss": settings.jwt_issuer, "aud": settings.jwt_audience},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(UnauthenticatedError):
        await get_current_claims(_bearer(token))


def test_token_for_other_audience_does_not_decode():
    token = jwt.encode(
        {"sub": "u1", "exp": 4102444800, "iss": settings.jwt_issuer, "aud": "someone-else"},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )

    assert decode_access_token(token) is None


def test_resolve_target_user_defaults_to_caller():
    assert resolve_target_user(None, "u1") == "u1"
    assert resolve_target_user("u1", "u1") == "u1"


def test_resolve_target_user_rejects_other_users():
    with pytest.raises(PermissionDeniedError):
        resolve_target_user("u2", "u1")
