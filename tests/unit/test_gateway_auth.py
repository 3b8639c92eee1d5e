"""Unit tests for token verification and the auth dependencies."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.sb_common.enums import Role
from src.sb_common.errors import ForbiddenError, InvalidCredentialsError
from src.sb_gateway.auth.dependencies import (
    Principal,
    get_principal,
    require_artist,
    require_operator,
)
from src.sb_gateway.auth.jwt_handler import create_access_token, decode_token


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("artist-9", role="artist")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "artist-9"
    assert payload["role"] == "artist"
    assert payload["type"] == "access"


def test_decode_valid_token() -> None:
    payload = decode_token(create_access_token("listener-1"))
    assert payload["sub"] == "listener-1"


def test_expired_token_raises_credentials_error() -> None:
    token = create_access_token("listener-1", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_wrong_token_type_rejected() -> None:
    token = jwt.encode(
        {"sub": "listener-1", "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256"
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_foreign_signature_rejected() -> None:
    token = jwt.encode({"sub": "x", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


class TestGetPrincipal:
    async def test_role_defaults_to_listener(self) -> None:
        token = jwt.encode(
            {"sub": "listener-1", "type": "access"}, settings.JWT_SECRET, algorithm="HS256"
        )
        principal = await get_principal(token)
        assert principal == Principal("listener-1", Role.LISTENER)

    async def test_unknown_role_is_401(self) -> None:
        token = create_access_token("u1", role="superuser")
        with pytest.raises(HTTPException) as exc_info:
            await get_principal(token)
        assert exc_info.value.status_code == 401

    async def test_missing_subject_is_401(self) -> None:
        token = jwt.encode({"type": "access"}, settings.JWT_SECRET, algorithm="HS256")
        with pytest.raises(HTTPException):
            await get_principal(token)


class TestRoleGuards:
    async def test_artist_and_operator_pass_artist_guard(self) -> None:
        for role in (Role.ARTIST, Role.OPERATOR):
            principal = Principal("u1", role)
            assert await require_artist(principal) is principal

    async def test_listener_fails_artist_guard(self) -> None:
        with pytest.raises(ForbiddenError):
            await require_artist(Principal("u1", Role.LISTENER))

    async def test_only_operator_passes_operator_guard(self) -> None:
        assert (await require_operator(Principal("op", Role.OPERATOR))).is_operator
        with pytest.raises(ForbiddenError):
            await require_operator(Principal("u1", Role.ARTIST))
