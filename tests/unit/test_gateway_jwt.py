"""Unit tests for JWT handler."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from config.settings import settings
from src.pm_common.errors import InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import create_access_token, decode_token


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("user-123")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"


def test_decode_valid_access_token() -> None:
    payload = decode_token(create_access_token("user-abc"))
    assert payload["sub"] == "user-abc"


def test_expired_token_raises_credentials_error() -> None:
    with patch(
        "src.pm_gateway.auth.jwt_handler._ACCESS_EXPIRE",
        timedelta(seconds=-1),
    ):
        token = create_access_token("user-abc")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_tampered_token_raises_error() -> None:
    token = create_access_token("user-abc")
    tampered = token[:-4] + "xxxx"
    with pytest.raises(InvalidCredentialsError):
        decode_token(tampered)


def test_non_access_token_rejected() -> None:
    """Tokens of another type signed with the shared secret must not authenticate."""
    token = jwt.encode(
        {"sub": "user-abc", "type": "refresh"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_wrong_secret_rejected() -> None:
    token = jwt.encode({"sub": "user-abc", "type": "access"}, "other", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)
