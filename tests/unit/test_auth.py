from datetime import timedelta

import pytest
from src.core.auth import AccessLevel, TokenError, create_access_token, decode_access_token


def test_create_and_decode_token_roundtrip() -> None:
    token = create_access_token("user-123", access_levels=["trainer"], email="user@example.com")

    payload = decode_access_token(token)

    assert payload["sub"] == "user-123"
    assert payload["access_levels"] == ["trainer"]
    assert payload["email"] == "user@example.com"


def test_unknown_access_level_is_rejected_at_issue_time() -> None:
    with pytest.raises(TokenError):
        create_access_token("user-123", access_levels=["student"])


def test_expired_token_is_rejected() -> None:
    token = create_access_token(
        "user-123", access_levels=["admin"], expires_delta=timedelta(seconds=-30)
    )

    with pytest.raises(TokenError):
        decode_access_token(token)


def test_access_level_contains() -> None:
    assert AccessLevel.contains("admin")
    assert not AccessLevel.contains("superuser")
