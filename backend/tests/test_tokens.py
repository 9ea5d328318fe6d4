import pytest
from jose import jwt

from conftest import ACCESS_SECRET, REFRESH_SECRET, build_settings
from dreamer_api.models.user import User
from dreamer_api.services.errors import InvalidTokenError
from dreamer_api.services.tokens import TokenCodec


def _user() -> User:
    return User(
        id="user-1",
        email="alice@example.com",
        first_name="Alice",
        last_name="Smith",
        role="client",
    )


def test_access_token_carries_identity_claims():
    codec = TokenCodec(build_settings())

    claims = codec.verify_access_token(codec.issue_access_token(_user()))

    assert claims["sub"] == "user-1"
    assert claims["email"] == "alice@example.com"
    assert claims["first_name"] == "Alice"
    assert claims["role"] == "client"
    assert claims["type"] == "access"
    assert claims["iss"] == "dreamer-ai"
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_refresh_token_uses_separate_secret_and_thirty_day_lifetime():
    codec = TokenCodec(build_settings())
    token = codec.issue_refresh_token(_user())

    claims = codec.verify(token, REFRESH_SECRET, "refresh")
    assert claims["sub"] == "user-1"
    assert claims["exp"] - claims["iat"] == 30 * 24 * 60 * 60
    assert "email" not in claims

    with pytest.raises(InvalidTokenError):
        codec.verify(token, ACCESS_SECRET)


def test_refresh_secret_falls_back_to_access_secret():
    codec = TokenCodec(build_settings(jwt_refresh_secret=None))

    assert codec.refresh_secret == ACCESS_SECRET
    assert codec.verify_refresh_token(codec.issue_refresh_token(_user()))["type"] == "refresh"


def test_access_token_is_not_accepted_as_refresh_token_even_with_shared_secret():
    codec = TokenCodec(build_settings(jwt_refresh_secret=None))

    with pytest.raises(InvalidTokenError):
        codec.verify_refresh_token(codec.issue_access_token(_user()))


def test_expired_token_is_rejected():
    codec = TokenCodec(build_settings(access_token_expire_minutes=-1))

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(codec.issue_access_token(_user()))


def test_forged_and_malformed_tokens_are_rejected():
    codec = TokenCodec(build_settings())
    forged = jwt.encode(
        {"sub": "user-1", "type": "access", "iss": "dreamer-ai", "aud": "dreamer-ai-api"},
        "f" * 64,
        algorithm="HS256",
    )

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(forged)
    with pytest.raises(InvalidTokenError):
        codec.verify_access_token("not-a-jwt")


def test_tokens_for_same_user_are_unique():
    codec = TokenCodec(build_settings())
    user = _user()

    assert codec.issue_access_token(user) != codec.issue_access_token(user)
    assert codec.issue_refresh_token(user) != codec.issue_refresh_token(user)


def test_mfa_token_is_restricted_to_mfa_verification():
    codec = TokenCodec(build_settings())
    mfa_token = codec.issue_mfa_token(_user())

    assert codec.verify_mfa_token(mfa_token)["sub"] == "user-1"
    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(mfa_token)
