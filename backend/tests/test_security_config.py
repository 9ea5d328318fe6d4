import pytest

from conftest import ACCESS_SECRET, REFRESH_SECRET
from dreamer_api.config import Settings


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


def test_missing_jwt_secret_fails_closed(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)

    with pytest.raises(Exception, match="jwt_secret|JWT_SECRET"):
        _settings()


def test_empty_jwt_secret_fails_closed():
    with pytest.raises(Exception, match="JWT_SECRET must be set"):
        _settings(jwt_secret="")


def test_weak_jwt_secret_fails_closed():
    with pytest.raises(Exception, match="JWT_SECRET"):
        _settings(jwt_secret="changeme-in-production")

    with pytest.raises(Exception, match="entropy"):
        _settings(jwt_secret="a" * 64)


def test_strong_secret_passes_and_refresh_secret_falls_back(monkeypatch):
    monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)
    monkeypatch.delenv("JWT_REFRESH_SECRET", raising=False)
    settings = _settings(jwt_secret=ACCESS_SECRET)

    assert settings.jwt_refresh_secret is None
    assert settings.refresh_secret == ACCESS_SECRET
    assert settings.access_token_expire_minutes == 15
    assert settings.refresh_token_expire_days == 30
    assert settings.bcrypt_rounds == 10


def test_dedicated_refresh_secret_is_used():
    settings = _settings(jwt_secret=ACCESS_SECRET, jwt_refresh_secret=REFRESH_SECRET)

    assert settings.refresh_secret == REFRESH_SECRET


def test_weak_refresh_secret_fails_closed():
    with pytest.raises(Exception, match="JWT_REFRESH_SECRET"):
        _settings(jwt_secret=ACCESS_SECRET, jwt_refresh_secret="password")


def test_bcrypt_rounds_are_bounded():
    with pytest.raises(Exception, match="BCRYPT_ROUNDS"):
        _settings(jwt_secret=ACCESS_SECRET, bcrypt_rounds=2)
