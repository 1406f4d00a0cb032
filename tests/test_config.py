"""
tests/test_config.py -- Unit tests for Settings validation.

Covers:
  - Production mode refuses to start without SECRET_KEY
  - Keys shorter than 32 characters are rejected in every mode
  - DEBUG generates a key when none is configured
  - TOKEN_EXPIRE_MINUTES is bounded to 1..1440
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False, _env_file=None)


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(secret_key="short", debug=True, _env_file=None)


def test_debug_generates_key(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    settings = Settings(debug=True, _env_file=None)
    assert len(settings.secret_key) >= 32


@pytest.mark.parametrize("minutes", [0, 1441])
def test_token_lifetime_bounds(minutes):
    with pytest.raises(ValidationError):
        Settings(secret_key="k" * 32, token_expire_minutes=minutes, _env_file=None)


def test_defaults():
    settings = Settings(secret_key="k" * 32, _env_file=None)
    assert settings.jwt_issuer == "TodoListApp"
    assert settings.jwt_audience == "TodoListApp"
    assert settings.token_expire_minutes == 60
