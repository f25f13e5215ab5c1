"""Settings validation."""

import pytest
from pydantic import ValidationError

from livecut.config import Settings


def test_default_secret_refused_outside_development():
    with pytest.raises(ValidationError, match="LIVECUT_SESSION_SECRET"):
        Settings(environment="production", session_secret="change-me-in-production")


def test_real_secret_accepted_in_production():
    s = Settings(environment="production", session_secret="a-real-secret-value")
    assert s.environment == "production"


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("LIVECUT_VIEWER_COUNT_INTERVAL", "2.5")
    assert Settings().viewer_count_interval == 2.5
