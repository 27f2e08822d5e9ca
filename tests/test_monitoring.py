"""Tests for Sentry setup."""

import pytest

from pgquerygen import __version__
from pgquerygen.core import monitoring


@pytest.fixture
def init_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(monitoring.sentry_sdk, "init", lambda **kw: calls.append(kw))
    return calls


@pytest.mark.unit
def test_dsn_from_environment(monkeypatch, init_calls):
    monkeypatch.setenv(monitoring.SENTRY_DSN_ENV, "https://key@sentry.example/1")
    monitoring.setup_sentry()
    (kwargs,) = init_calls
    assert kwargs["dsn"] == "https://key@sentry.example/1"
    assert kwargs["release"] == __version__
    assert kwargs["send_default_pii"] is False


@pytest.mark.unit
def test_no_dsn_disables_sending(monkeypatch, init_calls):
    monkeypatch.delenv(monitoring.SENTRY_DSN_ENV, raising=False)
    monitoring.setup_sentry(environment="ci")
    (kwargs,) = init_calls
    assert kwargs["dsn"] is None
    assert kwargs["environment"] == "ci"
