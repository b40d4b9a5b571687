from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from services.periods import resolve_period

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("token", "hours"),
    [("24h", 24), ("7d", 168), ("30d", 720), ("48", 48), ("12h", 12)],
)
def test_known_and_numeric_tokens(token: str, hours: int) -> None:
    assert resolve_period(token, now=NOW) == NOW - timedelta(hours=hours)


@pytest.mark.parametrize("token", [None, ""])
def test_absent_token_means_no_filter(token) -> None:
    assert resolve_period(token, now=NOW) is None


def test_invalid_token_means_no_filter_and_logs_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="services.periods"):
        assert resolve_period("invalid", now=NOW) is None

    assert any(getattr(record, "period", None) == "invalid" for record in caplog.records)


def test_defaults_to_current_time() -> None:
    before = datetime.now(timezone.utc)
    cutoff = resolve_period("24h")
    after = datetime.now(timezone.utc)

    assert cutoff is not None
    assert before - timedelta(hours=24) <= cutoff <= after - timedelta(hours=24)


@pytest.mark.parametrize("token", ["99999999", "999999999999"])
def test_oversized_window_means_no_filter(token: str, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="services.periods"):
        assert resolve_period(token, now=NOW) is None

    assert any(getattr(record, "period", None) == token for record in caplog.records)
