"""Unit tests for UTC helpers used by deadlines and replay windows."""

from datetime import UTC, datetime, timedelta, timezone

from src.sb_common.datetime_utils import battle_deadline, ensure_utc


def test_ensure_utc_treats_naive_as_utc() -> None:
    naive = datetime(2026, 1, 1, 12, 0)
    assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def test_ensure_utc_converts_offsets() -> None:
    plus_two = datetime(2026, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_utc(plus_two) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def test_battle_deadline_adds_minutes() -> None:
    started = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    assert battle_deadline(started, 30) == datetime(2026, 1, 1, 12, 30, tzinfo=UTC)

