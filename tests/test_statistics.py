"""Unit tests for reading statistics and trends."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.schemas import TemperatureReading
from models.records import Threshold
from services.statistics import StatisticsEngine

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _reading(temperature: float, minutes: int = 0, in_range: bool = True) -> TemperatureReading:
    """Helper to build deterministic readings."""

    return TemperatureReading(
        id=f"reading-{temperature}-{minutes}",
        location_id="loc-1",
        equipment_id="fridge-1",
        equipment_type="fridge",
        temperature=temperature,
        threshold=Threshold(min=33, max=41),
        is_in_range=in_range,
        recorded_by="crew",
        recorded_at=BASE_TIME + timedelta(minutes=minutes),
    )


def test_statistics_for_empty_input() -> None:
    stats = StatisticsEngine().calculate_statistics([])

    assert stats.total_readings == 0
    assert stats.out_of_range == 0
    assert stats.average_temp is None


def test_statistics_counts_out_of_range_and_rounds_average() -> None:
    readings = [_reading(35), _reading(40), _reading(50, in_range=False)]

    stats = StatisticsEngine().calculate_statistics(readings)

    assert stats.total_readings == 3
    assert stats.out_of_range == 1
    assert stats.average_temp == 41.67


def test_trends_for_empty_input() -> None:
    trends = StatisticsEngine().calculate_trends([])

    assert trends.average is None
    assert trends.min is None
    assert trends.max is None
    assert trends.latest is None


def test_trends_latest_is_most_recent_not_extreme() -> None:
    # Recorded at t1 < t3 < t2, so the 40 degree reading is the latest.
    readings = [_reading(35, minutes=0), _reading(40, minutes=20), _reading(37, minutes=10)]

    trends = StatisticsEngine().calculate_trends(readings)

    assert trends.average == 37.33
    assert trends.min == 35
    assert trends.max == 40
    assert trends.latest is not None
    assert trends.latest.temperature == 40


def test_trends_accepts_generators() -> None:
    trends = StatisticsEngine().calculate_trends(_reading(t, minutes=t) for t in (36, 38))

    assert trends.average == 37.0
    assert trends.latest is not None and trends.latest.temperature == 38
