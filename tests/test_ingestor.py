from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import List

import pytest

from app.schemas import (
    Alert,
    AlertDirection,
    AlertStatus,
    CustomThreshold,
    ReadingSource,
    TemperatureReading,
)
from datastore.temperature_store import TemperatureStore
from models.records import Threshold
from services.alerts import AlertLifecycle
from services.errors import (
    ComplianceError,
    PartialIngestError,
    ReadingValidationError,
    StorageError,
    ThresholdError,
)
from services.ingestor import ReadingIngestor
from services.thresholds import ThresholdResolver, in_range


class RecordingNotifier:
    def __init__(self) -> None:
        self.alerts: List[Alert] = []

    def notify(self, alert: Alert) -> None:
        self.alerts.append(alert)


class ExplodingNotifier:
    def notify(self, alert: Alert) -> None:
        raise ConnectionError("smtp down")


def _build(store: TemperatureStore | None = None, notifier=None, severity_policy=None) -> ReadingIngestor:
    store = store or TemperatureStore()
    lifecycle = AlertLifecycle(store, severity_policy=severity_policy)
    return ReadingIngestor(
        store=store,
        resolver=ThresholdResolver(),
        lifecycle=lifecycle,
        notifier=notifier or RecordingNotifier(),
    )


def _record(ingestor: ReadingIngestor, **overrides) -> TemperatureReading:
    fields = dict(
        location_id="loc-1",
        equipment_id="fridge-1",
        equipment_type="refrigerator",
        temperature=37.0,
        unit="F",
        recorded_by="crew-1",
    )
    fields.update(overrides)
    return ingestor.record(**fields)


def test_in_range_reading_creates_no_alert() -> None:
    ingestor = _build()

    reading = _record(ingestor, temperature=37)

    assert reading.is_in_range is True
    assert reading.alert_sent is False
    assert reading.threshold == Threshold(min=33, max=41)
    assert ingestor.store.get_reading(reading.id) == reading
    assert ingestor.store.query_alerts() == []


def test_high_reading_opens_one_active_alert() -> None:
    notifier = RecordingNotifier()
    ingestor = _build(notifier=notifier)

    reading = _record(ingestor, temperature=50)

    assert reading.is_in_range is False
    assert reading.alert_sent is True
    alerts = ingestor.store.query_alerts(location_id="loc-1", status=AlertStatus.active)
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.direction is AlertDirection.high
    assert alert.temperature_log_id == reading.id
    assert alert.threshold == reading.threshold
    assert [sent.id for sent in notifier.alerts] == [alert.id]


def test_low_reading_alert_direction() -> None:
    ingestor = _build()

    reading = _record(ingestor, equipment_type="freezer", temperature=-20)

    alert = ingestor.store.query_alerts()[0]
    assert alert.direction is AlertDirection.low
    assert alert.temperature_log_id == reading.id


def test_every_violation_opens_a_new_alert() -> None:
    ingestor = _build()

    _record(ingestor, temperature=50)
    _record(ingestor, temperature=52)

    assert len(ingestor.store.query_alerts(equipment_id="fridge-1", status=AlertStatus.active)) == 2


@pytest.mark.parametrize("temperature", [33, 41, 37.5, 30, 45, -5, 200])
def test_is_in_range_matches_evaluator(temperature) -> None:
    ingestor = _build()

    reading = _record(ingestor, temperature=temperature)

    assert reading.is_in_range == in_range(reading.temperature, reading.threshold)
    assert bool(ingestor.store.query_alerts()) is (not reading.is_in_range)


def test_overrides_take_precedence() -> None:
    ingestor = _build()

    reading = _record(
        ingestor, temperature=45, threshold_min_override=40, threshold_max_override=50
    )

    assert reading.threshold == Threshold(min=40, max=50)
    assert reading.is_in_range is True


def test_custom_threshold_applies_unless_overridden() -> None:
    store = TemperatureStore()
    store.put_custom_threshold(
        CustomThreshold(
            equipment_id="fridge-1", min=34, max=38, updated_at=datetime.now(timezone.utc)
        )
    )
    ingestor = _build(store=store)

    custom = _record(ingestor, temperature=39)
    partial = _record(ingestor, temperature=39, threshold_max_override=40)

    assert custom.threshold == Threshold(min=34, max=38)
    assert custom.is_in_range is False
    assert partial.threshold == Threshold(min=34, max=40)
    assert partial.is_in_range is True


@pytest.mark.parametrize(
    "missing",
    [
        {"location_id": None},
        {"equipment_id": "  "},
        {"temperature": None},
        {"recorded_by": ""},
    ],
)
def test_missing_required_fields_are_rejected_without_writes(missing) -> None:
    ingestor = _build()

    with pytest.raises(ReadingValidationError):
        _record(ingestor, **missing)

    assert ingestor.store.query_readings() == []


@pytest.mark.parametrize("temperature", ["hot", math.nan, math.inf, True, object(), 10**400, "1e400"])
def test_invalid_temperatures_are_rejected(temperature) -> None:
    ingestor = _build()

    with pytest.raises(ReadingValidationError):
        _record(ingestor, temperature=temperature)

    assert ingestor.store.query_readings() == []


def test_numeric_string_temperature_is_accepted() -> None:
    reading = _record(_build(), temperature=" 38.5 ")

    assert reading.temperature == 38.5


def test_unknown_source_is_rejected() -> None:
    with pytest.raises(ReadingValidationError):
        _record(_build(), source="bluetooth")


def test_inverted_override_is_rejected_before_writes() -> None:
    ingestor = _build()

    with pytest.raises(ThresholdError):
        _record(ingestor, threshold_min_override=50, threshold_max_override=40)

    assert ingestor.store.query_readings() == []


def test_defaults_and_optional_fields() -> None:
    ingestor = _build()
    recorded_at = datetime(2024, 3, 1, 6, 30)

    reading = _record(
        ingestor,
        unit=None,
        source="sensor",
        sensor_id="probe-7",
        recorded_at=recorded_at,
        notes="door left open",
        metadata={"battery": 80},
    )

    assert reading.unit == "F"
    assert reading.source is ReadingSource.sensor
    assert reading.sensor_id == "probe-7"
    assert reading.recorded_at == recorded_at.replace(tzinfo=timezone.utc)
    assert reading.metadata == {"battery": 80}


def test_failed_alert_build_surfaces_partial_ingest() -> None:
    def broken_policy(reading, direction):
        raise RuntimeError("policy unavailable")

    ingestor = _build(severity_policy=broken_policy)

    with pytest.raises(PartialIngestError) as excinfo:
        _record(ingestor, temperature=50)

    stored = ingestor.store.get_reading(excinfo.value.reading.id)
    assert stored is not None
    assert stored.is_in_range is False
    assert stored.alert_sent is False
    assert ingestor.store.query_alerts() == []
    assert isinstance(excinfo.value, StorageError)


def test_storage_failure_writes_nothing(monkeypatch) -> None:
    store = TemperatureStore()
    ingestor = _build(store=store)

    def failing_flush() -> None:
        raise StorageError("disk full")

    monkeypatch.setattr(store.alerts, "flush", failing_flush)

    with pytest.raises(StorageError):
        _record(ingestor, temperature=50)

    assert store.query_readings() == []
    assert store.query_alerts() == []


def test_notifier_failure_is_logged_not_raised(caplog) -> None:
    ingestor = _build(notifier=ExplodingNotifier())

    with caplog.at_level(logging.ERROR, logger="services.ingestor"):
        reading = _record(ingestor, temperature=50)

    assert reading.alert_sent is True
    assert len(ingestor.store.query_alerts()) == 1
    assert any("notification failed" in record.getMessage() for record in caplog.records)


def test_violation_is_logged_with_context(caplog) -> None:
    ingestor = _build()

    with caplog.at_level(logging.WARNING, logger="services.ingestor"):
        reading = _record(ingestor, temperature=50)

    records = [record for record in caplog.records if record.name == "services.ingestor"]
    assert any(getattr(record, "reading_id", None) == reading.id for record in records)
    assert any(getattr(record, "direction", None) == "high" for record in records)


def test_violation_without_a_broken_bound_is_refused(monkeypatch) -> None:
    ingestor = _build()
    monkeypatch.setattr("services.ingestor.in_range", lambda value, threshold: False)

    with pytest.raises(ComplianceError):
        _record(ingestor, temperature=37.0)

    assert ingestor.store.query_readings() == []
    assert ingestor.store.query_alerts() == []
