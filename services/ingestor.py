"""Reading ingestion: validate, judge against thresholds, persist, raise alerts."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from app.schemas import Alert, ReadingSource, TemperatureReading
from datastore.temperature_store import TemperatureStore
from services.alerts import AlertLifecycle, direction_for
from services.errors import ComplianceError, PartialIngestError, ReadingValidationError
from services.notifier import AlertNotifier, LoggingNotifier
from services.thresholds import ThresholdResolver, in_range

logger = logging.getLogger(__name__)


def _require_text(name: str, value: Any) -> str:
    candidate = str(value).strip() if value is not None else ""
    if not candidate:
        raise ReadingValidationError(f"Missing required field: {name}.")
    return candidate


def _parse_temperature(value: Any) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ReadingValidationError("Missing required field: temperature.")
    if isinstance(value, bool) or not isinstance(value, (Real, str)):
        raise ReadingValidationError("Temperature must be numeric.")

    try:
        parsed = float(value.strip() if isinstance(value, str) else value)
    except ValueError as exc:
        raise ReadingValidationError(f"Temperature {value!r} is not numeric.") from exc
    except OverflowError as exc:
        raise ReadingValidationError("Temperature is out of the representable range.") from exc

    if not math.isfinite(parsed):
        raise ReadingValidationError("Temperature must be a finite number.")
    return parsed


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ReadingIngestor:
    """Records readings and opens an alert for every out-of-range one.

    No suppression is applied: a new alert is opened even when the same
    equipment already has an active alert.
    """

    def __init__(
        self,
        store: TemperatureStore,
        resolver: ThresholdResolver,
        lifecycle: AlertLifecycle,
        notifier: Optional[AlertNotifier] = None,
        default_unit: str = "F",
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.lifecycle = lifecycle
        self.notifier: AlertNotifier = notifier or LoggingNotifier()
        self.default_unit = default_unit

    def record(
        self,
        location_id: Optional[str],
        equipment_id: Optional[str],
        equipment_type: Optional[str],
        temperature: Any,
        unit: Optional[str],
        recorded_by: Optional[str],
        notes: Optional[str] = None,
        threshold_min_override: Optional[float] = None,
        threshold_max_override: Optional[float] = None,
        source: Union[ReadingSource, str] = ReadingSource.manual,
        sensor_id: Optional[str] = None,
        recorded_at: Optional[datetime] = None,
        corrective_action: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TemperatureReading:
        location = _require_text("location_id", location_id)
        equipment = _require_text("equipment_id", equipment_id)
        value = _parse_temperature(temperature)
        recorder = _require_text("recorded_by", recorded_by)
        try:
            reading_source = ReadingSource(source)
        except ValueError as exc:
            raise ReadingValidationError(f"Unknown reading source {source!r}.") from exc

        override_min, override_max = self._effective_overrides(
            equipment, threshold_min_override, threshold_max_override
        )
        threshold = self.resolver.resolve(equipment_type, override_min, override_max)
        compliant = in_range(value, threshold)

        fields: Dict[str, Any] = dict(
            id=str(uuid4()),
            location_id=location,
            equipment_id=equipment,
            equipment_type=equipment_type,
            temperature=value,
            unit=(unit or self.default_unit).strip().upper(),
            threshold=threshold,
            is_in_range=compliant,
            source=reading_source,
            sensor_id=sensor_id,
            recorded_by=recorder,
            recorded_at=_as_utc(recorded_at),
            notes=notes,
            corrective_action=corrective_action,
            metadata=dict(metadata or {}),
        )

        if compliant:
            reading = TemperatureReading(alert_sent=False, **fields)
            with self.store.transaction() as tx:
                tx.insert_reading(reading)
            logger.info("Reading recorded", extra=self._log_context(reading))
            return reading

        return self._record_violation(fields)

    def _record_violation(self, fields: Dict[str, Any]) -> TemperatureReading:
        reading = TemperatureReading(alert_sent=True, **fields)
        direction = direction_for(reading.temperature, reading.threshold)
        if direction is None:
            raise ComplianceError(f"Reading {reading.id} is out of range but violates no bound.")

        try:
            alert = self.lifecycle.build(reading, direction)
        except Exception as exc:
            orphan = reading.model_copy(update={"alert_sent": False})
            with self.store.transaction() as tx:
                tx.insert_reading(orphan)
            logger.error(
                "Reading stored without its alert",
                extra={**self._log_context(orphan), "reason": str(exc)},
            )
            raise PartialIngestError(
                f"Reading {orphan.id} was recorded but its alert could not be created.",
                reading=orphan,
                cause=exc,
            ) from exc

        with self.store.transaction() as tx:
            tx.insert_reading(reading)
            tx.insert_alert(alert)

        logger.warning(
            "Out-of-range reading recorded",
            extra={
                **self._log_context(reading),
                "alert_id": alert.id,
                "direction": alert.direction.value,
                "severity": alert.severity.value,
            },
        )
        self._dispatch(alert)
        return reading

    def _effective_overrides(
        self,
        equipment_id: str,
        override_min: Optional[float],
        override_max: Optional[float],
    ) -> tuple[Optional[float], Optional[float]]:
        if override_min is not None and override_max is not None:
            return override_min, override_max
        custom = self.store.get_custom_threshold(equipment_id)
        if custom is None:
            return override_min, override_max
        return (
            custom.min if override_min is None else override_min,
            custom.max if override_max is None else override_max,
        )

    def _dispatch(self, alert: Alert) -> None:
        try:
            self.notifier.notify(alert)
        except Exception:  # noqa: BLE001 - delivery is owned by the dispatcher
            logger.exception("Alert notification failed", extra={"alert_id": alert.id})

    @staticmethod
    def _log_context(reading: TemperatureReading) -> Dict[str, Any]:
        return {
            "reading_id": reading.id,
            "location_id": reading.location_id,
            "equipment_id": reading.equipment_id,
            "equipment_type": reading.equipment_type,
            "temperature": reading.temperature,
        }
