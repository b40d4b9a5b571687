"""Service facade wiring the compliance engine to its persistence collaborator."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional, Union

from app.schemas import (
    Alert,
    AlertQueryResult,
    AlertStatus,
    CustomThreshold,
    EquipmentHistory,
    ReadingLogResult,
    ReadingSource,
    ReadingStatistics,
    TemperatureReading,
    TrendSummary,
)
from datastore.temperature_store import TemperatureStore, build_default_store
from models.records import Threshold
from services.alerts import AlertLifecycle, build_severity_policy
from services.ingestor import ReadingIngestor
from services.notifier import AlertNotifier
from services.periods import resolve_period
from services.statistics import StatisticsEngine
from services.thresholds import ThresholdResolver
from settings import get_settings

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class ComplianceService:
    """External call surface of the temperature compliance engine."""

    def __init__(
        self,
        store: TemperatureStore,
        resolver: Optional[ThresholdResolver] = None,
        lifecycle: Optional[AlertLifecycle] = None,
        statistics: Optional[StatisticsEngine] = None,
        notifier: Optional[AlertNotifier] = None,
        default_unit: str = "F",
    ) -> None:
        self.store = store
        self.resolver = resolver or ThresholdResolver()
        self.lifecycle = lifecycle or AlertLifecycle(store)
        self.statistics = statistics or StatisticsEngine()
        self.ingestor = ReadingIngestor(
            store=store,
            resolver=self.resolver,
            lifecycle=self.lifecycle,
            notifier=notifier,
            default_unit=default_unit,
        )

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
        return self.ingestor.record(
            location_id=location_id,
            equipment_id=equipment_id,
            equipment_type=equipment_type,
            temperature=temperature,
            unit=unit,
            recorded_by=recorded_by,
            notes=notes,
            threshold_min_override=threshold_min_override,
            threshold_max_override=threshold_max_override,
            source=source,
            sensor_id=sensor_id,
            recorded_at=recorded_at,
            corrective_action=corrective_action,
            metadata=metadata,
        )

    def acknowledge_alert(
        self, alert_id: str, acknowledged_by: Optional[str] = None, note: Optional[str] = None
    ) -> Optional[Alert]:
        return self.lifecycle.acknowledge(alert_id, acknowledged_by=acknowledged_by, note=note)

    def resolve_alert(
        self,
        alert_id: str,
        resolved_by: Optional[str] = None,
        resolution: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Optional[Alert]:
        return self.lifecycle.resolve(
            alert_id, resolved_by=resolved_by, resolution=resolution, note=note
        )

    def comment_alert(self, alert_id: str, author: Optional[str], message: str) -> Optional[Alert]:
        return self.lifecycle.comment(alert_id, author=author, message=message)

    def get_alerts(
        self,
        location_id: Optional[str] = None,
        equipment_id: Optional[str] = None,
        status: Optional[Union[AlertStatus, str]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> AlertQueryResult:
        return self.lifecycle.query(
            location_id=location_id,
            equipment_id=equipment_id,
            status=status,
            since=_as_utc(since),
            until=_as_utc(until),
        )

    def get_logs(
        self,
        location_id: Optional[str] = None,
        equipment_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> ReadingLogResult:
        logs = self.store.query_readings(
            location_id=location_id,
            equipment_id=equipment_id,
            start=_as_utc(start),
            end=_as_utc(end),
        )
        return ReadingLogResult(logs=logs, statistics=self.get_statistics(logs))

    def get_equipment_history(self, equipment_id: str, period: Optional[str] = None) -> EquipmentHistory:
        since = self.resolve_period(period)
        readings = self.store.query_readings(equipment_id=equipment_id, start=since)
        return EquipmentHistory(
            equipment_id=equipment_id,
            readings=readings,
            trends=self.get_trends(readings),
        )

    def get_statistics(self, readings: Iterable[TemperatureReading]) -> ReadingStatistics:
        return self.statistics.calculate_statistics(readings)

    def get_trends(self, readings: Iterable[TemperatureReading]) -> TrendSummary:
        return self.statistics.calculate_trends(readings)

    def resolve_period(self, token: Optional[str]) -> Optional[datetime]:
        return resolve_period(token)

    def set_custom_threshold(self, equipment_id: str, minimum: float, maximum: float) -> CustomThreshold:
        # Validates ordering the same way per-call overrides are validated.
        threshold: Threshold = self.resolver.resolve(None, minimum, maximum)
        record = CustomThreshold(
            equipment_id=equipment_id,
            min=threshold.min,
            max=threshold.max,
            updated_at=datetime.now(timezone.utc),
        )
        self.store.put_custom_threshold(record)
        logger.info(
            "Custom threshold set",
            extra={"equipment_id": equipment_id},
        )
        return record

    def get_custom_threshold(self, equipment_id: str) -> Optional[CustomThreshold]:
        return self.store.get_custom_threshold(equipment_id)


@lru_cache
def build_default_service() -> ComplianceService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    store = build_default_store()
    lifecycle = AlertLifecycle(
        store,
        severity_policy=build_severity_policy(settings.severity_policy, settings.default_severity),
    )
    return ComplianceService(
        store=store,
        lifecycle=lifecycle,
        default_unit=settings.default_unit,
    )
