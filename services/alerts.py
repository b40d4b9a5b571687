"""Alert lifecycle: creation, acknowledgement, resolution and the notes ledger."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Dict, Iterator, Optional, Type, Union
from uuid import uuid4

from app.schemas import (
    AcknowledgedNote,
    Alert,
    AlertDirection,
    AlertQueryResult,
    AlertSeverity,
    AlertStatus,
    AlertSummary,
    CommentNote,
    ResolvedNote,
    TemperatureReading,
)
from datastore.temperature_store import TemperatureStore
from models.records import Threshold

logger = logging.getLogger(__name__)

SeverityPolicy = Callable[[TemperatureReading, AlertDirection], AlertSeverity]
NoteType = Type[Union[AcknowledgedNote, ResolvedNote, CommentNote]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize(value: Any) -> Optional[str]:
    if value is None:
        return None
    candidate = str(value).strip()
    return candidate or None


def direction_for(temperature: float, threshold: Threshold) -> Optional[AlertDirection]:
    """Which bound ``temperature`` violates, or ``None`` when it is in range."""
    if threshold.min is not None and temperature < threshold.min:
        return AlertDirection.low
    if threshold.max is not None and temperature > threshold.max:
        return AlertDirection.high
    return None


class FixedSeverityPolicy:
    """Every alert gets the same severity."""

    def __init__(self, severity: AlertSeverity = AlertSeverity.medium) -> None:
        self.severity = severity

    def __call__(self, reading: TemperatureReading, direction: AlertDirection) -> AlertSeverity:
        return self.severity


class DeviationSeverityPolicy:
    """Grade severity by how many degrees the reading sits beyond the violated bound."""

    def __init__(self, high_after: float = 5.0, critical_after: float = 10.0) -> None:
        if high_after > critical_after:
            raise ValueError("high_after must not exceed critical_after.")
        self.high_after = high_after
        self.critical_after = critical_after

    def __call__(self, reading: TemperatureReading, direction: AlertDirection) -> AlertSeverity:
        bound = reading.threshold.min if direction is AlertDirection.low else reading.threshold.max
        deviation = abs(reading.temperature - bound) if bound is not None else 0.0
        if deviation >= self.critical_after:
            return AlertSeverity.critical
        if deviation >= self.high_after:
            return AlertSeverity.high
        return AlertSeverity.medium


def build_severity_policy(name: str, default_severity: str = "medium") -> SeverityPolicy:
    if name == "deviation":
        return DeviationSeverityPolicy()
    try:
        severity = AlertSeverity(default_severity)
    except ValueError:
        logger.warning(
            "Unknown default severity; falling back to medium",
            extra={"severity": default_severity},
        )
        severity = AlertSeverity.medium
    return FixedSeverityPolicy(severity)


class AlertLifecycle:
    """State machine for alerts: active -> acknowledged -> resolved.

    Mutations for one alert id are serialized through a per-id lock held for
    the whole read-modify-write against the store, so concurrent
    acknowledge/resolve calls can never move an alert backwards.

    Repeated transitions are idempotent: acknowledging an alert that is
    already acknowledged or resolved, or resolving a resolved alert, leaves
    status and timestamps untouched. A note supplied with such a call is
    kept in the ledger as a comment.
    """

    def __init__(
        self,
        store: TemperatureStore,
        severity_policy: Optional[SeverityPolicy] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.severity_policy: SeverityPolicy = severity_policy or FixedSeverityPolicy()
        self._clock = clock
        self._locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()

    def build(
        self,
        reading: TemperatureReading,
        direction: AlertDirection,
        severity: Optional[AlertSeverity] = None,
    ) -> Alert:
        """Construct a new active alert for ``reading`` without persisting it."""
        now = self._clock()
        return Alert(
            id=str(uuid4()),
            temperature_log_id=reading.id,
            location_id=reading.location_id,
            equipment_id=reading.equipment_id,
            equipment_type=reading.equipment_type,
            temperature=reading.temperature,
            threshold=reading.threshold,
            direction=direction,
            status=AlertStatus.active,
            severity=severity or self.severity_policy(reading, direction),
            created_at=reading.recorded_at,
            updated_at=now,
            notes=[],
        )

    def create(
        self,
        reading: TemperatureReading,
        direction: AlertDirection,
        severity: Optional[AlertSeverity] = None,
    ) -> Alert:
        alert = self.build(reading, direction, severity)
        with self.store.transaction() as tx:
            tx.insert_alert(alert)
        self._log_transition("Alert created", alert)
        return alert

    def acknowledge(
        self,
        alert_id: str,
        acknowledged_by: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Optional[Alert]:
        with self._serialized(alert_id):
            alert = self.store.get_alert(alert_id)
            if alert is None:
                return None

            user = _normalize(acknowledged_by)
            now = self._clock()

            if alert.status is not AlertStatus.active:
                return self._record_repeat(alert, "acknowledge", note, user, now)

            alert.status = AlertStatus.acknowledged
            alert.acknowledged_at = now
            alert.acknowledged_by = user
            alert.updated_at = now
            self._append_note(alert, AcknowledgedNote, note, user, now)

            self.store.update_alert(alert)
            self._log_transition("Alert acknowledged", alert)
            return alert

    def resolve(
        self,
        alert_id: str,
        resolved_by: Optional[str] = None,
        resolution: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Optional[Alert]:
        with self._serialized(alert_id):
            alert = self.store.get_alert(alert_id)
            if alert is None:
                return None

            user = _normalize(resolved_by)
            now = self._clock()

            if alert.status is AlertStatus.resolved:
                return self._record_repeat(alert, "resolve", note, user, now)

            if alert.status is AlertStatus.active:
                alert.acknowledged_at = now
                alert.acknowledged_by = alert.acknowledged_by or user

            normalized_resolution = _normalize(resolution)
            alert.status = AlertStatus.resolved
            alert.resolved_at = now
            alert.resolved_by = user
            alert.resolution = normalized_resolution or alert.resolution
            alert.updated_at = now
            self._append_note(alert, ResolvedNote, note or normalized_resolution, user, now)

            self.store.update_alert(alert)
            self._log_transition("Alert resolved", alert)
            return alert

    def comment(self, alert_id: str, author: Optional[str], message: str) -> Optional[Alert]:
        with self._serialized(alert_id):
            alert = self.store.get_alert(alert_id)
            if alert is None:
                return None

            now = self._clock()
            if self._append_note(alert, CommentNote, message, _normalize(author), now):
                alert.updated_at = now
                self.store.update_alert(alert)
            return alert

    def query(
        self,
        location_id: Optional[str] = None,
        equipment_id: Optional[str] = None,
        status: Optional[Union[AlertStatus, str]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> AlertQueryResult:
        """Alerts matching every filter, plus a status summary that ignores ``status``."""
        wanted = AlertStatus(status) if status else None
        matching = self.store.query_alerts(
            location_id=location_id,
            equipment_id=equipment_id,
            since=since,
            until=until,
        )

        counts = {state: 0 for state in AlertStatus}
        for alert in matching:
            counts[alert.status] += 1

        return AlertQueryResult(
            alerts=[alert for alert in matching if wanted is None or alert.status is wanted],
            summary=AlertSummary(
                active=counts[AlertStatus.active],
                acknowledged=counts[AlertStatus.acknowledged],
                resolved=counts[AlertStatus.resolved],
            ),
        )

    @contextmanager
    def _serialized(self, alert_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(alert_id, Lock())
        with lock:
            yield

    def _record_repeat(
        self,
        alert: Alert,
        action: str,
        note: Optional[str],
        user: Optional[str],
        now: datetime,
    ) -> Alert:
        logger.info(
            "Ignoring repeated %s on %s alert",
            action,
            alert.status.value,
            extra={"alert_id": alert.id, "status": alert.status.value},
        )
        if self._append_note(alert, CommentNote, note, user, now):
            alert.updated_at = now
            self.store.update_alert(alert)
        return alert

    @staticmethod
    def _append_note(
        alert: Alert,
        note_type: NoteType,
        message: Optional[str],
        author: Optional[str],
        now: datetime,
    ) -> bool:
        text = _normalize(message)
        if text is None:
            return False
        alert.notes.append(
            note_type(id=str(uuid4()), message=text, author=author, timestamp=now)
        )
        return True

    @staticmethod
    def _log_transition(message: str, alert: Alert) -> None:
        logger.info(
            message,
            extra={
                "alert_id": alert.id,
                "equipment_id": alert.equipment_id,
                "status": alert.status.value,
                "severity": alert.severity.value,
            },
        )
