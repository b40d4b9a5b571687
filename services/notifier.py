"""Notification dispatch hook invoked after an alert is created."""

from __future__ import annotations

import logging
from typing import Protocol

from app.schemas import Alert

logger = logging.getLogger(__name__)


class AlertNotifier(Protocol):
    def notify(self, alert: Alert) -> None:
        ...


class LoggingNotifier:
    """Default dispatcher: records the alert in the log stream only.

    Email/SMS/push delivery plugs in here by passing another ``AlertNotifier``
    to the service.
    """

    def notify(self, alert: Alert) -> None:
        logger.warning(
            "Temperature alert raised for %s",
            alert.equipment_id,
            extra={
                "alert_id": alert.id,
                "location_id": alert.location_id,
                "equipment_id": alert.equipment_id,
                "direction": alert.direction.value,
                "severity": alert.severity.value,
            },
        )
