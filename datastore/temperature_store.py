from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from threading import RLock
from typing import Callable, Dict, Generic, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.schemas import Alert, AlertStatus, CustomThreshold, TemperatureReading
from services.errors import DuplicateRecordError, StorageError
from settings import get_settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RecordTable(Generic[ModelT]):
    """In-memory table of pydantic records with optional JSON persistence.

    Reads hand out deep copies so callers can never mutate stored state.
    """

    def __init__(
        self,
        name: str,
        model: Type[ModelT],
        key: str = "id",
        persistence_path: Optional[Path] = None,
        insert_only: bool = False,
    ) -> None:
        self.name = name
        self.model = model
        self.key = key
        self.insert_only = insert_only
        self.persistence_path = persistence_path
        self._items: Dict[str, ModelT] = {}
        self.lock = RLock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_item(self, item: ModelT) -> None:
        with self.lock:
            previous = dict(self._items)
            self.stage(item)
            try:
                self.flush()
            except StorageError:
                self._items = previous
                raise

    def get_item(self, key: str) -> Optional[ModelT]:
        with self.lock:
            item = self._items.get(key)
            if item is None:
                return None
            return item.model_copy(deep=True)

    def scan(self, predicate: Optional[Callable[[ModelT], bool]] = None) -> List[ModelT]:
        """Return deep copies of stored records, optionally filtered."""

        with self.lock:
            return [
                item.model_copy(deep=True)
                for item in self._items.values()
                if predicate is None or predicate(item)
            ]

    def stage(self, item: ModelT) -> None:
        """Write ``item`` to memory only; callers must hold ``lock`` and ``flush``."""
        key = getattr(item, self.key)
        if self.insert_only and key in self._items:
            raise DuplicateRecordError(
                f"Record {key!r} already exists in append-only table {self.name!r}."
            )
        self._items[key] = item.model_copy(deep=True)

    def snapshot(self) -> Dict[str, ModelT]:
        with self.lock:
            return dict(self._items)

    def restore(self, snapshot: Dict[str, ModelT]) -> None:
        with self.lock:
            self._items = dict(snapshot)

    def flush(self) -> None:
        if not self.persistence_path:
            return
        payload = {key: item.model_dump(mode="json") for key, item in self._items.items()}
        scratch = self.persistence_path.with_suffix(self.persistence_path.suffix + ".tmp")
        try:
            scratch.write_text(json.dumps(payload, indent=2, sort_keys=True))
            os.replace(scratch, self.persistence_path)
        except OSError as exc:
            raise StorageError(f"Failed to persist table {self.name!r}: {exc}") from exc

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
            for key, payload in data.items():
                self._items[key] = self.model.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            # Starting empty would overwrite the audit trail on the next write.
            raise StorageError(
                f"Could not load table {self.name!r} from {self.persistence_path}: {exc}"
            ) from exc


class StoreTransaction:
    """Reading and alert inserts staged for a single atomic commit."""

    def __init__(self) -> None:
        self.readings: List[TemperatureReading] = []
        self.alerts: List[Alert] = []

    def insert_reading(self, reading: TemperatureReading) -> None:
        self.readings.append(reading)

    def insert_alert(self, alert: Alert) -> None:
        self.alerts.append(alert)


class TemperatureStore:
    """Persistence collaborator for readings, alerts and custom thresholds."""

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = data_dir
        self.readings: RecordTable[TemperatureReading] = RecordTable(
            "temperature_readings",
            TemperatureReading,
            persistence_path=self._path_for("readings.json"),
            insert_only=True,
        )
        self.alerts: RecordTable[Alert] = RecordTable(
            "temperature_alerts",
            Alert,
            persistence_path=self._path_for("alerts.json"),
        )
        self.thresholds: RecordTable[CustomThreshold] = RecordTable(
            "custom_thresholds",
            CustomThreshold,
            key="equipment_id",
            persistence_path=self._path_for("thresholds.json"),
        )

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Stage inserts and apply them all-or-nothing when the block exits.

        An exception inside the block discards the staged writes. A failure
        while applying restores both tables and raises ``StorageError``.
        """
        staged = StoreTransaction()
        yield staged
        self._commit(staged)

    def _commit(self, staged: StoreTransaction) -> None:
        # Fixed lock order (readings, then alerts) keeps concurrent commits deadlock-free.
        with self.readings.lock, self.alerts.lock:
            reading_snapshot = self.readings.snapshot()
            alert_snapshot = self.alerts.snapshot()
            try:
                for reading in staged.readings:
                    self.readings.stage(reading)
                for alert in staged.alerts:
                    self.alerts.stage(alert)
                self.readings.flush()
                self.alerts.flush()
            except StorageError:
                self._rollback(reading_snapshot, alert_snapshot)
                raise

    def _rollback(
        self,
        reading_snapshot: Dict[str, TemperatureReading],
        alert_snapshot: Dict[str, Alert],
    ) -> None:
        self.readings.restore(reading_snapshot)
        self.alerts.restore(alert_snapshot)
        try:
            self.readings.flush()
            self.alerts.flush()
        except StorageError:
            logger.error("Rollback could not rewrite store files; in-memory state restored")
            raise

    def get_reading(self, reading_id: str) -> Optional[TemperatureReading]:
        return self.readings.get_item(reading_id)

    def get_alert(self, alert_id: str) -> Optional[Alert]:
        return self.alerts.get_item(alert_id)

    def update_alert(self, alert: Alert) -> None:
        if self.alerts.get_item(alert.id) is None:
            raise StorageError(f"Alert {alert.id!r} does not exist and cannot be updated.")
        self.alerts.put_item(alert)

    def query_readings(
        self,
        location_id: Optional[str] = None,
        equipment_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TemperatureReading]:
        def matches(reading: TemperatureReading) -> bool:
            if location_id and reading.location_id != location_id:
                return False
            if equipment_id and reading.equipment_id != equipment_id:
                return False
            if start and reading.recorded_at < start:
                return False
            if end and reading.recorded_at > end:
                return False
            return True

        return sorted(self.readings.scan(matches), key=lambda reading: reading.recorded_at)

    def query_alerts(
        self,
        location_id: Optional[str] = None,
        equipment_id: Optional[str] = None,
        status: Optional[AlertStatus] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[Alert]:
        def matches(alert: Alert) -> bool:
            if location_id and alert.location_id != location_id:
                return False
            if equipment_id and alert.equipment_id != equipment_id:
                return False
            if status and alert.status != status:
                return False
            if since and alert.created_at < since:
                return False
            if until and alert.created_at > until:
                return False
            return True

        return sorted(self.alerts.scan(matches), key=lambda alert: alert.created_at)

    def get_custom_threshold(self, equipment_id: str) -> Optional[CustomThreshold]:
        return self.thresholds.get_item(equipment_id)

    def put_custom_threshold(self, threshold: CustomThreshold) -> None:
        self.thresholds.put_item(threshold)

    def _path_for(self, filename: str) -> Optional[Path]:
        if self.data_dir is None:
            return None
        return self.data_dir / filename


@lru_cache
def build_default_store(data_dir: Optional[str] = None) -> TemperatureStore:
    settings = get_settings()
    directory = settings.data_dir if data_dir is None else data_dir
    return TemperatureStore(data_dir=Path(directory) if directory else None)
