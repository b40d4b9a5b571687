from __future__ import annotations

from pathlib import Path
from typing import Iterable

from app.schemas import AlertDirection, AlertSeverity
from datastore.temperature_store import build_default_store
from services.alerts import DeviationSeverityPolicy
from services.compliance import build_default_service
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (get_settings, build_default_store, build_default_service)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    data_dir = tmp_path / "haccp"

    monkeypatch.setenv("TEMPERATURE_DATA_DIR", str(data_dir))
    monkeypatch.setenv("TEMPERATURE_DEFAULT_UNIT", "c")
    monkeypatch.setenv("ALERT_SEVERITY_POLICY", "Deviation")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        service = build_default_service()

        assert settings.default_unit == "C"
        assert settings.log_level == "DEBUG"
        assert service.store.data_dir == Path(str(data_dir))
        assert isinstance(service.lifecycle.severity_policy, DeviationSeverityPolicy)

        reading = service.record(
            location_id="loc-1",
            equipment_id="freezer-1",
            equipment_type="freezer",
            temperature=25,
            unit=None,
            recorded_by="crew",
        )
        assert reading.unit == "C"
        assert (data_dir / "readings.json").exists()
        alert = service.get_alerts(equipment_id="freezer-1").alerts[0]
        assert alert.direction is AlertDirection.high
        assert alert.severity is AlertSeverity.critical
    finally:
        _clear_caches(CACHES)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("TEMPERATURE_DATA_DIR", "   ")
    monkeypatch.setenv("ALERT_SEVERITY_POLICY", "random")
    monkeypatch.delenv("ALERT_DEFAULT_SEVERITY", raising=False)
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        assert settings.data_dir is None
        assert settings.severity_policy == "fixed"
        assert settings.default_severity == "medium"
        assert build_default_store().data_dir is None
    finally:
        _clear_caches(CACHES)
