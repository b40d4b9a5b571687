from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_DATA_DIR_ENV = "TEMPERATURE_DATA_DIR"
_DEFAULT_UNIT_ENV = "TEMPERATURE_DEFAULT_UNIT"
_SEVERITY_POLICY_ENV = "ALERT_SEVERITY_POLICY"
_DEFAULT_SEVERITY_ENV = "ALERT_DEFAULT_SEVERITY"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_SEVERITY_POLICIES = ("fixed", "deviation")


@dataclass(frozen=True)
class Settings:
    data_dir: Optional[str]
    default_unit: str
    severity_policy: str
    default_severity: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_choice_env(name: str, choices: tuple[str, ...], default: str) -> str:
    candidate = _read_str_env(name, default).lower()
    return candidate if candidate in choices else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        data_dir=_read_optional_env(_DATA_DIR_ENV, "./tmp/haccp"),
        default_unit=_read_str_env(_DEFAULT_UNIT_ENV, "F").upper(),
        severity_policy=_read_choice_env(_SEVERITY_POLICY_ENV, _SEVERITY_POLICIES, "fixed"),
        default_severity=_read_str_env(_DEFAULT_SEVERITY_ENV, "medium").lower(),
        log_level=_read_log_level("INFO"),
    )
