"""Pydantic schemas for temperature readings, alerts and the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from models.records import Threshold


class ReadingSource(str, Enum):
    """Where a temperature reading came from."""

    manual = "manual"
    sensor = "sensor"


class AlertDirection(str, Enum):
    """Which threshold bound an out-of-range reading violated."""

    low = "low"
    high = "high"


class AlertStatus(str, Enum):
    """Alert lifecycle states. Transitions only move forward."""

    active = "active"
    acknowledged = "acknowledged"
    resolved = "resolved"


class AlertSeverity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class TemperatureReading(BaseModel):
    """One recorded measurement. Frozen: HACCP audit rules forbid edits."""

    model_config = ConfigDict(frozen=True)

    id: str
    location_id: str
    equipment_id: str
    equipment_type: Optional[str] = None
    temperature: float
    unit: str = "F"
    threshold: Threshold
    is_in_range: bool
    source: ReadingSource = ReadingSource.manual
    sensor_id: Optional[str] = None
    recorded_by: str
    recorded_at: datetime
    notes: Optional[str] = None
    corrective_action: Optional[str] = None
    alert_sent: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)


class _AlertNoteBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    message: str
    author: Optional[str] = None
    timestamp: datetime


class AcknowledgedNote(_AlertNoteBase):
    type: Literal["acknowledged"] = "acknowledged"


class ResolvedNote(_AlertNoteBase):
    type: Literal["resolved"] = "resolved"


class CommentNote(_AlertNoteBase):
    type: Literal["comment"] = "comment"


AlertNote = Annotated[
    Union[AcknowledgedNote, ResolvedNote, CommentNote],
    Field(discriminator="type"),
]


class Alert(BaseModel):
    """Tracked out-of-range event, mutated only by acknowledge/resolve/comment."""

    id: str
    temperature_log_id: str
    location_id: str
    equipment_id: str
    equipment_type: Optional[str] = None
    temperature: float
    threshold: Threshold
    direction: AlertDirection
    status: AlertStatus = AlertStatus.active
    severity: AlertSeverity = AlertSeverity.medium
    created_at: datetime
    updated_at: datetime
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution: Optional[str] = None
    notes: List[AlertNote] = Field(default_factory=list)


class CustomThreshold(BaseModel):
    """Per-equipment threshold that takes precedence over the type policy."""

    equipment_id: str
    min: float
    max: float
    updated_at: datetime


class AlertSummary(BaseModel):
    active: int = Field(default=0, ge=0)
    acknowledged: int = Field(default=0, ge=0)
    resolved: int = Field(default=0, ge=0)


class AlertQueryResult(BaseModel):
    alerts: List[Alert] = Field(default_factory=list)
    summary: AlertSummary = Field(default_factory=AlertSummary)


class ReadingStatistics(BaseModel):
    """Point-in-time compliance statistics for a set of readings."""

    total_readings: int = Field(default=0, ge=0)
    out_of_range: int = Field(default=0, ge=0)
    average_temp: Optional[float] = None


class TrendSummary(BaseModel):
    average: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    latest: Optional[TemperatureReading] = None


class ReadingLogResult(BaseModel):
    logs: List[TemperatureReading] = Field(default_factory=list)
    statistics: ReadingStatistics = Field(default_factory=ReadingStatistics)


class EquipmentHistory(BaseModel):
    equipment_id: str
    readings: List[TemperatureReading] = Field(default_factory=list)
    trends: TrendSummary = Field(default_factory=TrendSummary)


class ReadingCreate(BaseModel):
    """Inbound reading payload.

    Required fields are optional here so that the ingestor, not the
    transport layer, owns validation and its error messages.
    """

    location_id: Optional[str] = None
    equipment_id: Optional[str] = None
    equipment_type: Optional[str] = None
    temperature: Any = None
    unit: Optional[str] = None
    recorded_by: Optional[str] = None
    notes: Optional[str] = None
    threshold_min_override: Optional[float] = None
    threshold_max_override: Optional[float] = None
    source: ReadingSource = ReadingSource.manual
    sensor_id: Optional[str] = None
    recorded_at: Optional[datetime] = None
    corrective_action: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AcknowledgeRequest(BaseModel):
    acknowledged_by: Optional[str] = None
    note: Optional[str] = None


class ResolveRequest(BaseModel):
    resolved_by: Optional[str] = None
    note: Optional[str] = None
    resolution: Optional[str] = None


class CommentRequest(BaseModel):
    author: Optional[str] = None
    message: str


class CustomThresholdRequest(BaseModel):
    min: float
    max: float
