"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    AcknowledgeRequest,
    Alert,
    AlertQueryResult,
    AlertStatus,
    CommentRequest,
    CustomThreshold,
    CustomThresholdRequest,
    EquipmentHistory,
    ReadingCreate,
    ReadingLogResult,
    ResolveRequest,
    TemperatureReading,
)
from services.compliance import ComplianceService, build_default_service
from services.errors import PartialIngestError, StorageError

router = APIRouter()


def get_service() -> ComplianceService:
    return build_default_service()


def _not_found(alert_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Alert {alert_id!r} not found.",
    )


@router.post(
    "/temperatures",
    status_code=status.HTTP_201_CREATED,
    response_model=TemperatureReading,
    summary="Record a temperature reading and raise an alert if it is out of range.",
)
async def record_reading(
    payload: ReadingCreate,
    service: ComplianceService = Depends(get_service),
) -> TemperatureReading:
    try:
        return service.record(**payload.model_dump())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except PartialIngestError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": str(exc), "reading_id": exc.reading.id},
        ) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@router.get(
    "/temperatures",
    response_model=ReadingLogResult,
    summary="List temperature readings with compliance statistics.",
)
async def list_readings(
    location_id: Optional[str] = None,
    equipment_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    period: Optional[str] = Query(None, description="Relative window such as 24h, 7d, 30d or N hours."),
    service: ComplianceService = Depends(get_service),
) -> ReadingLogResult:
    start = start_date or service.resolve_period(period)
    return service.get_logs(
        location_id=location_id,
        equipment_id=equipment_id,
        start=start,
        end=end_date,
    )


@router.get(
    "/temperatures/alerts",
    response_model=AlertQueryResult,
    summary="List temperature alerts with a per-status summary.",
)
async def list_alerts(
    location_id: Optional[str] = None,
    equipment_id: Optional[str] = None,
    alert_status: Optional[AlertStatus] = Query(None, alias="status"),
    period: Optional[str] = None,
    service: ComplianceService = Depends(get_service),
) -> AlertQueryResult:
    return service.get_alerts(
        location_id=location_id,
        equipment_id=equipment_id,
        status=alert_status,
        since=service.resolve_period(period),
    )


@router.post(
    "/temperatures/alerts/{alert_id}/acknowledge",
    response_model=Alert,
    summary="Acknowledge a temperature alert.",
)
async def acknowledge_alert(
    alert_id: str,
    payload: AcknowledgeRequest,
    service: ComplianceService = Depends(get_service),
) -> Alert:
    alert = service.acknowledge_alert(
        alert_id, acknowledged_by=payload.acknowledged_by, note=payload.note
    )
    if alert is None:
        raise _not_found(alert_id)
    return alert


@router.post(
    "/temperatures/alerts/{alert_id}/resolve",
    response_model=Alert,
    summary="Resolve a temperature alert, acknowledging it first if needed.",
)
async def resolve_alert(
    alert_id: str,
    payload: ResolveRequest,
    service: ComplianceService = Depends(get_service),
) -> Alert:
    alert = service.resolve_alert(
        alert_id,
        resolved_by=payload.resolved_by,
        resolution=payload.resolution,
        note=payload.note,
    )
    if alert is None:
        raise _not_found(alert_id)
    return alert


@router.post(
    "/temperatures/alerts/{alert_id}/comments",
    response_model=Alert,
    summary="Append a comment to an alert's notes.",
)
async def comment_alert(
    alert_id: str,
    payload: CommentRequest,
    service: ComplianceService = Depends(get_service),
) -> Alert:
    alert = service.comment_alert(alert_id, author=payload.author, message=payload.message)
    if alert is None:
        raise _not_found(alert_id)
    return alert


@router.get(
    "/temperatures/equipment/{equipment_id}",
    response_model=EquipmentHistory,
    summary="Temperature history and trends for one piece of equipment.",
)
async def equipment_history(
    equipment_id: str,
    period: Optional[str] = None,
    service: ComplianceService = Depends(get_service),
) -> EquipmentHistory:
    return service.get_equipment_history(equipment_id, period=period)


@router.put(
    "/temperatures/thresholds/{equipment_id}",
    response_model=CustomThreshold,
    summary="Set a custom threshold for one piece of equipment.",
)
async def set_custom_threshold(
    equipment_id: str,
    payload: CustomThresholdRequest,
    service: ComplianceService = Depends(get_service),
) -> CustomThreshold:
    try:
        return service.set_custom_threshold(equipment_id, payload.min, payload.max)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.get(
    "/temperatures/thresholds/{equipment_id}",
    response_model=CustomThreshold,
    summary="Fetch the custom threshold for one piece of equipment.",
)
async def get_custom_threshold(
    equipment_id: str,
    service: ComplianceService = Depends(get_service),
) -> CustomThreshold:
    threshold = service.get_custom_threshold(equipment_id)
    if threshold is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No custom threshold for equipment {equipment_id!r}.",
        )
    return threshold


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
