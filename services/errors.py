"""Exception hierarchy for the compliance engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.schemas import TemperatureReading


class ComplianceError(Exception):
    """Base class for all engine errors."""


class ReadingValidationError(ComplianceError, ValueError):
    """A reading was rejected before any persistence attempt."""


class ThresholdError(ComplianceError, ValueError):
    """A threshold range was malformed (``min`` above ``max``)."""


class StorageError(ComplianceError, RuntimeError):
    """The persistence collaborator failed; nothing from the unit was written."""


class DuplicateRecordError(StorageError):
    """An insert-only table received a key it already holds."""


class PartialIngestError(StorageError):
    """The reading was persisted but its alert could not be created.

    The stored reading carries ``alert_sent=False`` so it never claims an
    alert that does not exist.
    """

    def __init__(self, message: str, reading: "TemperatureReading", cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.reading = reading
        self.cause = cause
