"""Threshold resolution and range evaluation for equipment temperatures."""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Mapping, Optional

from models.records import Threshold
from services.errors import ThresholdError


_COLD_HOLD = Threshold(min=33, max=41)

DEFAULT_THRESHOLD_POLICY: Mapping[str, Threshold] = MappingProxyType(
    {
        "freezer": Threshold(min=-10, max=10),
        "fridge": _COLD_HOLD,
        "refrigerator": _COLD_HOLD,
        "coldhold": _COLD_HOLD,
        "hothold": Threshold(min=135, max=165),
        "ambient": Threshold(min=65, max=80),
    }
)
FALLBACK_THRESHOLD = Threshold(min=33, max=165)


def in_range(value: float, threshold: Threshold) -> bool:
    """Inclusive bounds check; a missing bound never rejects."""
    lower = threshold.min if threshold.min is not None else -math.inf
    upper = threshold.max if threshold.max is not None else math.inf
    return lower <= value <= upper


class ThresholdResolver:
    """Maps an equipment type, optionally overridden, to an acceptable range.

    The policy map is normalised to lower-case keys once at construction so
    lookups are case-insensitive (``"FREEZER"`` and ``"coldHold"`` both hit).
    """

    def __init__(
        self,
        policy: Mapping[str, Threshold] = DEFAULT_THRESHOLD_POLICY,
        fallback: Threshold = FALLBACK_THRESHOLD,
    ) -> None:
        normalized = {key.strip().lower(): value for key, value in policy.items()}
        for key, value in normalized.items():
            if not value.is_ordered():
                raise ThresholdError(f"Policy threshold for {key!r} has min above max.")
        self._policy: Mapping[str, Threshold] = MappingProxyType(normalized)
        self._fallback = fallback

    @property
    def policy(self) -> Mapping[str, Threshold]:
        return self._policy

    def resolve(
        self,
        equipment_type: Optional[str],
        override_min: Optional[float] = None,
        override_max: Optional[float] = None,
    ) -> Threshold:
        if override_min is not None and override_max is not None:
            resolved = Threshold(min=override_min, max=override_max)
        else:
            base = self.default_for(equipment_type)
            resolved = Threshold(
                min=base.min if override_min is None else override_min,
                max=base.max if override_max is None else override_max,
            )

        if not resolved.is_ordered():
            raise ThresholdError(
                f"Threshold minimum {resolved.min} is above maximum {resolved.max}."
            )
        return resolved

    def default_for(self, equipment_type: Optional[str]) -> Threshold:
        if not equipment_type:
            return self._fallback
        return self._policy.get(equipment_type.strip().lower(), self._fallback)
