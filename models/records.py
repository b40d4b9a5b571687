"""Domain value types shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Threshold:
    """An inclusive acceptable temperature range; a missing bound is open."""

    min: Optional[float] = None
    max: Optional[float] = None

    def is_ordered(self) -> bool:
        if self.min is None or self.max is None:
            return True
        return self.min <= self.max
