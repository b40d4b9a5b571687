"""Relative period tokens (``"24h"``, ``"7d"``) to absolute cutoff instants."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)

PERIOD_HOURS = {
    "24h": 24,
    "7d": 7 * 24,
    "30d": 30 * 24,
}

# Leading integer, the way the HTTP layer has always parsed ad-hoc windows ("48", "12h").
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def resolve_period(token: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Return ``now`` minus the token's window, or ``None`` for no time filter.

    Unrecognised tokens also resolve to ``None``; a warning is logged so a
    silently disabled filter still shows up in the logs.
    """
    if not token:
        return None

    reference = now or datetime.now(timezone.utc)
    hours = PERIOD_HOURS.get(token)
    if hours is None:
        match = _LEADING_INT.match(token)
        if match is None:
            logger.warning("Ignoring unrecognised period token", extra={"period": token})
            return None
        hours = int(match.group(1))

    try:
        return reference - timedelta(hours=hours)
    except (OverflowError, ValueError):
        logger.warning("Ignoring out-of-range period token", extra={"period": token})
        return None
