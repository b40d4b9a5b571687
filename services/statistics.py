"""Summary statistics and trend data over temperature readings."""

from __future__ import annotations

from typing import Iterable, Optional

from app.schemas import ReadingStatistics, TemperatureReading, TrendSummary


class StatisticsEngine:
    """Pure aggregation component that can be unit tested in isolation."""

    def calculate_statistics(self, readings: Iterable[TemperatureReading]) -> ReadingStatistics:
        total_readings = 0
        out_of_range = 0
        total = 0.0

        for reading in readings:
            total_readings += 1
            total += reading.temperature
            if not reading.is_in_range:
                out_of_range += 1

        if not total_readings:
            return ReadingStatistics()

        return ReadingStatistics(
            total_readings=total_readings,
            out_of_range=out_of_range,
            average_temp=round(total / total_readings, 2),
        )

    def calculate_trends(self, readings: Iterable[TemperatureReading]) -> TrendSummary:
        count = 0
        total = 0.0
        minimum: Optional[float] = None
        maximum: Optional[float] = None
        latest: Optional[TemperatureReading] = None

        for reading in readings:
            count += 1
            value = reading.temperature
            total += value

            if minimum is None or value < minimum:
                minimum = value
            if maximum is None or value > maximum:
                maximum = value
            # Ties keep the first reading seen.
            if latest is None or reading.recorded_at > latest.recorded_at:
                latest = reading

        if not count:
            return TrendSummary()

        return TrendSummary(
            average=round(total / count, 2),
            min=minimum,
            max=maximum,
            latest=latest,
        )
