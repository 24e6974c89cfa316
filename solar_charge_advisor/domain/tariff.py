"""Time-of-day tariff resolution.

Periods are matched at hour granularity: an hour belongs to a period when
the minute the hour starts falls in [start, end). A period whose end is
before its start spans midnight, and a period whose start equals its end
covers the whole day.

Overlapping periods are a data quality issue and are tolerated. When more
than one period matches an hour the winner is, in order:
1. A cheap period over a non-cheap one
2. The lower rate (a period without a rate ranks after any rated period)
3. The period listed first
"""

from __future__ import annotations

import logging
import math
import re
from typing import Sequence

from ..const import HOURS_PER_DAY
from ..exceptions import ConfigurationError
from ..models import CheapWindow, HourlyRate, TariffPeriod

_LOGGER = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = HOURS_PER_DAY * 60


def parse_time(value: str) -> int:
    """Parse HH:MM into minutes since midnight.

    Raises:
        ConfigurationError: If the value is not a valid HH:MM time
    """
    match = _TIME_PATTERN.match(value or "")
    if match is None:
        raise ConfigurationError(f"Invalid time '{value}', expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_hour(hour: int) -> str:
    """Format an hour (0-24) as HH:00."""
    return f"{hour % HOURS_PER_DAY:02d}:00"


class TariffResolver:
    """Resolves rates and cheap windows from a list of tariff periods.

    The per-hour resolution is computed once on construction; the resolver
    is read-only afterwards.
    """

    def __init__(self, periods: Sequence[TariffPeriod]) -> None:
        """Initialize the resolver.

        Args:
            periods: Tariff periods in input order

        Raises:
            ConfigurationError: If a period has a malformed time or a
                negative rate
        """
        self._periods = list(periods)
        self._bounds: list[tuple[int, int]] = []
        for period in self._periods:
            if period.rate_pence_per_kwh is not None and period.rate_pence_per_kwh < 0:
                raise ConfigurationError(
                    f"Tariff period '{period.id}' has a negative rate"
                )
            self._bounds.append((parse_time(period.start_time), parse_time(period.end_time)))

        self._hourly = [self._resolve(hour) for hour in range(HOURS_PER_DAY)]

        gaps = [hour for hour, rate in enumerate(self._hourly) if rate.period_id is None]
        if self._periods and gaps:
            _LOGGER.debug("Tariff periods leave hours uncovered: %s", gaps)

    @staticmethod
    def covers(start_minute: int, end_minute: int, hour: int) -> bool:
        """Check if the hour's start minute falls in [start, end)."""
        minute = hour * 60
        if start_minute == end_minute:
            return True
        if start_minute < end_minute:
            return start_minute <= minute < end_minute
        # Spans midnight
        return minute >= start_minute or minute < end_minute

    def matching_periods(self, hour: int) -> list[TariffPeriod]:
        """Get all periods covering an hour, in input order."""
        return [
            period
            for period, (start, end) in zip(self._periods, self._bounds)
            if self.covers(start, end, hour)
        ]

    def _resolve(self, hour: int) -> HourlyRate:
        candidates = [
            (index, period)
            for index, (period, (start, end)) in enumerate(zip(self._periods, self._bounds))
            if self.covers(start, end, hour)
        ]
        if not candidates:
            return HourlyRate(rate_pence_per_kwh=None, is_cheap=False)

        def rank(item: tuple[int, TariffPeriod]) -> tuple[bool, float, int]:
            index, period = item
            rate = period.rate_pence_per_kwh
            return (not period.is_cheap, math.inf if rate is None else rate, index)

        _, winner = min(candidates, key=rank)
        if len(candidates) > 1:
            _LOGGER.debug(
                "Hour %d matched %d tariff periods, using '%s'",
                hour, len(candidates), winner.id,
            )
        return HourlyRate(
            rate_pence_per_kwh=winner.rate_pence_per_kwh,
            is_cheap=winner.is_cheap,
            period_id=winner.id,
        )

    def rate_for_hour(self, hour: int) -> HourlyRate:
        """Get the rate and cheap flag applying to an hour."""
        return self._hourly[hour % HOURS_PER_DAY]

    @property
    def has_periods(self) -> bool:
        """Check if any tariff period is configured."""
        return bool(self._periods)

    @property
    def has_cheap_periods(self) -> bool:
        """Check if any period is flagged cheap."""
        return any(period.is_cheap for period in self._periods)

    @property
    def cheapest_rate(self) -> float | None:
        """Lowest rate among cheap periods that have a rate."""
        rates = [
            period.rate_pence_per_kwh
            for period in self._periods
            if period.is_cheap and period.rate_pence_per_kwh is not None
        ]
        return min(rates) if rates else None

    @property
    def most_expensive_rate(self) -> float | None:
        """Highest rate among non-cheap periods that have a rate.

        Reference value for reporting savings only.
        """
        rates = [
            period.rate_pence_per_kwh
            for period in self._periods
            if not period.is_cheap and period.rate_pence_per_kwh is not None
        ]
        return max(rates) if rates else None

    def _qualifying_hours(self) -> list[bool] | None:
        if not self.has_cheap_periods:
            return None

        cheapest = self.cheapest_rate
        if cheapest is None:
            # Cheap periods without rates, fall back to the flag
            return [rate.is_cheap for rate in self._hourly]

        return [
            rate.rate_pence_per_kwh is not None and rate.rate_pence_per_kwh <= cheapest
            for rate in self._hourly
        ]

    def find_cheapest_window(self, min_duration_hours: int = 1) -> CheapWindow | None:
        """Find the longest contiguous run of hours at the cheapest rate.

        Runs may wrap past midnight. Equal-length runs go to the earliest
        start hour.

        Args:
            min_duration_hours: Shortest acceptable window

        Returns:
            CheapWindow, or None if no cheap period exists or no run is
            long enough
        """
        qualifying = self._qualifying_hours()
        if qualifying is None or not any(qualifying):
            return None

        cheapest = self.cheapest_rate
        if all(qualifying):
            runs = [(0, HOURS_PER_DAY)]
        else:
            runs = []
            first_gap = qualifying.index(False)
            start: int | None = None
            length = 0
            for offset in range(1, HOURS_PER_DAY + 1):
                hour = (first_gap + offset) % HOURS_PER_DAY
                if qualifying[hour]:
                    if start is None:
                        start = hour
                        length = 0
                    length += 1
                elif start is not None:
                    runs.append((start, length))
                    start = None

        best_start, best_length = min(runs, key=lambda run: (-run[1], run[0]))
        if best_length < max(1, min_duration_hours):
            return None

        end = best_start + best_length
        if end > HOURS_PER_DAY:
            end -= HOURS_PER_DAY
        return CheapWindow(start_hour=best_start, end_hour=end, rate_pence_per_kwh=cheapest)
