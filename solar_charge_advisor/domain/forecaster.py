"""Solar generation forecasting.

Turns an hourly weather series into hourly generation estimates:
- Irradiance when the weather source provides it
- Cloud cover applied to a clear-sky curve otherwise
- A seasonal estimate from the panel rating as a last resort, scaled by a
  whole-day sky condition when one is given

The forecaster never fails on missing weather. It degrades to the next
path and marks seasonal and day-condition estimates as low confidence.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Sequence

from ..const import (
    BASE_PEAK_SUN_HOURS,
    CLEAR_SKY_CURVE_EXPONENT,
    CLEAR_SKY_PEAK_IRRADIANCE_WM2,
    DAY_CONDITION_FACTORS,
    DAYLIGHT_SWING_HOURS,
    HOURS_PER_DAY,
    MAX_CLEARNESS,
    MEAN_DAYLIGHT_HOURS,
    MIN_CLEARNESS,
    PROPERTY_DIRECTION_FACTORS,
    SEASONAL_MAX_MODIFIER,
    SEASONAL_MIN_MODIFIER,
    SOLAR_NOON_HOUR,
    STC_IRRADIANCE_WM2,
    SUMMER_SOLSTICE_DAY,
)
from ..exceptions import ConfigurationError
from ..models import (
    DayCondition,
    DaylightWindow,
    GenerationSource,
    HourlyGeneration,
    HourlyWeatherSample,
    PanelConfiguration,
)

_LOGGER = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25


def orientation_factor_for_direction(direction: str) -> float:
    """Get the orientation factor for a compass direction.

    Args:
        direction: Direction the panels face (e.g. "South-West")

    Returns:
        Orientation factor in (0, 1]

    Raises:
        ConfigurationError: If the direction is unknown
    """
    try:
        return PROPERTY_DIRECTION_FACTORS[direction]
    except KeyError:
        raise ConfigurationError(
            f"Unknown property direction '{direction}'. "
            f"Expected one of: {', '.join(PROPERTY_DIRECTION_FACTORS)}"
        ) from None


def condition_for_wmo_code(code: int | None) -> DayCondition:
    """Map a daily WMO weather code to a whole-day sky condition.

    A missing code counts as sunny and an unrecognised one as cloudy.
    """
    if code is None:
        return DayCondition.SUNNY

    code = int(code)
    if code == 0:
        return DayCondition.SUNNY
    if code in (1, 2):
        return DayCondition.PARTLY_CLOUDY
    if code == 3:
        return DayCondition.CLOUDY
    # Fog
    if code in (45, 48):
        return DayCondition.OVERCAST
    # Drizzle, rain, snow, showers and thunderstorms
    if 51 <= code <= 82 or 95 <= code <= 99:
        return DayCondition.RAINY
    return DayCondition.CLOUDY


def _is_number(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


class SolarForecaster:
    """Hourly solar generation forecaster.

    Stateless; every method is a pure function of its arguments.
    """

    @staticmethod
    def validate_panels(panels: PanelConfiguration) -> None:
        """Validate panel configuration.

        Raises:
            ConfigurationError: If rated power is not positive or a factor
                is outside (0, 1]
        """
        if not panels.rated_power_kwp > 0:
            raise ConfigurationError(
                f"Rated power must be positive, got {panels.rated_power_kwp} kWp"
            )
        if not 0 < panels.system_efficiency <= 1:
            raise ConfigurationError(
                f"System efficiency must be in (0, 1], got {panels.system_efficiency}"
            )
        if not 0 < panels.orientation_factor <= 1:
            raise ConfigurationError(
                f"Orientation factor must be in (0, 1], got {panels.orientation_factor}"
            )

    @staticmethod
    def daylight_for_date(for_date: date) -> DaylightWindow:
        """Estimate sunrise and sunset from the day of year.

        Day length swings sinusoidally around 12 hours, peaking at the
        summer solstice.
        """
        day_of_year = for_date.timetuple().tm_yday
        angle = 2 * math.pi * (day_of_year - SUMMER_SOLSTICE_DAY) / DAYS_PER_YEAR
        length = MEAN_DAYLIGHT_HOURS + DAYLIGHT_SWING_HOURS * math.cos(angle)
        return DaylightWindow(
            sunrise_hour=SOLAR_NOON_HOUR - length / 2,
            sunset_hour=SOLAR_NOON_HOUR + length / 2,
        )

    @staticmethod
    def seasonal_modifier(
        for_date: date,
        monthly_factors: Sequence[float] | None = None,
    ) -> float:
        """Get the seasonal generation modifier for a date.

        Uses the month's factor when twelve monthly factors are given,
        otherwise a cosine over the day of year (1.0 at midsummer).
        """
        if monthly_factors is not None and len(monthly_factors) == 12:
            return float(monthly_factors[for_date.month - 1])

        day_of_year = for_date.timetuple().tm_yday
        angle = 2 * math.pi * (day_of_year - SUMMER_SOLSTICE_DAY) / DAYS_PER_YEAR
        swing = (SEASONAL_MAX_MODIFIER - SEASONAL_MIN_MODIFIER) / 2
        return SEASONAL_MIN_MODIFIER + swing * (1 + math.cos(angle))

    @staticmethod
    def clear_sky_shape(hour: int, daylight: DaylightWindow) -> float:
        """Relative clear-sky output for an hour, 0 to 1.

        Bell shaped around solar noon, zero outside daylight.
        """
        half_day = daylight.length_hours / 2
        if half_day <= 0:
            return 0.0
        if hour < math.floor(daylight.sunrise_hour) or hour >= math.ceil(daylight.sunset_hour):
            return 0.0

        proximity = 1 - abs(hour + 0.5 - daylight.solar_noon) / half_day
        return max(0.0, proximity) ** CLEAR_SKY_CURVE_EXPONENT

    @staticmethod
    def irradiance_to_wh(irradiance_wm2: float, panels: PanelConfiguration) -> float:
        """Convert one hour of irradiance into generated energy.

        Floored at zero and capped at the rated output for one hour.
        """
        rated_wh = panels.rated_power_kwp * 1000.0
        wh = (
            irradiance_wm2 / STC_IRRADIANCE_WM2
            * rated_wh
            * panels.system_efficiency
            * panels.orientation_factor
        )
        return min(rated_wh, max(0.0, wh))

    @staticmethod
    def forecast_hourly(
        samples: Sequence[HourlyWeatherSample],
        panels: PanelConfiguration,
        *,
        for_date: date | None = None,
        daylight: DaylightWindow | None = None,
        monthly_factors: Sequence[float] | None = None,
        condition: DayCondition | None = None,
    ) -> list[HourlyGeneration]:
        """Forecast generation for every hour of a day.

        Args:
            samples: Hourly weather (may be partial or contain None fields)
            panels: Panel configuration
            for_date: Day being forecast (defaults to today)
            daylight: Sunrise/sunset (defaults to an estimate for for_date)
            monthly_factors: Optional twelve monthly seasonal factors
            condition: Optional whole-day sky condition that scales the
                seasonal estimate for hours without weather

        Returns:
            24 HourlyGeneration entries, hour 0 to 23

        Raises:
            ConfigurationError: If the panel configuration or the day
                condition is invalid
        """
        SolarForecaster.validate_panels(panels)

        if for_date is None:
            for_date = date.today()
        if daylight is None:
            daylight = SolarForecaster.daylight_for_date(for_date)
        if condition is not None:
            try:
                condition = DayCondition(condition)
            except ValueError:
                raise ConfigurationError(f"Unknown day condition '{condition}'") from None

        by_hour: dict[int, HourlyWeatherSample] = {}
        for sample in samples:
            if not 0 <= sample.hour < HOURS_PER_DAY:
                _LOGGER.debug("Ignoring weather sample for hour %s", sample.hour)
                continue
            by_hour.setdefault(sample.hour, sample)

        shapes = [SolarForecaster.clear_sky_shape(h, daylight) for h in range(HOURS_PER_DAY)]
        shape_total = sum(shapes)

        # Seasonal baseline spread over the clear-sky curve
        seasonal_daily_wh = (
            panels.rated_power_kwp * 1000.0
            * BASE_PEAK_SUN_HOURS
            * panels.system_efficiency
            * panels.orientation_factor
            * SolarForecaster.seasonal_modifier(for_date, monthly_factors)
        )
        rated_wh = panels.rated_power_kwp * 1000.0

        forecast: list[HourlyGeneration] = []
        for hour in range(HOURS_PER_DAY):
            sample = by_hour.get(hour)

            if sample is not None and _is_number(sample.irradiance_wm2):
                estimated = SolarForecaster.irradiance_to_wh(sample.irradiance_wm2, panels)
                source = GenerationSource.IRRADIANCE

            elif sample is not None and _is_number(sample.cloud_cover_pct):
                clearness = min(
                    MAX_CLEARNESS,
                    max(MIN_CLEARNESS, 1 - sample.cloud_cover_pct / 100.0),
                )
                irradiance = CLEAR_SKY_PEAK_IRRADIANCE_WM2 * shapes[hour] * clearness
                estimated = SolarForecaster.irradiance_to_wh(irradiance, panels)
                source = GenerationSource.CLOUD_COVER

            else:
                if shape_total > 0:
                    estimated = min(rated_wh, seasonal_daily_wh * shapes[hour] / shape_total)
                else:
                    estimated = 0.0
                source = GenerationSource.SEASONAL
                if condition is not None:
                    estimated *= DAY_CONDITION_FACTORS[condition.value]
                    source = GenerationSource.DAY_CONDITION

            forecast.append(HourlyGeneration(hour=hour, estimated_wh=estimated, source=source))

        seasonal_hours = sum(1 for item in forecast if item.low_confidence)
        if seasonal_hours:
            _LOGGER.warning(
                "Weather data missing for %d hours, using seasonal estimate (condition=%s)",
                seasonal_hours, condition.value if condition is not None else None,
            )

        _LOGGER.debug(
            "Solar forecast for %s: %.0f Wh total (sunrise %.2f, sunset %.2f)",
            for_date, sum(item.estimated_wh for item in forecast),
            daylight.sunrise_hour, daylight.sunset_hour,
        )
        return forecast
