"""Settings validation for the Solar Charge Advisor.

Raw settings arrive as plain dictionaries (kWh units, HH:MM times) from
whatever stores them. The schemas here validate and coerce them, and the
loaders turn them into the typed records the domain layer works with
(Wh units, whole hours).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

import voluptuous as vol

from .const import (
    CONF_BATTERY_CAPACITY,
    CONF_BATTERY_LEVEL,
    CONF_BATTERY_MAX_CHARGE_RATE,
    CONF_BATTERY_MAX_DISCHARGE_RATE,
    CONF_DAILY_CONSUMPTION,
    CONF_DAY_CONDITION,
    CONF_EV_CHARGE_BY_TIME,
    CONF_EV_CHARGE_REQUIRED,
    CONF_EV_MAX_CHARGE_RATE,
    CONF_HOURLY_CONSUMPTION,
    CONF_HOURLY_USAGE_PROFILE,
    CONF_LOW_SOC_THRESHOLD,
    CONF_MONTHLY_FACTORS,
    CONF_ORIENTATION_FACTOR,
    CONF_OVERNIGHT_CHARGE_PERCENT,
    CONF_PANEL_COUNT,
    CONF_PANEL_WATTS,
    CONF_PROPERTY_DIRECTION,
    CONF_SYSTEM_EFFICIENCY,
    CONF_TARIFF_END,
    CONF_TARIFF_ID,
    CONF_TARIFF_IS_CHEAP,
    CONF_TARIFF_NAME,
    CONF_TARIFF_RATE,
    CONF_TARIFF_START,
    CONF_TOTAL_KWP,
    CONF_WEATHER_CLOUD_COVER,
    CONF_WEATHER_CODE,
    CONF_WEATHER_HOUR,
    CONF_WEATHER_IRRADIANCE,
    DEFAULT_BATTERY_RATE_KWH,
    DEFAULT_LOW_SOC_THRESHOLD,
    DEFAULT_OVERNIGHT_CHARGE_PERCENT,
    DEFAULT_PROPERTY_DIRECTION,
    DEFAULT_SYSTEM_EFFICIENCY,
    HOURS_PER_DAY,
    PROPERTY_DIRECTION_FACTORS,
)
from .domain.forecaster import condition_for_wmo_code, orientation_factor_for_direction
from .domain.tariff import parse_time
from .exceptions import ConfigurationError
from .models import (
    BatteryConfig,
    DayCondition,
    EVRequirement,
    HouseholdProfile,
    HourlyWeatherSample,
    PanelConfiguration,
    TariffPeriod,
)

_LOGGER = logging.getLogger(__name__)


def _time_string(value: Any) -> str:
    """Validate an HH:MM string."""
    try:
        parse_time(str(value))
    except ConfigurationError as ex:
        raise vol.Invalid(str(ex)) from ex
    return str(value)


_POSITIVE = vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))
_NON_NEGATIVE = vol.All(vol.Coerce(float), vol.Range(min=0))
_PERCENT = vol.All(vol.Coerce(float), vol.Range(min=0, max=100))
_OPTIONAL_NUMBER = vol.Any(None, vol.Coerce(float))

SETTINGS_SCHEMA = vol.Schema(
    {
        # Panels
        vol.Optional(CONF_TOTAL_KWP): _POSITIVE,
        vol.Optional(CONF_PANEL_COUNT): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(CONF_PANEL_WATTS): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(CONF_SYSTEM_EFFICIENCY, default=DEFAULT_SYSTEM_EFFICIENCY): vol.All(
            vol.Coerce(float), vol.Range(min=0.1, max=1.0)
        ),
        vol.Optional(CONF_PROPERTY_DIRECTION, default=DEFAULT_PROPERTY_DIRECTION): vol.In(
            list(PROPERTY_DIRECTION_FACTORS)
        ),
        vol.Optional(CONF_ORIENTATION_FACTOR): vol.All(
            vol.Coerce(float), vol.Range(min=0, max=1, min_included=False)
        ),
        vol.Optional(CONF_MONTHLY_FACTORS): vol.All(
            [vol.All(vol.Coerce(float), vol.Range(min=0, max=2))],
            vol.Length(min=12, max=12),
        ),
        # Battery
        vol.Optional(CONF_BATTERY_CAPACITY, default=0.0): _NON_NEGATIVE,
        vol.Optional(CONF_BATTERY_MAX_CHARGE_RATE): _POSITIVE,
        vol.Optional(CONF_BATTERY_MAX_DISCHARGE_RATE): _POSITIVE,
        vol.Optional(CONF_BATTERY_LEVEL, default=0.0): _NON_NEGATIVE,
        vol.Optional(CONF_OVERNIGHT_CHARGE_PERCENT, default=DEFAULT_OVERNIGHT_CHARGE_PERCENT): _PERCENT,
        # Household
        vol.Optional(CONF_DAILY_CONSUMPTION): _NON_NEGATIVE,
        vol.Optional(CONF_HOURLY_CONSUMPTION): _NON_NEGATIVE,
        vol.Optional(CONF_HOURLY_USAGE_PROFILE): vol.All(
            [_NON_NEGATIVE], vol.Length(min=HOURS_PER_DAY, max=HOURS_PER_DAY)
        ),
        # EV
        vol.Optional(CONF_EV_CHARGE_REQUIRED, default=0.0): _NON_NEGATIVE,
        vol.Optional(CONF_EV_CHARGE_BY_TIME, default=""): vol.Any("", _time_string),
        vol.Optional(CONF_EV_MAX_CHARGE_RATE): _POSITIVE,
        # Advisor
        vol.Optional(CONF_LOW_SOC_THRESHOLD, default=DEFAULT_LOW_SOC_THRESHOLD): _PERCENT,
        # Manual forecast
        vol.Optional(CONF_DAY_CONDITION, default=None): vol.Any(
            None, vol.In([condition.value for condition in DayCondition])
        ),
        vol.Optional(CONF_WEATHER_CODE, default=None): vol.Any(None, vol.Coerce(int)),
    },
    extra=vol.REMOVE_EXTRA,
)

TARIFF_PERIOD_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_TARIFF_ID): vol.Coerce(str),
        vol.Optional(CONF_TARIFF_NAME, default=""): vol.Coerce(str),
        vol.Required(CONF_TARIFF_START): _time_string,
        vol.Required(CONF_TARIFF_END): _time_string,
        vol.Required(CONF_TARIFF_IS_CHEAP): vol.Boolean(),
        vol.Optional(CONF_TARIFF_RATE, default=None): vol.Any(None, _NON_NEGATIVE),
    },
    extra=vol.REMOVE_EXTRA,
)

WEATHER_SAMPLE_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_WEATHER_HOUR): vol.All(
            vol.Coerce(int), vol.Range(min=0, max=HOURS_PER_DAY - 1)
        ),
        vol.Optional(CONF_WEATHER_CLOUD_COVER, default=None): _OPTIONAL_NUMBER,
        vol.Optional(CONF_WEATHER_IRRADIANCE, default=None): _OPTIONAL_NUMBER,
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass
class AdvisorSettings:
    """Validated settings for one planning cycle."""

    panels: PanelConfiguration
    battery: BatteryConfig
    household: HouseholdProfile
    ev: EVRequirement | None = None
    monthly_factors: list[float] | None = None
    low_soc_threshold_pct: float = DEFAULT_LOW_SOC_THRESHOLD
    day_condition: DayCondition | None = None


def _validate(schema: vol.Schema, data: Any, what: str) -> dict[str, Any]:
    try:
        return schema(data)
    except vol.Invalid as ex:
        raise ConfigurationError(f"Invalid {what}: {ex}") from ex


def _panels_from(conf: dict[str, Any]) -> PanelConfiguration:
    if CONF_TOTAL_KWP in conf:
        kwp = conf[CONF_TOTAL_KWP]
    elif CONF_PANEL_COUNT in conf and CONF_PANEL_WATTS in conf:
        kwp = conf[CONF_PANEL_COUNT] * conf[CONF_PANEL_WATTS] / 1000.0
    else:
        raise ConfigurationError(
            "Total system power (kWp) or panel count and panel watts must be set"
        )

    if CONF_ORIENTATION_FACTOR in conf:
        orientation = conf[CONF_ORIENTATION_FACTOR]
    else:
        orientation = orientation_factor_for_direction(conf[CONF_PROPERTY_DIRECTION])

    return PanelConfiguration(
        rated_power_kwp=kwp,
        system_efficiency=conf[CONF_SYSTEM_EFFICIENCY],
        orientation_factor=orientation,
    )


def _battery_from(conf: dict[str, Any]) -> BatteryConfig:
    capacity_kwh = conf[CONF_BATTERY_CAPACITY]
    # Without a configured rate, assume the battery can fill in one hour
    default_rate = capacity_kwh if capacity_kwh > 0 else DEFAULT_BATTERY_RATE_KWH
    charge_rate = conf.get(CONF_BATTERY_MAX_CHARGE_RATE, default_rate)
    discharge_rate = conf.get(CONF_BATTERY_MAX_DISCHARGE_RATE, charge_rate)

    level_kwh = conf[CONF_BATTERY_LEVEL]
    if level_kwh > capacity_kwh:
        raise ConfigurationError(
            f"Battery level {level_kwh} kWh exceeds capacity {capacity_kwh} kWh"
        )

    return BatteryConfig(
        capacity_wh=capacity_kwh * 1000.0,
        max_charge_rate_wh=charge_rate * 1000.0,
        max_discharge_rate_wh=discharge_rate * 1000.0,
        initial_soc_wh=level_kwh * 1000.0,
        grid_charge_target_pct=conf[CONF_OVERNIGHT_CHARGE_PERCENT],
    )


def _household_from(conf: dict[str, Any]) -> HouseholdProfile:
    profile = conf.get(CONF_HOURLY_USAGE_PROFILE)
    if profile is not None:
        profile_wh = [value * 1000.0 for value in profile]
        return HouseholdProfile(
            avg_hourly_consumption_wh=sum(profile_wh) / HOURS_PER_DAY,
            hourly_profile_wh=profile_wh,
        )

    if CONF_HOURLY_CONSUMPTION in conf:
        hourly_kwh = conf[CONF_HOURLY_CONSUMPTION]
    elif CONF_DAILY_CONSUMPTION in conf:
        hourly_kwh = conf[CONF_DAILY_CONSUMPTION] / HOURS_PER_DAY
    else:
        raise ConfigurationError(
            "Household consumption must be set (hourly average, daily total or hourly profile)"
        )
    return HouseholdProfile(avg_hourly_consumption_wh=hourly_kwh * 1000.0)


def _ev_from(conf: dict[str, Any]) -> EVRequirement | None:
    required_kwh = conf[CONF_EV_CHARGE_REQUIRED]
    if required_kwh <= 0:
        return None

    by_time = conf[CONF_EV_CHARGE_BY_TIME]
    if not by_time:
        raise ConfigurationError("EV charge-by time must be set when EV charge is required")
    if CONF_EV_MAX_CHARGE_RATE not in conf:
        raise ConfigurationError("EV max charge rate must be set when EV charge is required")

    return EVRequirement(
        energy_needed_wh=required_kwh * 1000.0,
        deadline_hour=parse_time(by_time) // 60,
        max_charge_rate_wh=conf[CONF_EV_MAX_CHARGE_RATE] * 1000.0,
    )


def _day_condition_from(conf: dict[str, Any]) -> DayCondition | None:
    if conf[CONF_DAY_CONDITION] is not None:
        return DayCondition(conf[CONF_DAY_CONDITION])
    if conf[CONF_WEATHER_CODE] is not None:
        return condition_for_wmo_code(conf[CONF_WEATHER_CODE])
    return None


def load_settings(data: dict[str, Any]) -> AdvisorSettings:
    """Validate raw settings and build typed configuration.

    Args:
        data: Settings dictionary (kWh units, HH:MM times)

    Returns:
        AdvisorSettings

    Raises:
        ConfigurationError: If the settings are invalid or incomplete
    """
    conf = _validate(SETTINGS_SCHEMA, data, "settings")

    settings = AdvisorSettings(
        panels=_panels_from(conf),
        battery=_battery_from(conf),
        household=_household_from(conf),
        ev=_ev_from(conf),
        monthly_factors=conf.get(CONF_MONTHLY_FACTORS),
        low_soc_threshold_pct=conf[CONF_LOW_SOC_THRESHOLD],
        day_condition=_day_condition_from(conf),
    )
    _LOGGER.debug("Loaded settings: %s", settings)
    return settings


def load_tariff_periods(data: Iterable[dict[str, Any]]) -> list[TariffPeriod]:
    """Validate raw tariff periods.

    Periods without an id get their position in the list.

    Raises:
        ConfigurationError: If any period is invalid
    """
    periods: list[TariffPeriod] = []
    for index, raw in enumerate(data):
        conf = _validate(TARIFF_PERIOD_SCHEMA, raw, f"tariff period #{index}")
        periods.append(TariffPeriod(
            id=conf.get(CONF_TARIFF_ID, str(index)),
            name=conf[CONF_TARIFF_NAME],
            start_time=conf[CONF_TARIFF_START],
            end_time=conf[CONF_TARIFF_END],
            is_cheap=conf[CONF_TARIFF_IS_CHEAP],
            rate_pence_per_kwh=conf[CONF_TARIFF_RATE],
        ))
    return periods


def load_weather_samples(data: Iterable[dict[str, Any]]) -> list[HourlyWeatherSample]:
    """Validate raw hourly weather.

    Malformed samples are dropped with a warning; the forecaster degrades
    for the hours they leave empty.
    """
    samples: list[HourlyWeatherSample] = []
    for index, raw in enumerate(data):
        try:
            conf = WEATHER_SAMPLE_SCHEMA(raw)
        except vol.Invalid as ex:
            _LOGGER.warning("Dropping weather sample #%d: %s", index, ex)
            continue

        cloud = conf[CONF_WEATHER_CLOUD_COVER]
        if cloud is not None:
            cloud = min(100.0, max(0.0, cloud))
        samples.append(HourlyWeatherSample(
            hour=conf[CONF_WEATHER_HOUR],
            cloud_cover_pct=cloud,
            irradiance_wm2=conf[CONF_WEATHER_IRRADIANCE],
        ))
    return samples
