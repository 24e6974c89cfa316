"""Data models for the Solar Charge Advisor."""

from .data_models import (
    LOW_CONFIDENCE_DAY_CONDITION,
    LOW_CONFIDENCE_RATE_UNKNOWN,
    LOW_CONFIDENCE_SEASONAL,
    BatteryConfig,
    ChargingAdvice,
    CheapWindow,
    DayCondition,
    DaylightWindow,
    EVRequirement,
    GenerationSource,
    HouseholdProfile,
    HourlyGeneration,
    HourlyLedgerEntry,
    HourlyRate,
    HourlyWeatherSample,
    PanelConfiguration,
    Recommendation,
    SimulationResult,
    TariffPeriod,
)

__all__ = [
    "LOW_CONFIDENCE_DAY_CONDITION",
    "LOW_CONFIDENCE_RATE_UNKNOWN",
    "LOW_CONFIDENCE_SEASONAL",
    "BatteryConfig",
    "ChargingAdvice",
    "CheapWindow",
    "DayCondition",
    "DaylightWindow",
    "EVRequirement",
    "GenerationSource",
    "HouseholdProfile",
    "HourlyGeneration",
    "HourlyLedgerEntry",
    "HourlyRate",
    "HourlyWeatherSample",
    "PanelConfiguration",
    "Recommendation",
    "SimulationResult",
    "TariffPeriod",
]
