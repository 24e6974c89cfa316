"""Solar Charge Advisor.

Forecasts household solar generation, simulates a day of energy flows
between solar, battery, EV and grid, and advises when to charge from the
grid under a time-of-day tariff.
"""

from .config import AdvisorSettings, load_settings, load_tariff_periods, load_weather_samples
from .domain import ChargingAdvisor, EnergySimulator, SolarForecaster, TariffResolver
from .exceptions import ConfigurationError, InvariantViolation, SolarAdvisorError
from .services import PlanningOutcome, PlanningService

__version__ = "0.1.0"

__all__ = [
    "AdvisorSettings",
    "ChargingAdvisor",
    "ConfigurationError",
    "EnergySimulator",
    "InvariantViolation",
    "PlanningOutcome",
    "PlanningService",
    "SolarAdvisorError",
    "SolarForecaster",
    "TariffResolver",
    "load_settings",
    "load_tariff_periods",
    "load_weather_samples",
]
