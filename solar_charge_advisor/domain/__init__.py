"""Domain logic module - pure energy logic with no I/O.

All modules in this package contain pure functions that:
- Take inputs → produce outputs
- Have no side effects
- Keep no state between calls
- Are easy to unit test
"""

from .advisor import ChargingAdvisor
from .forecaster import (
    SolarForecaster,
    condition_for_wmo_code,
    orientation_factor_for_direction,
)
from .simulator import EnergySimulator
from .tariff import TariffResolver, parse_time

__all__ = [
    "ChargingAdvisor",
    "EnergySimulator",
    "SolarForecaster",
    "TariffResolver",
    "condition_for_wmo_code",
    "orientation_factor_for_direction",
    "parse_time",
]
