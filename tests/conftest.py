"""Fixtures for testing."""
import pytest

from solar_charge_advisor.domain import TariffResolver
from solar_charge_advisor.models import (
    BatteryConfig,
    HourlyGeneration,
    HouseholdProfile,
    PanelConfiguration,
    TariffPeriod,
)


@pytest.fixture
def make_generation():
    """Build 24 hourly generation entries from a {hour: Wh} mapping."""

    def _make(wh_by_hour=None):
        wh_by_hour = wh_by_hour or {}
        return [
            HourlyGeneration(hour=hour, estimated_wh=wh_by_hour.get(hour, 0.0))
            for hour in range(24)
        ]

    return _make


@pytest.fixture
def panels():
    """A 4 kWp south facing array."""
    return PanelConfiguration(rated_power_kwp=4.0, system_efficiency=0.85, orientation_factor=1.0)


@pytest.fixture
def no_battery():
    """Battery configuration meaning no battery installed."""
    return BatteryConfig(capacity_wh=0.0, max_charge_rate_wh=1000.0, max_discharge_rate_wh=1000.0)


@pytest.fixture
def no_household():
    """Household with no consumption."""
    return HouseholdProfile(avg_hourly_consumption_wh=0.0)


@pytest.fixture
def night_tariff():
    """Cheap 00:00-04:00 at 10p, 30p otherwise."""
    return TariffResolver([
        TariffPeriod(id="night", start_time="00:00", end_time="04:00", is_cheap=True,
                     rate_pence_per_kwh=10.0),
        TariffPeriod(id="day", start_time="04:00", end_time="00:00", is_cheap=False,
                     rate_pence_per_kwh=30.0),
    ])


@pytest.fixture
def ev_tariff():
    """Cheap 01:00-04:00 at 8p, 30p otherwise."""
    return TariffResolver([
        TariffPeriod(id="cheap", start_time="01:00", end_time="04:00", is_cheap=True,
                     rate_pence_per_kwh=8.0),
        TariffPeriod(id="standard", start_time="04:00", end_time="01:00", is_cheap=False,
                     rate_pence_per_kwh=30.0),
    ])


@pytest.fixture
def raw_settings():
    """Settings as a settings store would hand them over."""
    return {
        "total_kwp": 4.0,
        "system_efficiency": 0.85,
        "property_direction": "South",
        "battery_capacity_kwh": 10.0,
        "battery_max_charge_rate_kwh": 3.0,
        "battery_level_kwh": 5.0,
        "daily_consumption_kwh": 12.0,
    }


@pytest.fixture
def raw_tariff():
    """Tariff periods as a settings store would hand them over."""
    return [
        {"id": "offpeak", "name": "Off-peak", "start_time": "00:30", "end_time": "04:30",
         "is_cheap": True, "rate": 7.5},
        {"id": "peak", "name": "Peak", "start_time": "04:30", "end_time": "00:30",
         "is_cheap": False, "rate": 28.0},
    ]
