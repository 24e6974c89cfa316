"""Data models for the Solar Charge Advisor.

Energy values are Wh, money is pence and rates are pence per kWh.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..const import DEFAULT_ORIENTATION_FACTOR, DEFAULT_SYSTEM_EFFICIENCY, HOURS_PER_DAY


class GenerationSource(str, Enum):
    """Where an hourly generation estimate came from."""

    IRRADIANCE = "irradiance"
    CLOUD_COVER = "cloud_cover"
    SEASONAL = "seasonal"  # Last resort, low confidence
    DAY_CONDITION = "day_condition"  # Seasonal scaled by a whole-day condition


class DayCondition(str, Enum):
    """Whole-day sky condition entered by hand or derived from a weather code."""

    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    OVERCAST = "overcast"
    RAINY = "rainy"


class Recommendation(str, Enum):
    """Charging recommendation."""

    CHARGE_NOW_FROM_GRID = "ChargeNowFromGrid"
    WAIT_FOR_CHEAP_WINDOW = "WaitForCheapWindow"
    NO_ACTION_NEEDED = "NoActionNeeded"
    INSUFFICIENT_TIME_OR_CAPACITY = "InsufficientTimeOrCapacity"


# Low confidence reasons carried on ledger entries
LOW_CONFIDENCE_SEASONAL = "seasonal_estimate"
LOW_CONFIDENCE_DAY_CONDITION = "day_condition_estimate"
LOW_CONFIDENCE_RATE_UNKNOWN = "rate_unknown"


@dataclass(frozen=True)
class HourlyWeatherSample:
    """One hour of weather as delivered by the weather collaborator."""

    hour: int
    cloud_cover_pct: float | None = None
    irradiance_wm2: float | None = None


@dataclass
class PanelConfiguration:
    """Solar array configuration."""

    rated_power_kwp: float
    system_efficiency: float = DEFAULT_SYSTEM_EFFICIENCY
    orientation_factor: float = DEFAULT_ORIENTATION_FACTOR


@dataclass(frozen=True)
class DaylightWindow:
    """Sunrise and sunset as fractional hours of the day."""

    sunrise_hour: float
    sunset_hour: float

    @property
    def length_hours(self) -> float:
        """Hours of daylight."""
        return max(0.0, self.sunset_hour - self.sunrise_hour)

    @property
    def solar_noon(self) -> float:
        """Midpoint between sunrise and sunset."""
        return self.sunrise_hour + self.length_hours / 2


@dataclass
class HourlyGeneration:
    """Estimated solar generation for one hour."""

    hour: int
    estimated_wh: float
    source: GenerationSource = GenerationSource.IRRADIANCE

    @property
    def low_confidence(self) -> bool:
        """True when the estimate came from the seasonal fallback."""
        return self.source in (GenerationSource.SEASONAL, GenerationSource.DAY_CONDITION)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hour": self.hour,
            "estimated_wh": self.estimated_wh,
            "source": self.source.value,
            "low_confidence": self.low_confidence,
        }


@dataclass
class TariffPeriod:
    """A named time-of-day tariff period."""

    id: str
    start_time: str  # HH:MM
    end_time: str  # HH:MM, exclusive, may wrap past midnight
    is_cheap: bool
    rate_pence_per_kwh: float | None = None
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary using the settings keys."""
        return {
            "id": self.id,
            "name": self.name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_cheap": self.is_cheap,
            "rate": self.rate_pence_per_kwh,
        }


@dataclass(frozen=True)
class HourlyRate:
    """Tariff resolved for a single hour."""

    rate_pence_per_kwh: float | None
    is_cheap: bool
    period_id: str | None = None

    @property
    def is_known(self) -> bool:
        """True when a rate is defined for the hour."""
        return self.rate_pence_per_kwh is not None


@dataclass(frozen=True)
class CheapWindow:
    """Contiguous run of cheap hours.

    end_hour is exclusive. end_hour <= start_hour means the window wraps
    past midnight; a full-day window is start_hour=0, end_hour=24.
    """

    start_hour: int
    end_hour: int
    rate_pence_per_kwh: float | None = None

    @property
    def duration_hours(self) -> int:
        """Number of hours in the window."""
        if self.end_hour > self.start_hour:
            return self.end_hour - self.start_hour
        return HOURS_PER_DAY - self.start_hour + self.end_hour

    def hours(self) -> list[int]:
        """Hours of the window in chronological order."""
        return [
            (self.start_hour + offset) % HOURS_PER_DAY
            for offset in range(self.duration_hours)
        ]

    def contains(self, hour: int) -> bool:
        """Check if an hour falls inside the window."""
        return hour % HOURS_PER_DAY in self.hours()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "duration_hours": self.duration_hours,
            "rate_pence_per_kwh": self.rate_pence_per_kwh,
        }


@dataclass
class HouseholdProfile:
    """Household consumption.

    The flat average applies unless a 24-value profile is supplied.
    """

    avg_hourly_consumption_wh: float
    hourly_profile_wh: list[float] | None = None

    def demand_for_hour(self, hour: int) -> float:
        """Get household demand for an hour."""
        if self.hourly_profile_wh:
            return self.hourly_profile_wh[hour]
        return self.avg_hourly_consumption_wh


@dataclass
class EVRequirement:
    """Energy an EV needs before a deadline."""

    energy_needed_wh: float
    deadline_hour: int
    max_charge_rate_wh: float


@dataclass
class BatteryConfig:
    """Home battery configuration. capacity_wh = 0 means no battery."""

    capacity_wh: float
    max_charge_rate_wh: float
    max_discharge_rate_wh: float
    initial_soc_wh: float = 0.0
    grid_charge_target_pct: float = 100.0

    @property
    def has_battery(self) -> bool:
        """Check if a battery is installed."""
        return self.capacity_wh > 0

    @property
    def grid_charge_target_wh(self) -> float:
        """Highest SoC grid charging may reach."""
        return self.capacity_wh * self.grid_charge_target_pct / 100.0


@dataclass
class HourlyLedgerEntry:
    """Energy flows for one simulated hour."""

    hour: int
    solar_wh: float
    household_demand_wh: float
    ev_demand_wh: float
    battery_soc_start_wh: float
    battery_soc_end_wh: float
    grid_import_wh: float
    grid_export_wh: float
    solar_to_battery: float
    grid_to_battery: float
    cost_pence: float

    # Per-sink split
    solar_to_household: float = 0.0
    solar_to_ev: float = 0.0
    battery_to_household: float = 0.0
    battery_to_ev: float = 0.0
    grid_to_household: float = 0.0
    grid_to_ev: float = 0.0

    # Tariff context
    rate_pence_per_kwh: float | None = None
    in_cheap_window: bool = False

    low_confidence_reasons: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def discharge_wh(self) -> float:
        """Energy drawn from the battery this hour."""
        return self.battery_to_household + self.battery_to_ev

    @property
    def low_confidence(self) -> bool:
        """True when the entry rests on degraded input."""
        return bool(self.low_confidence_reasons)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for charts and logging."""
        return {
            "hour": self.hour,
            "solar_wh": self.solar_wh,
            "household_demand_wh": self.household_demand_wh,
            "ev_demand_wh": self.ev_demand_wh,
            "battery_soc_start_wh": self.battery_soc_start_wh,
            "battery_soc_end_wh": self.battery_soc_end_wh,
            "grid_import_wh": self.grid_import_wh,
            "grid_export_wh": self.grid_export_wh,
            "solar_to_battery": self.solar_to_battery,
            "grid_to_battery": self.grid_to_battery,
            "discharge_wh": self.discharge_wh,
            "cost_pence": self.cost_pence,
            "rate_pence_per_kwh": self.rate_pence_per_kwh,
            "in_cheap_window": self.in_cheap_window,
            "low_confidence_reasons": list(self.low_confidence_reasons),
            "diagnostics": list(self.diagnostics),
        }


@dataclass
class SimulationResult:
    """Full-day ledger of one simulation run."""

    entries: list[HourlyLedgerEntry]
    capacity_wh: float
    cheap_window: CheapWindow | None = None
    ev_delivered_wh: float = 0.0
    ev_remaining_wh: float = 0.0

    @property
    def total_cost_pence(self) -> float:
        """Total grid cost of the day."""
        return sum(entry.cost_pence for entry in self.entries)

    @property
    def total_grid_import_wh(self) -> float:
        """Total energy imported from the grid."""
        return sum(entry.grid_import_wh for entry in self.entries)

    @property
    def total_grid_export_wh(self) -> float:
        """Total solar energy exported."""
        return sum(entry.grid_export_wh for entry in self.entries)

    @property
    def total_grid_to_battery_wh(self) -> float:
        """Total grid energy stored in the battery."""
        return sum(entry.grid_to_battery for entry in self.entries)

    @property
    def final_soc_wh(self) -> float:
        """Battery state at the end of the day."""
        if not self.entries:
            return 0.0
        return self.entries[-1].battery_soc_end_wh

    @property
    def low_confidence_reasons(self) -> list[str]:
        """Distinct low confidence reasons across the ledger."""
        reasons: list[str] = []
        for entry in self.entries:
            for reason in entry.low_confidence_reasons:
                if reason not in reasons:
                    reasons.append(reason)
        return reasons

    @property
    def diagnostics(self) -> list[str]:
        """All diagnostics recorded during the run."""
        return [
            f"hour {entry.hour}: {message}"
            for entry in self.entries
            for message in entry.diagnostics
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "capacity_wh": self.capacity_wh,
            "cheap_window": self.cheap_window.to_dict() if self.cheap_window else None,
            "ev_delivered_wh": self.ev_delivered_wh,
            "ev_remaining_wh": self.ev_remaining_wh,
            "total_cost_pence": self.total_cost_pence,
            "total_grid_import_wh": self.total_grid_import_wh,
            "total_grid_export_wh": self.total_grid_export_wh,
            "final_soc_wh": self.final_soc_wh,
        }


@dataclass
class ChargingAdvice:
    """Recommendation derived from one simulation run."""

    recommendation: Recommendation
    reason: str
    window_start_hour: int | None = None
    window_end_hour: int | None = None
    estimated_cost_pence: float | None = None
    rate_basis_pence_per_kwh: float | None = None
    energy_wh: float = 0.0
    potential_savings_pence: float | None = None
    low_confidence: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "recommendation": self.recommendation.value,
            "reason": self.reason,
            "window_start_hour": self.window_start_hour,
            "window_end_hour": self.window_end_hour,
            "estimated_cost_pence": self.estimated_cost_pence,
            "rate_basis_pence_per_kwh": self.rate_basis_pence_per_kwh,
            "energy_wh": self.energy_wh,
            "potential_savings_pence": self.potential_savings_pence,
            "low_confidence": self.low_confidence,
        }
