"""Hour-by-hour energy balance simulation.

Each hour runs the same waterfall over a small context record:
1. Household demand: solar, then battery, then grid
2. EV demand before its deadline: leftover solar, then battery, then grid
3. Leftover solar charges the battery, the rest is exported
4. Inside the cheap window the battery is topped up from the grid, up
   to the charge rate left after solar and the grid charge target
5. Grid import is costed at the hour's rate

It has NO side effects and keeps no state between calls, so the same
inputs always give the same ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..const import ENERGY_EPSILON, HOURS_PER_DAY
from ..exceptions import ConfigurationError, InvariantViolation
from ..models import (
    LOW_CONFIDENCE_DAY_CONDITION,
    LOW_CONFIDENCE_RATE_UNKNOWN,
    LOW_CONFIDENCE_SEASONAL,
    BatteryConfig,
    CheapWindow,
    EVRequirement,
    GenerationSource,
    HouseholdProfile,
    HourlyGeneration,
    HourlyLedgerEntry,
    SimulationResult,
)
from .tariff import TariffResolver

_LOGGER = logging.getLogger(__name__)


@dataclass
class _HourContext:
    """Running totals for one simulated hour."""

    hour: int
    soc: float
    solar_left: float
    discharge_budget: float
    charge_budget: float

    solar_to_household: float = 0.0
    battery_to_household: float = 0.0
    grid_to_household: float = 0.0
    solar_to_ev: float = 0.0
    battery_to_ev: float = 0.0
    grid_to_ev: float = 0.0
    solar_to_battery: float = 0.0
    grid_to_battery: float = 0.0

    def draw(self, demand: float) -> tuple[float, float, float]:
        """Meet a demand from solar, then battery, then grid.

        Returns:
            Tuple of (from_solar, from_battery, from_grid)
        """
        from_solar = min(self.solar_left, demand)
        self.solar_left -= from_solar

        from_battery = min(demand - from_solar, self.discharge_budget)
        self.discharge_budget -= from_battery
        self.soc -= from_battery

        from_grid = demand - from_solar - from_battery
        return from_solar, from_battery, from_grid

    def net_round_trip(self) -> None:
        """Net same-hour battery discharge against grid charging.

        Energy the battery gives out in an hour it is also topped up from
        the grid is booked as direct grid supply. Grid import and the SoC
        at the end of the hour are unchanged.
        """
        to_household = min(self.battery_to_household, self.grid_to_battery)
        self.battery_to_household -= to_household
        self.grid_to_household += to_household
        self.grid_to_battery -= to_household

        to_ev = min(self.battery_to_ev, self.grid_to_battery)
        self.battery_to_ev -= to_ev
        self.grid_to_ev += to_ev
        self.grid_to_battery -= to_ev


class EnergySimulator:
    """Daily energy balance simulator."""

    @staticmethod
    def validate_inputs(
        generation: Sequence[HourlyGeneration],
        household: HouseholdProfile,
        battery: BatteryConfig,
        ev: EVRequirement | None = None,
    ) -> None:
        """Validate simulation inputs.

        Raises:
            ConfigurationError: On any invalid parameter
        """
        hours = sorted(item.hour for item in generation)
        if hours != list(range(HOURS_PER_DAY)):
            raise ConfigurationError(
                f"Generation must cover hours 0-23 exactly once, got {len(generation)} entries"
            )

        if battery.capacity_wh < 0:
            raise ConfigurationError(
                f"Battery capacity cannot be negative, got {battery.capacity_wh} Wh"
            )
        if not battery.max_charge_rate_wh > 0:
            raise ConfigurationError(
                f"Battery max charge rate must be positive, got {battery.max_charge_rate_wh} Wh"
            )
        if not battery.max_discharge_rate_wh > 0:
            raise ConfigurationError(
                f"Battery max discharge rate must be positive, got {battery.max_discharge_rate_wh} Wh"
            )
        if not 0 <= battery.initial_soc_wh <= battery.capacity_wh:
            raise ConfigurationError(
                f"Initial battery level {battery.initial_soc_wh} Wh is outside "
                f"[0, {battery.capacity_wh}]"
            )
        if not 0 <= battery.grid_charge_target_pct <= 100:
            raise ConfigurationError(
                f"Grid charge target must be 0-100%, got {battery.grid_charge_target_pct}"
            )

        if household.avg_hourly_consumption_wh < 0:
            raise ConfigurationError("Household consumption cannot be negative")
        if household.hourly_profile_wh is not None:
            if len(household.hourly_profile_wh) != HOURS_PER_DAY:
                raise ConfigurationError("Hourly usage profile must have 24 values")
            if any(value < 0 for value in household.hourly_profile_wh):
                raise ConfigurationError("Hourly usage profile cannot contain negative values")

        if ev is not None:
            if not ev.energy_needed_wh > 0:
                raise ConfigurationError(
                    f"EV energy needed must be positive, got {ev.energy_needed_wh} Wh"
                )
            if not 0 <= ev.deadline_hour < HOURS_PER_DAY:
                raise ConfigurationError(
                    f"EV deadline hour must be 0-23, got {ev.deadline_hour}"
                )
            if not ev.max_charge_rate_wh > 0:
                raise ConfigurationError(
                    f"EV max charge rate must be positive, got {ev.max_charge_rate_wh} Wh"
                )

    @staticmethod
    def check_invariants(
        entry: HourlyLedgerEntry,
        capacity_wh: float,
        strict: bool = False,
    ) -> HourlyLedgerEntry:
        """Verify a ledger entry.

        In strict mode a broken invariant raises. Otherwise the state of
        charge is clamped into [0, capacity] and a diagnostic is recorded.

        Raises:
            InvariantViolation: In strict mode, on the first broken invariant
        """
        problems: list[str] = []

        flows = {
            "solar_to_household": entry.solar_to_household,
            "solar_to_ev": entry.solar_to_ev,
            "solar_to_battery": entry.solar_to_battery,
            "battery_to_household": entry.battery_to_household,
            "battery_to_ev": entry.battery_to_ev,
            "grid_to_household": entry.grid_to_household,
            "grid_to_ev": entry.grid_to_ev,
            "grid_to_battery": entry.grid_to_battery,
            "grid_export_wh": entry.grid_export_wh,
        }
        for name, value in flows.items():
            if value < -ENERGY_EPSILON:
                problems.append(f"negative energy flow {name}={value:.6f}")

        expected_end = (
            entry.battery_soc_start_wh
            + entry.solar_to_battery
            + entry.grid_to_battery
            - entry.discharge_wh
        )
        if abs(expected_end - entry.battery_soc_end_wh) > ENERGY_EPSILON:
            problems.append(
                f"SoC does not balance: expected {expected_end:.6f}, "
                f"got {entry.battery_soc_end_wh:.6f}"
            )

        solar_used = (
            entry.solar_to_household + entry.solar_to_ev
            + entry.solar_to_battery + entry.grid_export_wh
        )
        if abs(solar_used - entry.solar_wh) > ENERGY_EPSILON:
            problems.append(
                f"solar not conserved: {entry.solar_wh:.6f} in, {solar_used:.6f} allocated"
            )

        if not -ENERGY_EPSILON <= entry.battery_soc_end_wh <= capacity_wh + ENERGY_EPSILON:
            problems.append(
                f"SoC {entry.battery_soc_end_wh:.6f} outside [0, {capacity_wh}]"
            )

        if problems and strict:
            raise InvariantViolation(entry.hour, "; ".join(problems))

        for problem in problems:
            _LOGGER.warning("Ledger invariant broken at hour %d: %s", entry.hour, problem)
            entry.diagnostics.append(problem)

        entry.battery_soc_end_wh = min(capacity_wh, max(0.0, entry.battery_soc_end_wh))
        return entry

    @staticmethod
    def _run_day(
        generation: Sequence[HourlyGeneration],
        household: HouseholdProfile,
        battery: BatteryConfig,
        tariff: TariffResolver,
        ev: EVRequirement | None,
        window: CheapWindow | None,
        strict: bool,
    ) -> tuple[list[HourlyLedgerEntry], float]:
        """Simulate one day.

        Returns:
            Tuple of (ledger entries, EV energy still missing)
        """
        by_hour = {item.hour: item for item in generation}
        capacity = battery.capacity_wh if battery.has_battery else 0.0
        soc = battery.initial_soc_wh if battery.has_battery else 0.0
        ev_remaining = ev.energy_needed_wh if ev is not None else 0.0

        entries: list[HourlyLedgerEntry] = []
        for hour in range(HOURS_PER_DAY):
            produced = by_hour[hour]
            solar = max(0.0, produced.estimated_wh)
            soc_start = soc

            ctx = _HourContext(
                hour=hour,
                soc=soc,
                solar_left=solar,
                discharge_budget=min(battery.max_discharge_rate_wh, soc) if capacity else 0.0,
                charge_budget=battery.max_charge_rate_wh if capacity else 0.0,
            )

            # 1. Household
            household_demand = household.demand_for_hour(hour)
            (
                ctx.solar_to_household,
                ctx.battery_to_household,
                ctx.grid_to_household,
            ) = ctx.draw(household_demand)

            # 2. EV
            ev_demand = 0.0
            if ev is not None and hour < ev.deadline_hour and ev_remaining > ENERGY_EPSILON:
                ev_demand = min(ev_remaining, ev.max_charge_rate_wh)
                ctx.solar_to_ev, ctx.battery_to_ev, ctx.grid_to_ev = ctx.draw(ev_demand)
                ev_remaining = max(0.0, ev_remaining - ev_demand)

            # 3. Leftover solar into the battery, rest exported
            ctx.solar_to_battery = min(ctx.solar_left, ctx.charge_budget, max(0.0, capacity - ctx.soc))
            ctx.solar_left -= ctx.solar_to_battery
            ctx.charge_budget -= ctx.solar_to_battery
            ctx.soc += ctx.solar_to_battery
            grid_export = ctx.solar_left

            # 4. Cheap window top-up
            in_window = window is not None and window.contains(hour)
            if capacity and in_window:
                headroom = max(0.0, min(capacity, battery.grid_charge_target_wh) - ctx.soc)
                ctx.grid_to_battery = min(ctx.charge_budget, headroom)
                ctx.charge_budget -= ctx.grid_to_battery
                ctx.soc += ctx.grid_to_battery
                ctx.net_round_trip()

            # 5. Cost
            grid_import = ctx.grid_to_household + ctx.grid_to_ev + ctx.grid_to_battery
            rate = tariff.rate_for_hour(hour)
            reasons: list[str] = []
            if produced.source == GenerationSource.DAY_CONDITION:
                reasons.append(LOW_CONFIDENCE_DAY_CONDITION)
            elif produced.low_confidence:
                reasons.append(LOW_CONFIDENCE_SEASONAL)
            if rate.is_known:
                cost = grid_import / 1000.0 * rate.rate_pence_per_kwh
            else:
                cost = 0.0
                reasons.append(LOW_CONFIDENCE_RATE_UNKNOWN)

            entry = HourlyLedgerEntry(
                hour=hour,
                solar_wh=solar,
                household_demand_wh=household_demand,
                ev_demand_wh=ev_demand,
                battery_soc_start_wh=soc_start,
                battery_soc_end_wh=ctx.soc,
                grid_import_wh=grid_import,
                grid_export_wh=grid_export,
                solar_to_battery=ctx.solar_to_battery,
                grid_to_battery=ctx.grid_to_battery,
                cost_pence=cost,
                solar_to_household=ctx.solar_to_household,
                solar_to_ev=ctx.solar_to_ev,
                battery_to_household=ctx.battery_to_household,
                battery_to_ev=ctx.battery_to_ev,
                grid_to_household=ctx.grid_to_household,
                grid_to_ev=ctx.grid_to_ev,
                rate_pence_per_kwh=rate.rate_pence_per_kwh,
                in_cheap_window=in_window,
                low_confidence_reasons=reasons,
            )

            # 6. Invariants
            EnergySimulator.check_invariants(entry, capacity, strict)
            soc = entry.battery_soc_end_wh
            entries.append(entry)

        return entries, ev_remaining

    @staticmethod
    def simulate(
        generation: Sequence[HourlyGeneration],
        household: HouseholdProfile,
        battery: BatteryConfig,
        tariff: TariffResolver,
        ev: EVRequirement | None = None,
        *,
        strict: bool = False,
    ) -> SimulationResult:
        """Simulate a full day of energy flows.

        Args:
            generation: 24 hourly generation estimates
            household: Household consumption
            battery: Battery configuration
            tariff: Tariff resolver for rates and the cheap window
            ev: Optional EV requirement
            strict: Raise on invariant violations instead of clamping

        Returns:
            SimulationResult with 24 ledger entries

        Raises:
            ConfigurationError: On invalid inputs
            InvariantViolation: In strict mode, if a ledger invariant breaks
        """
        EnergySimulator.validate_inputs(generation, household, battery, ev)

        window = tariff.find_cheapest_window(1)

        entries, ev_remaining = EnergySimulator._run_day(
            generation, household, battery, tariff, ev, window, strict,
        )

        ev_delivered = sum(entry.ev_demand_wh for entry in entries)
        result = SimulationResult(
            entries=entries,
            capacity_wh=battery.capacity_wh if battery.has_battery else 0.0,
            cheap_window=window,
            ev_delivered_wh=ev_delivered,
            ev_remaining_wh=ev_remaining,
        )

        _LOGGER.debug(
            "Simulated day: import=%.0f Wh, export=%.0f Wh, grid->battery=%.0f Wh, "
            "cost=%.2f p, final SoC=%.0f Wh",
            result.total_grid_import_wh, result.total_grid_export_wh,
            result.total_grid_to_battery_wh, result.total_cost_pence, result.final_soc_wh,
        )
        return result
