"""Tests for the charging advisor."""
import pytest

from solar_charge_advisor.domain import ChargingAdvisor, EnergySimulator, TariffResolver
from solar_charge_advisor.domain.advisor import usable_window_hours
from solar_charge_advisor.exceptions import ConfigurationError
from solar_charge_advisor.models import (
    BatteryConfig,
    CheapWindow,
    EVRequirement,
    GenerationSource,
    HourlyGeneration,
    HouseholdProfile,
    Recommendation,
    SimulationResult,
    TariffPeriod,
)


def run(generation, household, battery, tariff, ev=None, **kwargs):
    """Simulate then advise."""
    result = EnergySimulator.simulate(generation, household, battery, tariff, ev)
    return ChargingAdvisor.advise(result, tariff, ev, **kwargs)


class TestUsableWindowHours:
    """Cheap window hours still usable before a horizon."""

    def test_hours_ahead(self):
        assert usable_window_hours(CheapWindow(1, 4), 0, 7) == [1, 2, 3]

    def test_hours_behind_move_to_tomorrow(self):
        assert usable_window_hours(CheapWindow(1, 4), 5, 24) == []
        assert usable_window_hours(CheapWindow(1, 4), 5, 30) == [25, 26, 27]

    def test_inside_wrapping_window(self):
        assert usable_window_hours(CheapWindow(23, 2), 0, 24) == [0, 1]

    def test_no_window(self):
        assert usable_window_hours(None, 0, 24) == []


class TestEVAdvice:
    """Advice when an EV must be charged by a deadline."""

    def test_scenario_b_wait_for_cheap_window(
        self, make_generation, no_household, no_battery, ev_tariff
    ):
        """6 kWh by 07:00 at 3 kWh/h fits hours 1-3 of the 8p window."""
        ev = EVRequirement(energy_needed_wh=6000.0, deadline_hour=7, max_charge_rate_wh=3000.0)
        advice = run(make_generation(), no_household, no_battery, ev_tariff, ev, current_hour=0)

        assert advice.recommendation == Recommendation.WAIT_FOR_CHEAP_WINDOW
        assert advice.window_start_hour == 1
        assert advice.window_end_hour == 3
        assert advice.estimated_cost_pence == pytest.approx(48.0)
        assert advice.rate_basis_pence_per_kwh == 8.0
        assert "8.00p/kWh" in advice.reason

    def test_scenario_c_insufficient_time(
        self, make_generation, no_household, no_battery, ev_tariff
    ):
        """10 kWh by 02:00 at 2 kWh/h cannot be done."""
        ev = EVRequirement(energy_needed_wh=10000.0, deadline_hour=2, max_charge_rate_wh=2000.0)
        advice = run(make_generation(), no_household, no_battery, ev_tariff, ev, current_hour=0)

        assert advice.recommendation == Recommendation.INSUFFICIENT_TIME_OR_CAPACITY
        assert advice.energy_wh == pytest.approx(6000.0)
        assert "Shortfall: 6.0 kWh" in advice.reason
        assert advice.estimated_cost_pence is None

    def test_window_too_short_charges_now(self, make_generation, no_household, no_battery):
        tariff = TariffResolver([
            TariffPeriod(id="cheap", start_time="05:00", end_time="06:00", is_cheap=True,
                         rate_pence_per_kwh=8.0),
            TariffPeriod(id="standard", start_time="06:00", end_time="05:00", is_cheap=False,
                         rate_pence_per_kwh=30.0),
        ])
        ev = EVRequirement(energy_needed_wh=6000.0, deadline_hour=7, max_charge_rate_wh=3000.0)
        advice = run(make_generation(), no_household, no_battery, tariff, ev, current_hour=0)

        assert advice.recommendation == Recommendation.CHARGE_NOW_FROM_GRID
        assert (advice.window_start_hour, advice.window_end_hour) == (0, 2)
        assert advice.estimated_cost_pence == pytest.approx(180.0)
        assert advice.rate_basis_pence_per_kwh == 30.0
        assert "only fits 1 of the 2 hours" in advice.reason

    def test_window_passed_charges_now(self, make_generation, no_household, no_battery, ev_tariff):
        ev = EVRequirement(energy_needed_wh=6000.0, deadline_hour=7, max_charge_rate_wh=3000.0)
        advice = run(make_generation(), no_household, no_battery, ev_tariff, ev, current_hour=5)

        assert advice.recommendation == Recommendation.CHARGE_NOW_FROM_GRID
        assert advice.window_start_hour == 5
        assert advice.estimated_cost_pence == pytest.approx(180.0)
        assert "No cheap window remains" in advice.reason

    def test_deadline_before_current_hour_is_tomorrow(
        self, make_generation, no_household, no_battery, ev_tariff
    ):
        """At 20:00 a 07:00 deadline leaves tonight's window available."""
        ev = EVRequirement(energy_needed_wh=6000.0, deadline_hour=7, max_charge_rate_wh=3000.0)
        advice = run(make_generation(), no_household, no_battery, ev_tariff, ev, current_hour=20)

        assert advice.recommendation == Recommendation.WAIT_FOR_CHEAP_WINDOW
        assert (advice.window_start_hour, advice.window_end_hour) == (1, 3)

    def test_battery_covers_ev(self, make_generation, no_household, ev_tariff):
        battery = BatteryConfig(capacity_wh=10000.0, max_charge_rate_wh=3000.0,
                                max_discharge_rate_wh=3000.0, initial_soc_wh=10000.0)
        ev = EVRequirement(energy_needed_wh=3000.0, deadline_hour=1, max_charge_rate_wh=3000.0)
        advice = run(make_generation(), no_household, battery, ev_tariff, ev, current_hour=0)

        assert advice.recommendation == Recommendation.NO_ACTION_NEEDED
        assert "covered by solar and battery" in advice.reason

    def test_no_tariff_gives_no_cost(self, make_generation, no_household, no_battery):
        ev = EVRequirement(energy_needed_wh=3000.0, deadline_hour=7, max_charge_rate_wh=3000.0)
        advice = run(make_generation(), no_household, no_battery, TariffResolver([]), ev)

        assert advice.recommendation == Recommendation.CHARGE_NOW_FROM_GRID
        assert advice.estimated_cost_pence is None
        assert advice.rate_basis_pence_per_kwh is None
        assert "cost is unknown" in advice.reason
        assert advice.low_confidence

    def test_savings_reported_against_peak(
        self, make_generation, no_household, no_battery, ev_tariff
    ):
        ev = EVRequirement(energy_needed_wh=6000.0, deadline_hour=7, max_charge_rate_wh=3000.0)
        advice = run(make_generation(), no_household, no_battery, ev_tariff, ev)
        assert advice.potential_savings_pence == pytest.approx(6 * (30.0 - 8.0))


class TestBatteryAdvice:
    """Advice without an EV requirement."""

    def test_scenario_a_no_action(self, make_generation, night_tariff):
        generation = make_generation({h: 500.0 for h in range(6, 19)})
        household = HouseholdProfile(avg_hourly_consumption_wh=300.0)
        battery = BatteryConfig(capacity_wh=2000.0, max_charge_rate_wh=1000.0,
                                max_discharge_rate_wh=1000.0, initial_soc_wh=2000.0)
        advice = run(generation, household, battery, night_tariff, current_hour=0)

        assert advice.recommendation == Recommendation.NO_ACTION_NEEDED
        assert advice.estimated_cost_pence is None

    def test_low_battery_in_window_waits(self, make_generation, night_tariff):
        battery = BatteryConfig(capacity_wh=5000.0, max_charge_rate_wh=2500.0,
                                max_discharge_rate_wh=2500.0, grid_charge_target_pct=0.0)
        household = HouseholdProfile(avg_hourly_consumption_wh=500.0)
        advice = run(make_generation(), household, battery, night_tariff, current_hour=0)

        assert advice.recommendation == Recommendation.WAIT_FOR_CHEAP_WINDOW
        assert (advice.window_start_hour, advice.window_end_hour) == (0, 4)
        assert advice.energy_wh == pytest.approx(5000.0)
        assert advice.estimated_cost_pence == pytest.approx(50.0)
        assert "10.00p/kWh" in advice.reason

    def test_window_starts_at_first_open_hour(self, make_generation, night_tariff):
        """The battery only turns low part way through the window."""
        battery = BatteryConfig(capacity_wh=5000.0, max_charge_rate_wh=2500.0,
                                max_discharge_rate_wh=2500.0, initial_soc_wh=1500.0,
                                grid_charge_target_pct=0.0)
        household = HouseholdProfile(avg_hourly_consumption_wh=300.0)
        result = EnergySimulator.simulate(make_generation(), household, battery, night_tariff)
        assert result.entries[0].battery_soc_end_wh == pytest.approx(1200.0)

        advice = ChargingAdvisor.advise(result, night_tariff, current_hour=0)

        assert advice.recommendation == Recommendation.WAIT_FOR_CHEAP_WINDOW
        assert (advice.window_start_hour, advice.window_end_hour) == (0, 4)
        assert advice.energy_wh == pytest.approx(4700.0)

    def test_window_already_passed(self, make_generation, night_tariff):
        battery = BatteryConfig(capacity_wh=5000.0, max_charge_rate_wh=2500.0,
                                max_discharge_rate_wh=2500.0, grid_charge_target_pct=0.0)
        household = HouseholdProfile(avg_hourly_consumption_wh=500.0)
        advice = run(make_generation(), household, battery, night_tariff, current_hour=6)

        assert advice.recommendation == Recommendation.NO_ACTION_NEEDED
        assert "passed" in advice.reason

    def test_no_tariff_data(self, make_generation, no_household):
        battery = BatteryConfig(capacity_wh=5000.0, max_charge_rate_wh=2500.0,
                                max_discharge_rate_wh=2500.0)
        advice = run(make_generation(), no_household, battery, TariffResolver([]))

        assert advice.recommendation == Recommendation.NO_ACTION_NEEDED
        assert "No tariff periods" in advice.reason

    def test_no_battery(self, make_generation, no_household, no_battery, night_tariff):
        advice = run(make_generation(), no_household, no_battery, night_tariff)
        assert advice.recommendation == Recommendation.NO_ACTION_NEEDED


class TestAdviceEdges:
    """Inputs the advisor refuses or degrades on."""

    def test_invalid_current_hour(self, make_generation, no_household, no_battery, night_tariff):
        with pytest.raises(ConfigurationError):
            run(make_generation(), no_household, no_battery, night_tariff, current_hour=24)

    def test_incomplete_ledger(self, night_tariff):
        result = SimulationResult(entries=[], capacity_wh=0.0)
        advice = ChargingAdvisor.advise(result, night_tariff)
        assert advice.recommendation == Recommendation.NO_ACTION_NEEDED
        assert advice.low_confidence

    def test_seasonal_forecast_flags_advice(self, no_household, no_battery, night_tariff):
        generation = [
            HourlyGeneration(hour=h, estimated_wh=0.0, source=GenerationSource.SEASONAL)
            for h in range(24)
        ]
        advice = run(generation, no_household, no_battery, night_tariff)
        assert advice.low_confidence
        assert "seasonal estimate" in advice.reason

    def test_advice_serializes(self, make_generation, no_household, no_battery, ev_tariff):
        ev = EVRequirement(energy_needed_wh=6000.0, deadline_hour=7, max_charge_rate_wh=3000.0)
        data = run(make_generation(), no_household, no_battery, ev_tariff, ev).to_dict()
        assert data["recommendation"] == "WaitForCheapWindow"
        assert data["estimated_cost_pence"] == pytest.approx(48.0)
