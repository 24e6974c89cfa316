"""Charging advice derived from a simulated day.

The advisor always returns a recommendation. Every finite cost it quotes
carries the rate it was computed from, both in the reason text and in
rate_basis_pence_per_kwh.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from ..const import DEFAULT_LOW_SOC_THRESHOLD, ENERGY_EPSILON, HOURS_PER_DAY
from ..exceptions import ConfigurationError
from ..models import (
    LOW_CONFIDENCE_DAY_CONDITION,
    LOW_CONFIDENCE_RATE_UNKNOWN,
    LOW_CONFIDENCE_SEASONAL,
    ChargingAdvice,
    CheapWindow,
    EVRequirement,
    Recommendation,
    SimulationResult,
)
from .tariff import TariffResolver, format_hour

_LOGGER = logging.getLogger(__name__)

LOW_CONFIDENCE_TEXT = {
    LOW_CONFIDENCE_SEASONAL: "solar output for some hours is a seasonal estimate",
    LOW_CONFIDENCE_DAY_CONDITION: (
        "solar output for some hours is a seasonal estimate scaled by the day's sky condition"
    ),
    LOW_CONFIDENCE_RATE_UNKNOWN: "no tariff rate is known for some hours",
}


def _kwh(wh: float) -> str:
    return f"{wh / 1000.0:.1f} kWh"


def usable_window_hours(
    window: CheapWindow | None,
    current_hour: int,
    horizon_hour: int,
) -> list[int]:
    """Get the first contiguous block of window hours in [current, horizon).

    Hours before current_hour are taken to be tomorrow (hour + 24), so the
    result is in absolute hours counted from today's midnight.
    """
    if window is None:
        return []

    absolute = sorted(
        hour if hour >= current_hour else hour + HOURS_PER_DAY
        for hour in window.hours()
    )
    block: list[int] = []
    for hour in absolute:
        if hour >= horizon_hour:
            break
        if block and hour != block[-1] + 1:
            break
        block.append(hour)
    return block


def _end_hour(absolute_end: int) -> int:
    return absolute_end if absolute_end <= HOURS_PER_DAY else absolute_end - HOURS_PER_DAY


class ChargingAdvisor:
    """Turns a simulation ledger into a single recommendation."""

    @staticmethod
    def _savings(
        energy_wh: float,
        rate: float | None,
        tariff: TariffResolver,
    ) -> float | None:
        peak = tariff.most_expensive_rate
        if rate is None or peak is None or peak <= rate:
            return None
        return energy_wh / 1000.0 * (peak - rate)

    @staticmethod
    def _finish(
        advice: ChargingAdvice,
        reasons: Sequence[str],
        tariff: TariffResolver,
    ) -> ChargingAdvice:
        """Attach savings and confidence notes to the advice."""
        if advice.estimated_cost_pence is not None:
            advice.potential_savings_pence = ChargingAdvisor._savings(
                advice.energy_wh, advice.rate_basis_pence_per_kwh, tariff,
            )
            if advice.potential_savings_pence:
                advice.reason += (
                    f" That is about {advice.potential_savings_pence:.2f}p less than "
                    f"at the peak rate of {tariff.most_expensive_rate:.2f}p/kWh."
                )

        if reasons:
            advice.low_confidence = True
            notes = "; ".join(LOW_CONFIDENCE_TEXT.get(reason, reason) for reason in reasons)
            advice.reason += f" Low confidence: {notes}."

        _LOGGER.info(
            "Advice: %s (window=%s-%s, cost=%s)",
            advice.recommendation.value,
            advice.window_start_hour, advice.window_end_hour,
            advice.estimated_cost_pence,
        )
        return advice

    @staticmethod
    def _advise_battery(
        result: SimulationResult,
        tariff: TariffResolver,
        current_hour: int,
        low_soc_threshold_pct: float,
    ) -> ChargingAdvice:
        if not tariff.has_periods:
            return ChargingAdvice(
                recommendation=Recommendation.NO_ACTION_NEEDED,
                reason=(
                    "No tariff periods are configured, so there is no basis "
                    "for recommending grid charging."
                ),
            )

        if result.capacity_wh <= 0:
            return ChargingAdvice(
                recommendation=Recommendation.NO_ACTION_NEEDED,
                reason="No battery is configured and no EV charge is required.",
            )

        window = tariff.find_cheapest_window(1)
        threshold = result.capacity_wh * low_soc_threshold_pct / 100.0
        # Window hours still ahead today
        open_hours = usable_window_hours(window, current_hour, HOURS_PER_DAY)
        low_entries = [
            result.entries[hour]
            for hour in open_hours
            if result.entries[hour].battery_soc_end_wh < threshold
        ]

        if not low_entries:
            final_pct = result.final_soc_wh / result.capacity_wh * 100.0
            if open_hours:
                status = f"Battery stays above {low_soc_threshold_pct:.0f}% during the cheap window"
            elif window is not None:
                status = "Today's cheap window has passed"
            else:
                status = "No cheap window is configured"
            return ChargingAdvice(
                recommendation=Recommendation.NO_ACTION_NEEDED,
                reason=f"{status} and the battery ends the day at {final_pct:.0f}%.",
            )

        lowest = min(entry.battery_soc_end_wh for entry in low_entries)
        energy = result.capacity_wh - lowest
        rate = window.rate_pence_per_kwh
        start = open_hours[0] % HOURS_PER_DAY
        end = _end_hour(open_hours[-1] + 1)

        advice = ChargingAdvice(
            recommendation=Recommendation.WAIT_FOR_CHEAP_WINDOW,
            reason=(
                f"Battery drops to {lowest / result.capacity_wh * 100.0:.0f}% during the "
                f"cheap window. Top up {_kwh(energy)} between "
                f"{format_hour(start)} and {format_hour(end)}"
            ),
            window_start_hour=start,
            window_end_hour=end,
            energy_wh=energy,
            rate_basis_pence_per_kwh=rate,
        )
        if rate is not None:
            advice.estimated_cost_pence = energy / 1000.0 * rate
            advice.reason += (
                f" for about {advice.estimated_cost_pence:.2f}p at {rate:.2f}p/kWh."
            )
        else:
            advice.reason += ". The cheap window has no rate configured, so cost is unknown."
        return advice

    @staticmethod
    def _advise_ev(
        result: SimulationResult,
        tariff: TariffResolver,
        ev: EVRequirement,
        current_hour: int,
    ) -> ChargingAdvice:
        deadline = ev.deadline_hour
        if deadline <= current_hour:
            deadline += HOURS_PER_DAY
        hours_left = deadline - current_hour
        required = ev.energy_needed_wh
        max_deliverable = hours_left * ev.max_charge_rate_wh

        # 1. Can it be done at all?
        if required > max_deliverable + ENERGY_EPSILON:
            shortfall = required - max_deliverable
            return ChargingAdvice(
                recommendation=Recommendation.INSUFFICIENT_TIME_OR_CAPACITY,
                reason=(
                    f"EV needs {_kwh(required)} by {format_hour(deadline)} but at most "
                    f"{_kwh(max_deliverable)} can be delivered in {hours_left} hours at "
                    f"{_kwh(ev.max_charge_rate_wh)} per hour. Shortfall: {_kwh(shortfall)}."
                ),
                energy_wh=shortfall,
            )

        # 2. What solar and battery already deliver
        self_supplied = sum(
            entry.solar_to_ev + entry.battery_to_ev
            for entry in result.entries
            if current_hour <= entry.hour < deadline
        )
        grid_need = max(0.0, required - self_supplied)
        if grid_need <= ENERGY_EPSILON:
            return ChargingAdvice(
                recommendation=Recommendation.NO_ACTION_NEEDED,
                reason=(
                    f"EV's {_kwh(required)} is covered by solar and battery "
                    f"before {format_hour(deadline)}."
                ),
            )

        hours_needed = math.ceil(grid_need / ev.max_charge_rate_wh - ENERGY_EPSILON)
        covered = ""
        if self_supplied > ENERGY_EPSILON:
            covered = f" ({_kwh(self_supplied)} of {_kwh(required)} comes from solar and battery)"

        # 3. Cheap window before the deadline
        window = tariff.find_cheapest_window(1)
        block = usable_window_hours(window, current_hour, deadline)
        if window is not None and len(block) >= hours_needed:
            start = block[0] % HOURS_PER_DAY
            end = _end_hour(block[0] + hours_needed)
            rate = window.rate_pence_per_kwh
            advice = ChargingAdvice(
                recommendation=Recommendation.WAIT_FOR_CHEAP_WINDOW,
                reason=(
                    f"Charge the EV with {_kwh(grid_need)} from the grid between "
                    f"{format_hour(start)} and {format_hour(end)}{covered}"
                ),
                window_start_hour=start,
                window_end_hour=end,
                energy_wh=grid_need,
                rate_basis_pence_per_kwh=rate,
            )
            if rate is not None:
                advice.estimated_cost_pence = grid_need / 1000.0 * rate
                advice.reason += (
                    f", costing about {advice.estimated_cost_pence:.2f}p at the cheapest "
                    f"rate of {rate:.2f}p/kWh."
                )
            else:
                advice.reason += ". The cheap window has no rate configured, so cost is unknown."
            return advice

        # 4. No cheap window left in time, charge now
        current_rate = tariff.rate_for_hour(current_hour)
        end = _end_hour(current_hour + hours_needed)
        if window is None:
            why = "No cheap window is available"
        elif block:
            why = (
                f"The cheap window before {format_hour(deadline)} only fits "
                f"{len(block)} of the {hours_needed} hours needed"
            )
        else:
            why = f"No cheap window remains before {format_hour(deadline)}"

        advice = ChargingAdvice(
            recommendation=Recommendation.CHARGE_NOW_FROM_GRID,
            reason=(
                f"{why}. Start charging the EV now: {_kwh(grid_need)} from the grid "
                f"between {format_hour(current_hour)} and {format_hour(end)}{covered}"
            ),
            window_start_hour=current_hour,
            window_end_hour=end,
            energy_wh=grid_need,
            rate_basis_pence_per_kwh=current_rate.rate_pence_per_kwh,
        )
        if current_rate.is_known:
            advice.estimated_cost_pence = grid_need / 1000.0 * current_rate.rate_pence_per_kwh
            advice.reason += (
                f", costing about {advice.estimated_cost_pence:.2f}p at the current "
                f"rate of {current_rate.rate_pence_per_kwh:.2f}p/kWh."
            )
        else:
            advice.reason += (
                f". No tariff rate is configured for {format_hour(current_hour)}, "
                "so cost is unknown."
            )
        return advice

    @staticmethod
    def advise(
        result: SimulationResult,
        tariff: TariffResolver,
        ev: EVRequirement | None = None,
        *,
        current_hour: int = 0,
        low_soc_threshold_pct: float = DEFAULT_LOW_SOC_THRESHOLD,
    ) -> ChargingAdvice:
        """Produce one charging recommendation.

        Args:
            result: Simulation ledger for the day
            tariff: Tariff resolver used for the simulation
            ev: Optional EV requirement
            current_hour: Hour the advice is requested (0-23)
            low_soc_threshold_pct: Battery level that counts as low

        Returns:
            ChargingAdvice

        Raises:
            ConfigurationError: If current_hour or the threshold is out of range
        """
        if not 0 <= current_hour < HOURS_PER_DAY:
            raise ConfigurationError(f"Current hour must be 0-23, got {current_hour}")
        if not 0 <= low_soc_threshold_pct <= 100:
            raise ConfigurationError(
                f"Low SoC threshold must be 0-100%, got {low_soc_threshold_pct}"
            )

        if len(result.entries) != HOURS_PER_DAY:
            return ChargingAdvice(
                recommendation=Recommendation.NO_ACTION_NEEDED,
                reason="No complete simulation is available to base advice on.",
                low_confidence=True,
            )

        if ev is None:
            advice = ChargingAdvisor._advise_battery(
                result, tariff, current_hour, low_soc_threshold_pct,
            )
        else:
            advice = ChargingAdvisor._advise_ev(result, tariff, ev, current_hour)

        return ChargingAdvisor._finish(advice, result.low_confidence_reasons, tariff)
