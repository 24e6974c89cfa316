"""Planning service for one forecast, simulate and advise cycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence

from ..advisor_logging import AdvisorLogger, get_logger
from ..config import AdvisorSettings, load_tariff_periods, load_weather_samples
from ..domain import ChargingAdvisor, EnergySimulator, SolarForecaster, TariffResolver
from ..exceptions import SolarAdvisorError
from ..models import (
    ChargingAdvice,
    DayCondition,
    HourlyGeneration,
    HourlyWeatherSample,
    SimulationResult,
    TariffPeriod,
)

_LOGGER = logging.getLogger(__name__)


@dataclass
class PlanningOutcome:
    """Everything one planning cycle produced."""

    generation: list[HourlyGeneration]
    result: SimulationResult
    advice: ChargingAdvice

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "generation": [item.to_dict() for item in self.generation],
            "result": self.result.to_dict(),
            "advice": self.advice.to_dict(),
        }


def _as_periods(periods: Sequence[TariffPeriod | dict[str, Any]]) -> list[TariffPeriod]:
    if all(isinstance(period, TariffPeriod) for period in periods):
        return list(periods)
    return load_tariff_periods(
        period.to_dict() if isinstance(period, TariffPeriod) else period
        for period in periods
    )


def _as_samples(
    samples: Sequence[HourlyWeatherSample | dict[str, Any]],
) -> list[HourlyWeatherSample]:
    out: list[HourlyWeatherSample] = []
    for sample in samples:
        if isinstance(sample, HourlyWeatherSample):
            out.append(sample)
        else:
            out.extend(load_weather_samples([sample]))
    return out


class PlanningService:
    """Service that runs the advisory engine for one planning cycle."""

    def __init__(
        self,
        settings: AdvisorSettings,
        *,
        event_logger: AdvisorLogger | None = None,
    ) -> None:
        """Initialize the planning service.

        Args:
            settings: Validated settings from config.load_settings
            event_logger: Structured logger (default: shared instance)
        """
        self.settings = settings
        self._events = event_logger if event_logger is not None else get_logger()

    def run(
        self,
        weather_samples: Sequence[HourlyWeatherSample | dict[str, Any]],
        tariff_periods: Sequence[TariffPeriod | dict[str, Any]],
        *,
        current_hour: int = 0,
        for_date: date | None = None,
        day_condition: DayCondition | None = None,
        strict: bool = False,
    ) -> PlanningOutcome:
        """Forecast, simulate and advise for one day.

        Args:
            weather_samples: Hourly weather, typed or raw dictionaries
            tariff_periods: Tariff periods, typed or raw dictionaries
            current_hour: Hour the advice is requested (0-23)
            for_date: Day being planned (default: today)
            day_condition: Whole-day sky condition for hours without weather
                (default: from settings)
            strict: Raise on ledger invariant violations

        Returns:
            PlanningOutcome with generation, ledger and advice

        Raises:
            ConfigurationError: If any input is invalid
            InvariantViolation: In strict mode, on a ledger defect
        """
        settings = self.settings
        _LOGGER.info("Planning cycle started (current_hour=%s, date=%s)", current_hour, for_date)

        try:
            samples = _as_samples(weather_samples)
            tariff = TariffResolver(_as_periods(tariff_periods))

            generation = SolarForecaster.forecast_hourly(
                samples,
                settings.panels,
                for_date=for_date,
                monthly_factors=settings.monthly_factors,
                condition=day_condition if day_condition is not None else settings.day_condition,
            )
            result = EnergySimulator.simulate(
                generation,
                settings.household,
                settings.battery,
                tariff,
                settings.ev,
                strict=strict,
            )
            advice = ChargingAdvisor.advise(
                result,
                tariff,
                settings.ev,
                current_hour=current_hour,
                low_soc_threshold_pct=settings.low_soc_threshold_pct,
            )
        except SolarAdvisorError as ex:
            self._events.error(
                "PLAN_FAILED",
                error_type=type(ex).__name__,
                error=str(ex),
                current_hour=current_hour,
            )
            raise

        self._events.info(
            "PLAN_CALCULATED",
            recommendation=advice.recommendation.value,
            window_start=advice.window_start_hour,
            window_end=advice.window_end_hour,
            estimated_cost_pence=(
                None if advice.estimated_cost_pence is None
                else round(advice.estimated_cost_pence, 2)
            ),
            solar_kwh=round(sum(item.estimated_wh for item in generation) / 1000.0, 2),
            grid_import_kwh=round(result.total_grid_import_wh / 1000.0, 2),
            total_cost_pence=round(result.total_cost_pence, 2),
            final_soc_kwh=round(result.final_soc_wh / 1000.0, 2),
            low_confidence=advice.low_confidence,
        )
        if result.diagnostics:
            self._events.warning("LEDGER_DIAGNOSTICS", count=len(result.diagnostics))

        return PlanningOutcome(generation=generation, result=result, advice=advice)
