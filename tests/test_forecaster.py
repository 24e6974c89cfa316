"""Tests for the solar generation forecaster."""
from datetime import date

import pytest

from solar_charge_advisor.const import DEFAULT_MONTHLY_FACTORS
from solar_charge_advisor.domain import (
    SolarForecaster,
    condition_for_wmo_code,
    orientation_factor_for_direction,
)
from solar_charge_advisor.exceptions import ConfigurationError
from solar_charge_advisor.models import (
    DayCondition,
    DaylightWindow,
    GenerationSource,
    HourlyWeatherSample,
    PanelConfiguration,
)

DAYLIGHT = DaylightWindow(sunrise_hour=6.0, sunset_hour=18.0)


class TestPanelValidation:
    """Panel configuration checks."""

    def test_zero_rated_power_rejected(self):
        """Non-positive rated power is a configuration error."""
        with pytest.raises(ConfigurationError):
            SolarForecaster.forecast_hourly([], PanelConfiguration(rated_power_kwp=0.0))

    def test_efficiency_above_one_rejected(self):
        """Factors may never amplify beyond rated power."""
        with pytest.raises(ConfigurationError):
            SolarForecaster.validate_panels(
                PanelConfiguration(rated_power_kwp=4.0, system_efficiency=1.5)
            )

    def test_direction_factors(self):
        """Compass directions map to orientation factors."""
        assert orientation_factor_for_direction("South") == 1.0
        assert orientation_factor_for_direction("North") == 0.43
        with pytest.raises(ConfigurationError):
            orientation_factor_for_direction("Up")


class TestIrradiancePath:
    """Generation from measured irradiance."""

    def test_irradiance_scales_with_rating_and_factors(self, panels):
        """500 W/m2 on 4 kWp at 85% gives 1.7 kWh."""
        samples = [HourlyWeatherSample(hour=12, irradiance_wm2=500.0)]
        forecast = SolarForecaster.forecast_hourly(samples, panels, daylight=DAYLIGHT)

        assert len(forecast) == 24
        assert forecast[12].estimated_wh == pytest.approx(1700.0)
        assert forecast[12].source == GenerationSource.IRRADIANCE
        assert not forecast[12].low_confidence

    def test_capped_at_rated_output(self):
        """Output never exceeds the rated power for one hour."""
        panels = PanelConfiguration(rated_power_kwp=4.0, system_efficiency=1.0)
        assert SolarForecaster.irradiance_to_wh(2000.0, panels) == 4000.0

    def test_negative_irradiance_floored(self, panels):
        """Negative irradiance yields zero generation."""
        assert SolarForecaster.irradiance_to_wh(-50.0, panels) == 0.0

    def test_irradiance_preferred_over_cloud(self, panels):
        """Irradiance wins when both fields are present."""
        samples = [HourlyWeatherSample(hour=10, cloud_cover_pct=100.0, irradiance_wm2=800.0)]
        forecast = SolarForecaster.forecast_hourly(samples, panels, daylight=DAYLIGHT)
        assert forecast[10].source == GenerationSource.IRRADIANCE
        assert forecast[10].estimated_wh == pytest.approx(2720.0)


class TestCloudCoverPath:
    """Generation from cloud cover on a clear-sky curve."""

    def test_half_cloud_halves_output(self, panels):
        """Clearness scales the clear-sky output linearly."""
        clear = SolarForecaster.forecast_hourly(
            [HourlyWeatherSample(hour=11, cloud_cover_pct=0.0)], panels, daylight=DAYLIGHT,
        )
        cloudy = SolarForecaster.forecast_hourly(
            [HourlyWeatherSample(hour=11, cloud_cover_pct=50.0)], panels, daylight=DAYLIGHT,
        )
        assert clear[11].source == GenerationSource.CLOUD_COVER
        assert cloudy[11].estimated_wh == pytest.approx(clear[11].estimated_wh * 0.5)

    def test_total_cloud_never_exactly_zero(self, panels):
        """Clearness is clamped at 5% in daylight."""
        forecast = SolarForecaster.forecast_hourly(
            [HourlyWeatherSample(hour=12, cloud_cover_pct=100.0)], panels, daylight=DAYLIGHT,
        )
        assert forecast[12].estimated_wh > 0

    def test_zero_outside_daylight(self, panels):
        """The clear-sky curve is zero at night."""
        forecast = SolarForecaster.forecast_hourly(
            [HourlyWeatherSample(hour=2, cloud_cover_pct=0.0)], panels, daylight=DAYLIGHT,
        )
        assert forecast[2].estimated_wh == 0.0
        assert forecast[2].source == GenerationSource.CLOUD_COVER

    def test_nan_irradiance_falls_back_to_cloud(self, panels):
        """Non-finite irradiance counts as missing."""
        forecast = SolarForecaster.forecast_hourly(
            [HourlyWeatherSample(hour=12, cloud_cover_pct=0.0, irradiance_wm2=float("nan"))],
            panels,
            daylight=DAYLIGHT,
        )
        assert forecast[12].source == GenerationSource.CLOUD_COVER

    def test_curve_peaks_at_noon(self):
        """The bell curve is symmetric around solar noon."""
        before = SolarForecaster.clear_sky_shape(11, DAYLIGHT)
        after = SolarForecaster.clear_sky_shape(12, DAYLIGHT)
        assert before == pytest.approx(after)
        assert SolarForecaster.clear_sky_shape(8, DAYLIGHT) < before


class TestSeasonalFallback:
    """Generation when no weather data is available."""

    def test_missing_weather_degrades_instead_of_failing(self, panels):
        """Every hour falls back and is flagged low confidence."""
        forecast = SolarForecaster.forecast_hourly([], panels, for_date=date(2023, 6, 21))
        assert all(item.source == GenerationSource.SEASONAL for item in forecast)
        assert all(item.low_confidence for item in forecast)
        assert all(item.estimated_wh >= 0 for item in forecast)

    def test_monthly_factors_set_daily_total(self, panels):
        """Daily total is rated Wp x 5 sun hours x factors x month factor."""
        forecast = SolarForecaster.forecast_hourly(
            [], panels, for_date=date(2023, 6, 15), daylight=DAYLIGHT,
            monthly_factors=DEFAULT_MONTHLY_FACTORS,
        )
        total = sum(item.estimated_wh for item in forecast)
        assert total == pytest.approx(4000.0 * 5 * 0.85 * 1.1)

    def test_summer_beats_winter(self, panels):
        """The sinusoidal modifier peaks at midsummer."""
        summer = SolarForecaster.forecast_hourly([], panels, for_date=date(2023, 6, 21))
        winter = SolarForecaster.forecast_hourly([], panels, for_date=date(2023, 12, 21))
        assert sum(i.estimated_wh for i in summer) > sum(i.estimated_wh for i in winter)
        assert SolarForecaster.seasonal_modifier(date(2023, 6, 21)) == pytest.approx(1.0)

    def test_days_longer_in_summer(self):
        """Estimated daylight grows toward the solstice."""
        summer = SolarForecaster.daylight_for_date(date(2023, 6, 21))
        winter = SolarForecaster.daylight_for_date(date(2023, 12, 21))
        assert summer.length_hours > winter.length_hours
        assert summer.solar_noon == pytest.approx(12.0)

    def test_partial_weather_only_fills_gaps(self, panels):
        """Hours with data keep their own path."""
        samples = [HourlyWeatherSample(hour=h, irradiance_wm2=0.0) for h in range(12)]
        forecast = SolarForecaster.forecast_hourly(samples, panels, for_date=date(2023, 6, 21))
        assert all(item.source == GenerationSource.IRRADIANCE for item in forecast[:12])
        assert all(item.source == GenerationSource.SEASONAL for item in forecast[12:])


class TestDayCondition:
    """Seasonal estimate scaled by a whole-day sky condition."""

    @pytest.mark.parametrize(
        "condition, factor",
        [
            (DayCondition.SUNNY, 1.0),
            (DayCondition.PARTLY_CLOUDY, 0.75),
            (DayCondition.CLOUDY, 0.5),
            (DayCondition.OVERCAST, 0.25),
            (DayCondition.RAINY, 0.15),
        ],
    )
    def test_condition_scales_daily_total(self, panels, condition, factor):
        forecast = SolarForecaster.forecast_hourly(
            [], panels, for_date=date(2023, 6, 15), daylight=DAYLIGHT,
            monthly_factors=DEFAULT_MONTHLY_FACTORS, condition=condition,
        )
        total = sum(item.estimated_wh for item in forecast)
        assert total == pytest.approx(4000.0 * 5 * 0.85 * 1.1 * factor)
        assert all(item.source == GenerationSource.DAY_CONDITION for item in forecast)
        assert all(item.low_confidence for item in forecast)

    def test_condition_accepts_plain_string(self, panels):
        by_name = SolarForecaster.forecast_hourly(
            [], panels, for_date=date(2023, 6, 21), condition="overcast",
        )
        by_enum = SolarForecaster.forecast_hourly(
            [], panels, for_date=date(2023, 6, 21), condition=DayCondition.OVERCAST,
        )
        assert [i.estimated_wh for i in by_name] == [i.estimated_wh for i in by_enum]

    def test_unknown_condition_rejected(self, panels):
        with pytest.raises(ConfigurationError):
            SolarForecaster.forecast_hourly([], panels, condition="foggy")

    def test_weather_hours_ignore_condition(self, panels):
        """Only hours without weather use the condition."""
        samples = [HourlyWeatherSample(hour=h, irradiance_wm2=500.0) for h in range(12)]
        forecast = SolarForecaster.forecast_hourly(
            samples, panels, for_date=date(2023, 6, 21), condition=DayCondition.RAINY,
        )
        assert all(item.source == GenerationSource.IRRADIANCE for item in forecast[:12])
        assert forecast[10].estimated_wh == pytest.approx(500 / 1000 * 4000 * 0.85)
        assert all(item.source == GenerationSource.DAY_CONDITION for item in forecast[12:])

    @pytest.mark.parametrize(
        "code, condition",
        [
            (None, DayCondition.SUNNY),
            (0, DayCondition.SUNNY),
            (1, DayCondition.PARTLY_CLOUDY),
            (2, DayCondition.PARTLY_CLOUDY),
            (3, DayCondition.CLOUDY),
            (45, DayCondition.OVERCAST),
            (48, DayCondition.OVERCAST),
            (51, DayCondition.RAINY),
            (69, DayCondition.RAINY),
            (71, DayCondition.RAINY),
            (80, DayCondition.RAINY),
            (82, DayCondition.RAINY),
            (95, DayCondition.RAINY),
            (99, DayCondition.RAINY),
            (4, DayCondition.CLOUDY),
            (85, DayCondition.CLOUDY),
            (100, DayCondition.CLOUDY),
        ],
    )
    def test_wmo_code_mapping(self, code, condition):
        assert condition_for_wmo_code(code) == condition
