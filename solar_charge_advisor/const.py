"""Constants for the Solar Charge Advisor."""

DOMAIN = "solar_charge_advisor"
LOGGER_NAME = DOMAIN

HOURS_PER_DAY = 24

# Panel Configuration Keys
CONF_TOTAL_KWP = "total_kwp"
CONF_PANEL_COUNT = "panel_count"
CONF_PANEL_WATTS = "panel_watts"
CONF_SYSTEM_EFFICIENCY = "system_efficiency"
CONF_PROPERTY_DIRECTION = "property_direction"
CONF_ORIENTATION_FACTOR = "orientation_factor"
CONF_MONTHLY_FACTORS = "monthly_generation_factors"

# Battery Configuration Keys
CONF_BATTERY_CAPACITY = "battery_capacity_kwh"
CONF_BATTERY_MAX_CHARGE_RATE = "battery_max_charge_rate_kwh"
CONF_BATTERY_MAX_DISCHARGE_RATE = "battery_max_discharge_rate_kwh"
CONF_BATTERY_LEVEL = "battery_level_kwh"
CONF_OVERNIGHT_CHARGE_PERCENT = "preferred_overnight_charge_percent"

# Household Configuration Keys
CONF_DAILY_CONSUMPTION = "daily_consumption_kwh"
CONF_HOURLY_CONSUMPTION = "avg_hourly_consumption_kwh"
CONF_HOURLY_USAGE_PROFILE = "hourly_usage_profile_kwh"

# EV Configuration Keys
CONF_EV_CHARGE_REQUIRED = "ev_charge_required_kwh"
CONF_EV_CHARGE_BY_TIME = "ev_charge_by_time"
CONF_EV_MAX_CHARGE_RATE = "ev_max_charge_rate_kwh"

# Advisor Tuning
CONF_LOW_SOC_THRESHOLD = "low_soc_threshold_percent"

# Manual Forecast
CONF_DAY_CONDITION = "day_condition"
CONF_WEATHER_CODE = "weather_code"

# Tariff Period Keys
CONF_TARIFF_ID = "id"
CONF_TARIFF_NAME = "name"
CONF_TARIFF_START = "start_time"
CONF_TARIFF_END = "end_time"
CONF_TARIFF_IS_CHEAP = "is_cheap"
CONF_TARIFF_RATE = "rate"

# Weather Sample Keys
CONF_WEATHER_HOUR = "hour"
CONF_WEATHER_CLOUD_COVER = "cloud_cover"
CONF_WEATHER_IRRADIANCE = "shortwave_radiation"

# Defaults
DEFAULT_SYSTEM_EFFICIENCY = 0.85
DEFAULT_ORIENTATION_FACTOR = 1.0
DEFAULT_PROPERTY_DIRECTION = "South"
DEFAULT_OVERNIGHT_CHARGE_PERCENT = 100.0
DEFAULT_LOW_SOC_THRESHOLD = 20.0
DEFAULT_BATTERY_RATE_KWH = 3.0
DEFAULT_MONTHLY_FACTORS = [
    0.4, 0.5, 0.7, 0.9, 1.0, 1.1, 1.0, 0.9, 0.7, 0.5, 0.4, 0.3,
]

# Orientation factor per compass direction of the panels
PROPERTY_DIRECTION_FACTORS = {
    "South": 1.00,
    "South-West": 0.95,
    "South-East": 0.95,
    "West": 0.82,
    "East": 0.82,
    "North-West": 0.60,
    "North-East": 0.60,
    "North": 0.43,
    "Flat Roof": 0.90,
}

# Solar model
STC_IRRADIANCE_WM2 = 1000.0  # Standard test conditions
CLEAR_SKY_PEAK_IRRADIANCE_WM2 = 1000.0
MIN_CLEARNESS = 0.05
MAX_CLEARNESS = 1.0
CLEAR_SKY_CURVE_EXPONENT = 1.5
BASE_PEAK_SUN_HOURS = 5.0  # Ideal summer day

# Share of the seasonal estimate expected under each whole-day condition
DAY_CONDITION_FACTORS = {
    "sunny": 1.0,
    "partly_cloudy": 0.75,
    "cloudy": 0.5,
    "overcast": 0.25,
    "rainy": 0.15,
}

SOLAR_NOON_HOUR = 12.0
MEAN_DAYLIGHT_HOURS = 12.0
DAYLIGHT_SWING_HOURS = 4.2  # Half the winter/summer day-length difference
SUMMER_SOLSTICE_DAY = 172
SEASONAL_MIN_MODIFIER = 0.3
SEASONAL_MAX_MODIFIER = 1.0

# Numeric tolerance for ledger invariants (Wh)
ENERGY_EPSILON = 1e-6

# Logging
LOG_MAX_FILE_SIZE_MB = 5
LOG_BACKUP_COUNT = 3
