DOMAIN = "meteoblue"
VERSION = "0.3.0"

ATTRIBUTION = "Weather forecast data provided by meteoblue"

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_API_KEY = "api_key"
CONF_POSITION_ENTITY = "position_entity"
CONF_HEADING_ENTITY = "heading_entity"
CONF_SOG_ENTITY = "sog_entity"
CONF_FORECAST_INTERVAL = "forecast_interval"
CONF_ALTITUDE = "altitude"
CONF_ENABLE_POSITION_SUBSCRIPTION = "enable_position_subscription"
CONF_MAX_FORECAST_HOURS = "max_forecast_hours"
CONF_MAX_FORECAST_DAYS = "max_forecast_days"
CONF_ENABLE_AUTO_MOVING_FORECAST = "enable_auto_moving_forecast"
CONF_MOVING_SPEED_THRESHOLD = "moving_speed_threshold"

HOURLY = "hourly"
DAILY = "daily"

# Package toggles: config key → (package, granularity).
# Order matters: it is the order packages are joined in the provider URL.
PACKAGE_TOGGLES: dict[str, tuple[str, str]] = {
    "enable_basic_1h":  ("basic", HOURLY),
    "enable_basic_day": ("basic", DAILY),
    "enable_wind_1h":   ("wind", HOURLY),
    "enable_wind_day":  ("wind", DAILY),
    "enable_sea_1h":    ("sea", HOURLY),
    "enable_sea_day":   ("sea", DAILY),
    "enable_solar_1h":  ("solar", HOURLY),
    "enable_solar_day": ("solar", DAILY),
    "enable_trend_1h":  ("trend", HOURLY),
    "enable_clouds_1h": ("clouds", HOURLY),
    "enable_clouds_day": ("clouds", DAILY),
}

PACKAGE_DEFAULTS: dict[str, bool] = {
    "enable_basic_1h": True,
    "enable_basic_day": True,
    "enable_wind_1h": True,
    "enable_wind_day": False,
    "enable_sea_1h": True,
    "enable_sea_day": False,
    "enable_solar_1h": False,
    "enable_solar_day": False,
    "enable_trend_1h": False,
    "enable_clouds_1h": False,
    "enable_clouds_day": False,
}

# Granularity suffix used in provider package names (basic-1h, basic-day)
GRANULARITY_SUFFIX = {HOURLY: "1h", DAILY: "day"}

# Defaults
DEFAULT_FORECAST_INTERVAL = 120      # minutes
MIN_FORECAST_INTERVAL = 30
DEFAULT_ALTITUDE = 15                # metres above sea level
DEFAULT_MAX_FORECAST_HOURS = 72
DEFAULT_MAX_FORECAST_DAYS = 10
DEFAULT_MOVING_SPEED_THRESHOLD = 1.0  # knots

# Navigation
EARTH_RADIUS = 6371000               # metres, spherical earth
KNOTS_TO_MPS = 0.514444
MPS_TO_KNOTS = 1.943844
REFRESH_DISTANCE = 9260              # ~5 nautical miles, in metres

# Update intervals (seconds)
ACCOUNT_INTERVAL = 6 * 60 * 60       # account usage - rarely changes

# Request queue
REQUEST_DELAY = 0.1                  # minimum gap between consecutive provider calls

# Query adapter scans this many indices past the requested count at most
QUERY_OVERSCAN = 10

# Account usage
ESTIMATED_MONTHLY_LIMIT = 500000     # credits; the usage API does not report the plan limit
USAGE_WARN_PERCENT = 80
USAGE_ALERT_PERCENT = 90
USAGE_NOTIFICATION_ID = "meteoblue_api_usage"

PACKAGES_API_URL = "https://my.meteoblue.com/packages/"
ACCOUNT_USAGE_API_URL = "https://my.meteoblue.com/account/usage"

SERVICE_SET_ENGAGEMENT = "set_engagement"
ATTR_ENGAGED = "engaged"
