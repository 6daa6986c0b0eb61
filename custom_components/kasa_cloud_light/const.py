"""Constants for Kasa Cloud Light integration.

This module contains all the constants used throughout the integration,
including the cloud endpoint, wire namespace, configuration keys and the
value ranges accepted by the bulb.
"""

DOMAIN = "kasa_cloud_light"

BASE_URL = "https://wap.tplinkcloud.com/"
APP_TYPE = "Kasa_Android"
LIGHTING_SERVICE = "smartlife.iot.smartbulb.lightingservice"

METHOD_LOGIN = "login"
METHOD_GET_DEVICE_LIST = "getDeviceList"
METHOD_PASSTHROUGH = "passthrough"
CMD_GET_LIGHT_STATE = "get_light_state"
CMD_TRANSITION_LIGHT_STATE = "transition_light_state"

REQUEST_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 60

CONF_DEVICE_NAME = "device_name"
DEFAULT_DEVICE_NAME = "Smart Wi-Fi LED Bulb with Color Changing"

# Auto-cycle timing, milliseconds
TICK_MS = 100
DEFAULT_CYCLE_PERIOD_MS = 10_000
REMAINING_NOTIFY_MS = 1000
MIN_CYCLE_PERIOD_S = 1
MAX_CYCLE_PERIOD_S = 3600

ERROR_INVALID_AUTH = "invalid_auth"
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_TIMEOUT = "timeout_error"
ERROR_API_ERROR = "api_error"
ERROR_UNKNOWN = "unknown_error"

HUE_MAX = 360
PERCENT_MAX = 100
COLOR_TEMP_MIN = 2500
COLOR_TEMP_MAX = 9000

# Randomized "shuffle" command defaults
SHUFFLE_BRIGHTNESS = 50
SHUFFLE_SATURATION_MIN = 30

EFFECT_SHUFFLE = "Shuffle"
