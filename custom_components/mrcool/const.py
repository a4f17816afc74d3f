"""Constants for the MrCool cloud integration."""

DOMAIN = "mrcool"

# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------
API_HOST = "home.cielowigle.com"
API_BASE_URL = f"https://{API_HOST}"
WS_BASE_URL = f"wss://{API_HOST}"

LOGIN_PATH = "/auth/login"
INDEX_PATH = "/home/index"
TOKEN_PATH = "/cAcc"
SUBSCRIPTION_PATH = "/api/device/initsubscription"
NEGOTIATE_PATH = "/signalr/negotiate"
CONNECT_PATH = "/signalr/connect"
START_PATH = "/signalr/start"
PING_PATH = "/signalr/ping"

# ---------------------------------------------------------------------------
# SignalR hub
# ---------------------------------------------------------------------------
HUB_NAME = "devicesactionhub"
CLIENT_PROTOCOL = "2.1"
TRANSPORT = "webSockets"

METHOD_BROADCAST_ACTION = "broadcastActionAC"
METHOD_ACTION_RECEIVED = "actionReceivedAC"
METHOD_HEARTBEAT = "HeartBeatPerformed"

# ---------------------------------------------------------------------------
# Login form fields the web client sends alongside the credentials
# ---------------------------------------------------------------------------
LOGIN_DEVICE_NAME = "chrome"
LOGIN_TIME_ZONE = "-07:00"

# Placeholder accepted by /cAcc in the password slot
TOKEN_PASSWORD_PLACEHOLDER = "undefined"

# ---------------------------------------------------------------------------
# Hidden inputs on /home/index
# ---------------------------------------------------------------------------
APP_USER_INPUT_ID = "hdnAppUser"
SESSION_ID_INPUT_ID = "hdnSessionID"

# ---------------------------------------------------------------------------
# App-user cipher.  Fixed by the service; both key and IV are this value.
# ---------------------------------------------------------------------------
APP_USER_CIPHER_KEY = b"8080808080808080"
APP_USER_CIPHER_IV = b"8080808080808080"

# ---------------------------------------------------------------------------
# Command record metadata
# ---------------------------------------------------------------------------
DEVICE_TYPE = "BREEZ-I"
DEFAULT_DEVICE_TYPE_VERSION = "BI03"
DEFAULT_FW_VERSION = "2.4.2,2.4.1"
ACTION_SOURCE = "WEB"

FIELD_POWER = "power"
FIELD_MODE = "mode"
FIELD_FAN_SPEED = "fanspeed"
FIELD_TEMPERATURE = "temp"
COMMAND_FIELDS = (FIELD_POWER, FIELD_MODE, FIELD_FAN_SPEED, FIELD_TEMPERATURE)

POWER_ON = "on"
POWER_OFF = "off"

# ---------------------------------------------------------------------------
# Device defaults (used when the snapshot omits a value)
# ---------------------------------------------------------------------------
DEFAULT_POWER = POWER_OFF
DEFAULT_MODE = "auto"
DEFAULT_FAN = "auto"
DEFAULT_TEMPERATURE = 75

# ---------------------------------------------------------------------------
# Timing (seconds)
# ---------------------------------------------------------------------------
PING_INTERVAL = 5 * 60.0
DEFAULT_REQUEST_TIMEOUT = 30.0
RECONNECT_BACKOFF_BASE = 10.0  # Initial reconnect delay (doubles per failure)
RECONNECT_BACKOFF_CAP = 300.0  # Maximum reconnect delay

# ---------------------------------------------------------------------------
# Config entry data keys
# ---------------------------------------------------------------------------
CONF_IP_ADDRESS = "ip_address"
CONF_MAC_ADDRESSES = "mac_addresses"
