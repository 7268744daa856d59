DOMAIN = "inteo_somfy_blinds"

CONF_HUB_MAC = "hub_mac"
CONF_BASE_URL = "base_url"
CONF_BLINDS = "blinds"
CONF_NAME = "name"
CONF_OPEN_SCENE = "open_scene"
CONF_CLOSE_SCENE = "close_scene"
CONF_ADVANCED = "advanced"
CONF_RETRY_ATTEMPTS = "retry_attempts"
CONF_REQUEST_TIMEOUT = "request_timeout"   # milliseconds
CONF_ADD_ANOTHER = "add_another"

DEFAULT_NAME = "Inteo Somfy Blinds"
DEFAULT_BASE_URL = "http://iOS.neocontrolglobal.com:9151"
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_REQUEST_TIMEOUT_MS = 5000
DEFAULT_BACKOFF_BASE_SEC = 1.0

PLATFORMS = ["cover"]

MANUFACTURER = "Somfy"
MODEL = "RTS Blind"

# Relay endpoint: {base_url}/mqtt/command/{hub_id}/{scene_id}
COMMAND_PATH = "/mqtt/command/{hub_id}/{scene_id}"
