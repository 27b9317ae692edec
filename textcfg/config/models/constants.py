"""
Default values and enumerations for configuration models.
"""

PROVIDER_TYPE_OPEN_AI_COMPATIBLE = "open-ai-compatible"
PROVIDER_TYPE_OLLAMA = "ollama"
PROVIDER_TYPES = (PROVIDER_TYPE_OPEN_AI_COMPATIBLE, PROVIDER_TYPE_OLLAMA)

AUTH_TYPE_NONE = "none"
AUTH_TYPE_API_KEY = "api-key"
AUTH_TYPE_BEARER = "bearer"
AUTH_TYPES = (AUTH_TYPE_NONE, AUTH_TYPE_API_KEY, AUTH_TYPE_BEARER)

DEFAULT_LANGUAGES = (
    "Chinese",
    "Croatian",
    "Czech",
    "English",
    "French",
    "German",
    "Hindi",
    "Italian",
    "Korean",
    "Polish",
    "Portuguese",
    "Russian",
    "Serbian",
    "Spanish",
    "Ukrainian",
)
DEFAULT_INPUT_LANGUAGE = "English"
DEFAULT_OUTPUT_LANGUAGE = "Ukrainian"

DEFAULT_MODELS_ENDPOINT = "v1/models"
DEFAULT_COMPLETION_ENDPOINT = "v1/chat/completions"

DEFAULT_MODEL_NAME = ""
DEFAULT_TEMPERATURE = 0.5
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0

DEFAULT_TIMEOUT_SECONDS = 60
MIN_TIMEOUT_SECONDS = 1
MAX_TIMEOUT_SECONDS = 600
DEFAULT_MAX_RETRIES = 3
MIN_MAX_RETRIES = 0
MAX_MAX_RETRIES = 10

MAX_PROVIDER_NAME_LENGTH = 100
MAX_MODEL_NAME_LENGTH = 200
MAX_ENDPOINT_LENGTH = 255

DEFAULT_SETTINGS_FOLDER = "~/.textcfg"
DEFAULT_SETTINGS_FILE = "settings.json"

CONCURRENCY_REJECT = "reject"
CONCURRENCY_QUEUE = "queue"
CONCURRENCY_POLICIES = (CONCURRENCY_REJECT, CONCURRENCY_QUEUE)
