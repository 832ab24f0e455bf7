"""Default configuration constants for the Crypto SDK."""

# Backend settings
DEFAULT_BASE_URL = "https://api.example-crypto.com/v1"

# HTTP settings (milliseconds)
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_RETRY_DELAY_MS = 1_000
DEFAULT_MAX_RETRIES = 3

# Default retry status codes
DEFAULT_RETRY_STATUS_CODES = (408, 429, 500, 502, 503, 504)

# Algorithm used when the caller does not name one
DEFAULT_ALGORITHM = "AES-256-GCM"

# Environment variable prefix for ClientConfig.from_env
ENV_PREFIX = "CRYPTOSDK_"
