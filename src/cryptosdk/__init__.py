"""Crypto SDK for Python.

A client library that manages an authenticated session with a
key-management backend, caches symmetric keys locally and performs
authenticated encryption with them.

Example:
    ```python
    from cryptosdk import ClientConfig, SdkContext

    with SdkContext(config=ClientConfig(base_url="https://kms.example")) as sdk:
        sdk.init("my-app-registration-token")
        sdk.create_session("app_user_01", "super_secret_password")
        sdk.key_operation("CREATE", "MySecretKey", key_material)

        blob = sdk.do_crypto("ENCRYPT", "MySecretKey", "AES-256-GCM", b"sensitive")
        plaintext = sdk.do_crypto("DECRYPT", "MySecretKey", "AES-256-GCM", blob)
    ```
"""

from .backend import Backend, InMemoryBackend
from .cache import KeyCache
from .constants import (
    DEFAULT_ALGORITHM,
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_RETRY_STATUS_CODES,
    DEFAULT_TIMEOUT_MS,
)
from .context import SdkContext
from .errors import (
    AlreadyInitializedError,
    ApiError,
    BackendError,
    CryptoError,
    CryptoErrorKind,
    CryptoSdkError,
    InvalidArgumentError,
    KeyNotFoundError,
    NetworkError,
    NoActiveSessionError,
    NotInitializedError,
    UnsupportedOperationError,
)
from .http import ApiClient
from .session import SessionManager
from .types import (
    ClientConfig,
    CryptoOperationType,
    KeyEntry,
    KeyOperationType,
    KeyOpResponse,
    SdkState,
    ServerConfig,
    Session,
)

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "SdkContext",
    "SessionManager",
    "KeyCache",
    "Backend",
    "InMemoryBackend",
    "ApiClient",
    # Constants
    "DEFAULT_ALGORITHM",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_RETRY_DELAY_MS",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_STATUS_CODES",
    # Configuration
    "ClientConfig",
    # Data types
    "SdkState",
    "KeyOperationType",
    "CryptoOperationType",
    "KeyEntry",
    "KeyOpResponse",
    "ServerConfig",
    "Session",
    # Errors
    "CryptoSdkError",
    "NotInitializedError",
    "AlreadyInitializedError",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "NoActiveSessionError",
    "KeyNotFoundError",
    "CryptoError",
    "CryptoErrorKind",
    "BackendError",
    "ApiError",
    "NetworkError",
    # Version
    "__version__",
]
