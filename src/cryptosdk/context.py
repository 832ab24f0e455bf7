"""SdkContext - Main entry point for the Crypto SDK."""

from __future__ import annotations

import logging
import threading
from typing import Any

from . import crypto
from .backend import Backend
from .cache import KeyCache
from .errors import (
    AlreadyInitializedError,
    BackendError,
    CryptoSdkError,
    InvalidArgumentError,
    KeyNotFoundError,
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
    SdkState,
    ServerConfig,
)

logger = logging.getLogger("cryptosdk")


def _parse_key_op(op: KeyOperationType | str) -> KeyOperationType:
    try:
        return KeyOperationType(op.upper() if isinstance(op, str) else op)
    except ValueError:
        raise InvalidArgumentError(f"Unsupported key operation: {op!r}") from None


def _parse_crypto_op(op: CryptoOperationType | str) -> CryptoOperationType:
    try:
        return CryptoOperationType(op.upper() if isinstance(op, str) else op)
    except ValueError:
        raise UnsupportedOperationError(f"Unsupported crypto operation: {op!r}") from None


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class SdkContext:
    """Session, key cache and cipher engine behind one object.

    Each context is independent: it owns its session, its key cache and
    its lifecycle. init(), cleanup() and create_session() are serialized
    per context; key and crypto operations run concurrently.

    Example:
        ```python
        with SdkContext(config=ClientConfig(base_url="https://kms.example")) as sdk:
            sdk.init("registration-token")
            sdk.create_session("app_user", "secret")
            sdk.key_operation("CREATE", "K1", key_material)
            blob = sdk.do_crypto("ENCRYPT", "K1", "AES-256-GCM", b"hello")
            plaintext = sdk.do_crypto("DECRYPT", "K1", "AES-256-GCM", blob)
        ```
    """

    def __init__(
        self,
        backend: Backend | None = None,
        *,
        config: ClientConfig | None = None,
    ) -> None:
        """Initialize the context.

        Args:
            backend: Key-management backend. Defaults to an HTTP ApiClient
                built from config.
            config: Client configuration.
        """
        self._config = config or ClientConfig()
        self._backend: Backend = backend if backend is not None else ApiClient(self._config)
        self._sessions = SessionManager(self._backend)
        self._cache = KeyCache(self._fetch_key)
        self._state = SdkState.UNINITIALIZED
        self._server_config: ServerConfig | None = None
        self._lifecycle_lock = threading.RLock()

    def __enter__(self) -> SdkContext:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.cleanup()

    # Properties

    @property
    def state(self) -> SdkState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state is SdkState.INITIALIZED

    @property
    def server_config(self) -> ServerConfig | None:
        return self._server_config

    @property
    def endpoint(self) -> str:
        return self._backend.endpoint

    @property
    def key_cache(self) -> KeyCache:
        return self._cache

    @property
    def sessions(self) -> SessionManager:
        return self._sessions

    def _ensure_initialized(self) -> None:
        if self._state is not SdkState.INITIALIZED:
            raise NotInitializedError("SDK is not initialized, call init() first")

    def _call_backend(self, description: str, func: Any, *args: Any) -> Any:
        """Call the backend, wrapping foreign exceptions in BackendError."""
        try:
            return func(*args)
        except CryptoSdkError:
            raise
        except Exception as e:
            raise BackendError(f"{description} failed: {e}") from e

    # Lifecycle

    def init(self, registration_token: str) -> None:
        """Register with the backend and fetch its configuration.

        Args:
            registration_token: Application registration token.

        Raises:
            AlreadyInitializedError: If the context is already initialized.
            InvalidArgumentError: If the token is empty.
            BackendError: If the configuration cannot be fetched.
        """
        with self._lifecycle_lock:
            if self._state is SdkState.INITIALIZED:
                raise AlreadyInitializedError("SDK is already initialized, call cleanup() first")
            if not registration_token:
                raise InvalidArgumentError("Registration token cannot be empty")

            data = self._call_backend(
                "Fetching configuration", self._backend.fetch_config, registration_token
            )
            if not isinstance(data, dict):
                raise BackendError("Configuration is not a JSON object")
            server_config = ServerConfig.from_dict(data)
            self._server_config = server_config
            self._state = SdkState.INITIALIZED

        logger.info(
            "SDK initialized against %s (api_version=%s, features=%s)",
            self._backend.endpoint,
            server_config.api_version,
            ", ".join(server_config.features) or "none",
        )

    def cleanup(self) -> None:
        """Drop the session, scrub cached keys and return to uninitialized.

        Safe to call when already uninitialized.
        """
        with self._lifecycle_lock:
            if self._state is SdkState.UNINITIALIZED:
                return
            self._sessions.clear()
            self._cache.clear()
            self._server_config = None
            self._state = SdkState.UNINITIALIZED
        logger.info("SDK cleanup complete")

    def close(self) -> None:
        """Clean up and release the backend transport."""
        self.cleanup()
        self._backend.close()

    # Operations

    def create_session(self, identity: str, secret: str) -> str:
        """Authenticate with the backend.

        Args:
            identity: User or application identity.
            secret: The identity's secret.

        Returns:
            The session token.

        Raises:
            NotInitializedError: If init() has not been called.
            InvalidArgumentError: If identity or secret is empty.
            BackendError: If authentication fails.
        """
        with self._lifecycle_lock:
            self._ensure_initialized()
            return self._call_backend(
                "Authentication", self._sessions.create_session, identity, secret
            )

    def key_operation(
        self,
        op: KeyOperationType | str,
        name: str,
        data: bytes | None = None,
    ) -> KeyEntry | None:
        """Perform a key management operation and keep the cache coherent.

        The cache changes only after the backend acknowledges the operation.

        Args:
            op: CREATE, READ, UPDATE or DELETE (case-insensitive).
            name: Key name.
            data: Key material for CREATE/UPDATE. Without it the backend
                generates the material and the cached entry is evicted.

        Returns:
            The cached entry for READ, and for CREATE/UPDATE with data;
            None otherwise.

        Raises:
            NotInitializedError: If init() has not been called.
            InvalidArgumentError: For an unknown operation or empty name.
            NoActiveSessionError: If no session exists.
            KeyNotFoundError: If the backend has no such key.
            BackendError: If the backend fails or rejects the operation.
        """
        self._ensure_initialized()
        key_op = _parse_key_op(op)
        if not name:
            raise InvalidArgumentError("Key name cannot be empty")
        token = self._sessions.current_token()
        material = bytes(data) if data else None
        # Stores below are dropped if cleanup() runs during the backend call.
        generation = self._cache.generation

        response = self._call_backend(
            f"Key operation {key_op.value}", self._backend.key_op, token, key_op, name, material
        )

        if key_op is KeyOperationType.READ:
            if not response.key_material:
                raise KeyNotFoundError(name)
            return self._cache.put(name, response.key_material, generation=generation)

        if not response.success:
            raise BackendError(
                f"Backend rejected {key_op.value} for key {name!r}: "
                f"{response.message or 'no reason given'}"
            )

        if key_op is KeyOperationType.DELETE:
            self._cache.remove(name)
            return None

        if material is None:
            self._cache.remove(name)
            return None
        return self._cache.put(name, material, generation=generation)

    def _fetch_key(self, name: str) -> bytes:
        token = self._sessions.current_token()
        response = self._call_backend(
            "Key fetch", self._backend.key_op, token, KeyOperationType.READ, name, None
        )
        if not response.key_material:
            raise KeyNotFoundError(name)
        return bytes(response.key_material)

    def get_key(self, name: str) -> KeyEntry:
        """Return a key from the cache, fetching it on a miss.

        Raises:
            NotInitializedError: If init() has not been called.
            NoActiveSessionError: If a fetch is needed and no session exists.
            KeyNotFoundError: If the backend has no such key.
        """
        self._ensure_initialized()
        if not name:
            raise InvalidArgumentError("Key name cannot be empty")
        return self._cache.get(name)

    def do_crypto(
        self,
        op: CryptoOperationType | str,
        key_name: str,
        algorithm_id: str,
        data: bytes | str,
    ) -> bytes:
        """Encrypt or decrypt with a named key.

        Args:
            op: ENCRYPT or DECRYPT (case-insensitive).
            key_name: Name of the key to use.
            algorithm_id: Algorithm identifier, e.g. "AES-256-GCM".
            data: Plaintext (str is UTF-8 encoded) or encrypted blob.

        Returns:
            The encrypted blob or the plaintext.

        Raises:
            NotInitializedError: If init() has not been called.
            UnsupportedOperationError: For an unknown operation.
            KeyNotFoundError: If the key does not exist.
            CryptoError: For algorithm, key length or authentication failures.
        """
        self._ensure_initialized()
        crypto_op = _parse_crypto_op(op)
        payload = _as_bytes(data)
        entry = self.get_key(key_name)

        if crypto_op is CryptoOperationType.ENCRYPT:
            return crypto.encrypt(entry.key, algorithm_id, payload)
        return crypto.decrypt(entry.key, algorithm_id, payload)

    def encrypt(
        self, key_name: str, plaintext: bytes | str, algorithm_id: str | None = None
    ) -> bytes:
        """Encrypt with a named key and the configured default algorithm."""
        return self.do_crypto(
            CryptoOperationType.ENCRYPT,
            key_name,
            algorithm_id or self._config.default_algorithm,
            plaintext,
        )

    def decrypt(self, key_name: str, blob: bytes, algorithm_id: str | None = None) -> bytes:
        """Decrypt with a named key and the configured default algorithm."""
        return self.do_crypto(
            CryptoOperationType.DECRYPT,
            key_name,
            algorithm_id or self._config.default_algorithm,
            blob,
        )
