"""Backend collaborator boundary for the Crypto SDK.

The SDK core talks to the key-management service only through the
:class:`Backend` protocol. :class:`~cryptosdk.http.ApiClient` implements it
over HTTP; :class:`InMemoryBackend` implements it in process.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections import Counter
from typing import Any, Protocol, runtime_checkable

from .crypto import AES_256_GCM, generate_key
from .errors import ApiError, InvalidArgumentError, KeyNotFoundError
from .types import KeyOperationType, KeyOpResponse

logger = logging.getLogger("cryptosdk")

DEFAULT_SERVER_CONFIG: dict[str, Any] = {"api_version": "1.0", "features": [AES_256_GCM]}


@runtime_checkable
class Backend(Protocol):
    """Operations the SDK core consumes from the key-management service."""

    endpoint: str

    def fetch_config(self, registration_token: str) -> dict[str, Any]:
        """Register the application and return the server configuration."""
        ...

    def authenticate(self, identity: str, secret: str) -> str:
        """Authenticate and return an opaque bearer token."""
        ...

    def key_op(
        self,
        token: str,
        op: KeyOperationType,
        name: str,
        data: bytes | None,
    ) -> KeyOpResponse:
        """Perform a key operation; READ responses carry the key material."""
        ...

    def close(self) -> None:
        """Release transport resources."""
        ...


class InMemoryBackend:
    """In-process backend that keeps keys in a dictionary.

    It echoes state: keys written by CREATE/UPDATE are returned by READ
    and DELETE removes them. Every call is counted in :attr:`calls`, keyed
    by method name or key operation (``"READ"``, ``"CREATE"``, ...).

    Attributes:
        endpoint: Pseudo endpoint reported in sessions.
        calls: Call counter.
    """

    def __init__(
        self,
        *,
        users: dict[str, str] | None = None,
        keys: dict[str, bytes] | None = None,
        config: dict[str, Any] | None = None,
        latency: float = 0.0,
        endpoint: str = "memory://",
    ) -> None:
        """Initialize the backend.

        Args:
            users: Accepted identity/secret pairs. None accepts any
                non-empty credentials.
            keys: Initial key store.
            config: Configuration returned by fetch_config.
            latency: Seconds to sleep in every call.
            endpoint: Endpoint reported in sessions.
        """
        self.endpoint = endpoint
        self.calls: Counter[str] = Counter()
        self._users = users
        self._keys: dict[str, bytes] = dict(keys or {})
        self._config = dict(config) if config is not None else dict(DEFAULT_SERVER_CONFIG)
        self._latency = latency
        self._tokens: set[str] = set()
        self._lock = threading.Lock()

    def _record(self, call: str) -> None:
        with self._lock:
            self.calls[call] += 1
        logger.debug("In-memory backend call: %s", call)
        if self._latency:
            time.sleep(self._latency)

    def fetch_config(self, registration_token: str) -> dict[str, Any]:
        self._record("fetch_config")
        if not registration_token:
            raise ApiError(400, "Registration token is required")
        return dict(self._config)

    def authenticate(self, identity: str, secret: str) -> str:
        self._record("authenticate")
        if self._users is not None and self._users.get(identity) != secret:
            raise ApiError(401, "Invalid credentials")
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._tokens.add(token)
        return token

    def key_op(
        self,
        token: str,
        op: KeyOperationType,
        name: str,
        data: bytes | None,
    ) -> KeyOpResponse:
        op = KeyOperationType(op)
        self._record(op.value)

        with self._lock:
            if token not in self._tokens:
                raise ApiError(401, "Invalid or expired token")

            if op is KeyOperationType.READ:
                material = self._keys.get(name)
                if material is None:
                    raise KeyNotFoundError(name)
                return KeyOpResponse(key_material=material)

            if op is KeyOperationType.CREATE:
                if name in self._keys:
                    raise ApiError(409, f"Key already exists: {name}")
                self._keys[name] = bytes(data) if data else generate_key(AES_256_GCM)
                return KeyOpResponse(message="created")

            if op is KeyOperationType.UPDATE:
                if name not in self._keys:
                    raise KeyNotFoundError(name)
                self._keys[name] = bytes(data) if data else generate_key(AES_256_GCM)
                return KeyOpResponse(message="updated")

            if op is KeyOperationType.DELETE:
                if self._keys.pop(name, None) is None:
                    raise KeyNotFoundError(name)
                return KeyOpResponse(message="deleted")

        raise InvalidArgumentError(f"Unsupported key operation: {op}")  # pragma: no cover

    def has_key(self, name: str) -> bool:
        with self._lock:
            return name in self._keys

    def revoke_tokens(self) -> None:
        """Invalidate every issued token."""
        with self._lock:
            self._tokens.clear()

    def close(self) -> None:
        pass
