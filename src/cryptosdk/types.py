"""Type definitions for the Crypto SDK."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .constants import (
    DEFAULT_ALGORITHM,
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_RETRY_STATUS_CODES,
    DEFAULT_TIMEOUT_MS,
    ENV_PREFIX,
)


class SdkState(str, Enum):
    """Lifecycle state of an SdkContext."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class KeyOperationType(str, Enum):
    """Key management operations understood by the backend."""

    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class CryptoOperationType(str, Enum):
    """Cryptographic operations performed locally."""

    ENCRYPT = "ENCRYPT"
    DECRYPT = "DECRYPT"


@dataclass
class ClientConfig:
    """Configuration for the HTTP backend client.

    Attributes:
        base_url: Base URL for the key-management API.
        timeout: HTTP request timeout in milliseconds.
        max_retries: Maximum number of retry attempts.
        retry_delay: Initial retry delay in milliseconds.
        retry_on_status_codes: HTTP status codes to retry on.
        default_algorithm: Algorithm used by SdkContext.encrypt/decrypt.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: int = DEFAULT_RETRY_DELAY_MS
    retry_on_status_codes: tuple[int, ...] = DEFAULT_RETRY_STATUS_CODES
    default_algorithm: str = DEFAULT_ALGORITHM

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> ClientConfig:
        """Build a configuration from environment variables.

        Recognized variables (with the default prefix): CRYPTOSDK_BASE_URL,
        CRYPTOSDK_TIMEOUT, CRYPTOSDK_MAX_RETRIES, CRYPTOSDK_RETRY_DELAY,
        CRYPTOSDK_RETRY_STATUS_CODES (comma separated) and
        CRYPTOSDK_DEFAULT_ALGORITHM. Unset variables keep their defaults.

        Args:
            prefix: Prefix of the environment variable names.

        Returns:
            A new ClientConfig.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        config = cls()
        env = os.environ

        if base_url := env.get(f"{prefix}BASE_URL"):
            config.base_url = base_url
        if timeout := env.get(f"{prefix}TIMEOUT"):
            config.timeout = int(timeout)
        if max_retries := env.get(f"{prefix}MAX_RETRIES"):
            config.max_retries = int(max_retries)
        if retry_delay := env.get(f"{prefix}RETRY_DELAY"):
            config.retry_delay = int(retry_delay)
        if status_codes := env.get(f"{prefix}RETRY_STATUS_CODES"):
            config.retry_on_status_codes = tuple(
                int(code) for code in status_codes.split(",") if code.strip()
            )
        if algorithm := env.get(f"{prefix}DEFAULT_ALGORITHM"):
            config.default_algorithm = algorithm
        return config


@dataclass
class ServerConfig:
    """Configuration fetched from the backend during init.

    Attributes:
        api_version: API version advertised by the backend.
        features: Feature flags or algorithm names advertised by the backend.
        raw: The full configuration document.
    """

    api_version: str | None = None
    features: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServerConfig:
        features = data.get("features") or []
        return cls(
            api_version=data.get("api_version"),
            features=[str(f) for f in features],
            raw=dict(data),
        )


@dataclass
class Session:
    """An authenticated session with the backend.

    Attributes:
        token: Opaque bearer token.
        endpoint: Backend endpoint the token was issued for.
        created_at: When the session was established.
    """

    token: str
    endpoint: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"Session(endpoint={self.endpoint!r}, created_at={self.created_at.isoformat()})"


@dataclass(eq=False)
class KeyEntry:
    """A named symmetric key held in the key cache.

    The material is kept in a mutable buffer so it can be overwritten
    when the cache is cleared.

    Attributes:
        name: Unique key name.
        material: Raw key bytes.
    """

    name: str
    material: bytearray

    @property
    def key(self) -> bytes:
        """Immutable copy of the key material."""
        return bytes(self.material)

    def __len__(self) -> int:
        return len(self.material)

    def scrub(self) -> None:
        """Overwrite the key material with zeros."""
        for i in range(len(self.material)):
            self.material[i] = 0

    def __repr__(self) -> str:
        return f"KeyEntry(name={self.name!r}, length={len(self.material)})"


@dataclass
class KeyOpResponse:
    """Backend response to a key operation.

    Attributes:
        success: Whether the backend acknowledged the operation.
        key_material: Raw key bytes (READ only).
        message: Optional status message from the backend.
    """

    success: bool = True
    key_material: bytes | None = None
    message: str | None = None
