"""Error hierarchy for the Crypto SDK."""

from __future__ import annotations

from enum import Enum


class CryptoSdkError(Exception):
    """Base exception for all Crypto SDK errors."""

    pass


class NotInitializedError(CryptoSdkError):
    """Operation attempted before init() or after cleanup()."""

    pass


class AlreadyInitializedError(CryptoSdkError):
    """init() called on an initialized context."""

    pass


class InvalidArgumentError(CryptoSdkError):
    """Empty token, empty key name, or unknown operation type."""

    pass


class UnsupportedOperationError(InvalidArgumentError):
    """Unknown crypto operation type."""

    pass


class NoActiveSessionError(CryptoSdkError):
    """Key operation attempted without a session."""

    pass


class KeyNotFoundError(CryptoSdkError):
    """The backend holds no key with the requested name.

    Attributes:
        key_name: The name that was looked up.
    """

    def __init__(self, key_name: str, message: str | None = None) -> None:
        self.key_name = key_name
        super().__init__(message or f"Key not found: {key_name!r}")

    def __reduce__(self) -> tuple[type[KeyNotFoundError], tuple[str, str]]:
        return type(self), (self.key_name, str(self))


class CryptoErrorKind(str, Enum):
    """Failure kinds reported by the cipher engine."""

    BAD_ALGORITHM = "bad_algorithm"
    INCOMPATIBLE_KEY_LENGTH = "incompatible_key_length"
    AUTHENTICATION_FAILURE = "authentication_failure"
    MALFORMED_INPUT = "malformed_input"


class CryptoError(CryptoSdkError):
    """Cryptographic operation failure.

    AUTHENTICATION_FAILURE means the tag did not verify: the data was
    tampered with or the wrong key was used. It is never raised for
    malformed input.

    Attributes:
        kind: The failure kind.
        message: The error message.
    """

    def __init__(self, kind: CryptoErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{message} ({kind.value})")

    def __reduce__(self) -> tuple[type[CryptoError], tuple[CryptoErrorKind, str]]:
        return type(self), (self.kind, self.message)


class BackendError(CryptoSdkError):
    """Failure reported by, or while talking to, the key-management backend."""

    pass


class ApiError(BackendError):
    """HTTP API error with status code.

    Attributes:
        status_code: The HTTP status code.
        message: The error message.
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"API Error ({status_code}): {message}")

    def __reduce__(self) -> tuple[type[ApiError], tuple[int, str]]:
        return type(self), (self.status_code, self.message)


class NetworkError(BackendError):
    """Network communication failure."""

    pass
