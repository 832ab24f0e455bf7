"""AEAD algorithm registry for the Crypto SDK."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..errors import CryptoError, CryptoErrorKind
from .constants import (
    AES_128_GCM,
    AES_128_KEY_SIZE,
    AES_256_GCM,
    AES_256_KEY_SIZE,
    AES_GCM_NONCE_SIZE,
    AES_GCM_TAG_SIZE,
    CHACHA20_KEY_SIZE,
    CHACHA20_NONCE_SIZE,
    CHACHA20_POLY1305,
    CHACHA20_TAG_SIZE,
)


class Aead(Protocol):
    """The subset of the cryptography AEAD interface used by the engine."""

    def encrypt(self, nonce: bytes, data: bytes, associated_data: bytes | None) -> bytes: ...

    def decrypt(self, nonce: bytes, data: bytes, associated_data: bytes | None) -> bytes: ...


@dataclass(frozen=True)
class AlgorithmSpec:
    """Parameters of an authenticated-encryption algorithm.

    Attributes:
        name: Canonical identifier.
        key_sizes: Accepted key lengths in bytes; the first is used by generate_key.
        nonce_size: Nonce length in bytes.
        tag_size: Authentication tag length in bytes.
        aead_factory: Builds the primitive from a key.
    """

    name: str
    key_sizes: tuple[int, ...]
    nonce_size: int
    tag_size: int
    aead_factory: Callable[[bytes], Aead]

    @property
    def key_size(self) -> int:
        return self.key_sizes[0]

    @property
    def overhead(self) -> int:
        """Bytes added to the plaintext by encryption (nonce plus tag)."""
        return self.nonce_size + self.tag_size


_AES_256_GCM = AlgorithmSpec(
    name=AES_256_GCM,
    key_sizes=(AES_256_KEY_SIZE,),
    nonce_size=AES_GCM_NONCE_SIZE,
    tag_size=AES_GCM_TAG_SIZE,
    aead_factory=AESGCM,
)

_AES_128_GCM = AlgorithmSpec(
    name=AES_128_GCM,
    key_sizes=(AES_128_KEY_SIZE,),
    nonce_size=AES_GCM_NONCE_SIZE,
    tag_size=AES_GCM_TAG_SIZE,
    aead_factory=AESGCM,
)

_CHACHA20_POLY1305 = AlgorithmSpec(
    name=CHACHA20_POLY1305,
    key_sizes=(CHACHA20_KEY_SIZE,),
    nonce_size=CHACHA20_NONCE_SIZE,
    tag_size=CHACHA20_TAG_SIZE,
    aead_factory=ChaCha20Poly1305,
)

# Upper-cased identifier -> spec. "AES/GCM/NoPadding" is the JCE-style name.
_REGISTRY: dict[str, AlgorithmSpec] = {
    "AES-256-GCM": _AES_256_GCM,
    "AES-GCM": _AES_256_GCM,
    "AES/GCM/NOPADDING": _AES_256_GCM,
    "AES-128-GCM": _AES_128_GCM,
    "CHACHA20-POLY1305": _CHACHA20_POLY1305,
}


def resolve_algorithm(algorithm_id: str) -> AlgorithmSpec:
    """Look up an algorithm by identifier (case-insensitive).

    Args:
        algorithm_id: Algorithm identifier, e.g. "AES-256-GCM".

    Returns:
        The matching AlgorithmSpec.

    Raises:
        CryptoError: BAD_ALGORITHM if the identifier is unknown.
    """
    if not isinstance(algorithm_id, str) or not algorithm_id:
        raise CryptoError(CryptoErrorKind.BAD_ALGORITHM, "Algorithm identifier is empty")
    spec = _REGISTRY.get(algorithm_id.strip().upper())
    if spec is None:
        raise CryptoError(
            CryptoErrorKind.BAD_ALGORITHM, f"Unsupported algorithm: {algorithm_id!r}"
        )
    return spec


def supported_algorithms() -> list[str]:
    """Return the accepted algorithm identifiers."""
    return sorted(_REGISTRY)
