"""Authenticated encryption and decryption for the Crypto SDK.

Encrypted blobs are framed as ``nonce || ciphertext || tag``. A fresh
random nonce is drawn for every call to :func:`encrypt`.
"""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag

from ..errors import CryptoError, CryptoErrorKind
from .algorithms import AlgorithmSpec, resolve_algorithm


def _check_key(spec: AlgorithmSpec, key: bytes) -> None:
    if len(key) not in spec.key_sizes:
        expected = " or ".join(str(size) for size in spec.key_sizes)
        raise CryptoError(
            CryptoErrorKind.INCOMPATIBLE_KEY_LENGTH,
            f"{spec.name} requires a {expected}-byte key, got {len(key)} bytes",
        )


def encrypt(
    key: bytes,
    algorithm_id: str,
    plaintext: bytes,
    associated_data: bytes | None = None,
) -> bytes:
    """Encrypt plaintext and return the framed blob.

    Args:
        key: Raw key bytes.
        algorithm_id: Algorithm identifier, e.g. "AES-256-GCM".
        plaintext: Data to encrypt.
        associated_data: Optional data authenticated but not encrypted.

    Returns:
        ``nonce || ciphertext_and_tag``.

    Raises:
        CryptoError: BAD_ALGORITHM or INCOMPATIBLE_KEY_LENGTH.
    """
    spec = resolve_algorithm(algorithm_id)
    key = bytes(key)
    _check_key(spec, key)

    nonce = os.urandom(spec.nonce_size)
    aead = spec.aead_factory(key)
    ciphertext = aead.encrypt(nonce, bytes(plaintext), associated_data)
    return nonce + ciphertext


def decrypt(
    key: bytes,
    algorithm_id: str,
    blob: bytes,
    associated_data: bytes | None = None,
) -> bytes:
    """Decrypt a framed blob produced by :func:`encrypt`.

    Args:
        key: Raw key bytes.
        algorithm_id: Algorithm identifier, e.g. "AES-256-GCM".
        blob: ``nonce || ciphertext_and_tag``.
        associated_data: Data that was authenticated during encryption.

    Returns:
        The plaintext.

    Raises:
        CryptoError: BAD_ALGORITHM, INCOMPATIBLE_KEY_LENGTH or MALFORMED_INPUT
            for bad usage; AUTHENTICATION_FAILURE if the tag does not verify.
    """
    spec = resolve_algorithm(algorithm_id)
    key = bytes(key)
    _check_key(spec, key)

    blob = bytes(blob)
    if len(blob) < spec.overhead:
        raise CryptoError(
            CryptoErrorKind.MALFORMED_INPUT,
            f"Ciphertext too short: {len(blob)} bytes, "
            f"expected at least {spec.overhead} for {spec.name}",
        )

    nonce, ciphertext = blob[: spec.nonce_size], blob[spec.nonce_size :]
    aead = spec.aead_factory(key)
    try:
        return aead.decrypt(nonce, ciphertext, associated_data)
    except InvalidTag as e:
        raise CryptoError(
            CryptoErrorKind.AUTHENTICATION_FAILURE,
            "Decryption failed: data is corrupt or the key is incorrect",
        ) from e


def generate_key(algorithm_id: str) -> bytes:
    """Generate a random key for the given algorithm.

    Args:
        algorithm_id: Algorithm identifier.

    Returns:
        Fresh key bytes of the algorithm's key size.

    Raises:
        CryptoError: BAD_ALGORITHM if the identifier is unknown.
    """
    spec = resolve_algorithm(algorithm_id)
    return os.urandom(spec.key_size)
