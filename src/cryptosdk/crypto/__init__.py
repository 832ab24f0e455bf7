"""Cryptographic operations for the Crypto SDK."""

from .algorithms import AlgorithmSpec, resolve_algorithm, supported_algorithms
from .cipher import decrypt, encrypt, generate_key
from .constants import AES_128_GCM, AES_256_GCM, CHACHA20_POLY1305
from .utils import from_base64, from_hex, to_base64, to_hex

__all__ = [
    "AES_128_GCM",
    "AES_256_GCM",
    "CHACHA20_POLY1305",
    "AlgorithmSpec",
    "decrypt",
    "encrypt",
    "from_base64",
    "from_hex",
    "generate_key",
    "resolve_algorithm",
    "supported_algorithms",
    "to_base64",
    "to_hex",
]
