"""Cryptographic constants for the Crypto SDK."""

# AES-GCM constants
AES_256_KEY_SIZE = 32
AES_128_KEY_SIZE = 16
AES_GCM_NONCE_SIZE = 12
AES_GCM_TAG_SIZE = 16

# ChaCha20-Poly1305 constants
CHACHA20_KEY_SIZE = 32
CHACHA20_NONCE_SIZE = 12
CHACHA20_TAG_SIZE = 16

# Canonical algorithm identifiers
AES_256_GCM = "AES-256-GCM"
AES_128_GCM = "AES-128-GCM"
CHACHA20_POLY1305 = "CHACHA20-POLY1305"
