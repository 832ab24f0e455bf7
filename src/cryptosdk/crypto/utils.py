"""Encoding utilities for key material on the wire."""

import base64
import binascii


def to_hex(data: bytes) -> str:
    """Encode bytes to a lowercase hex string.

    Args:
        data: The bytes to encode.

    Returns:
        Hex string.
    """
    return data.hex()


def from_hex(s: str) -> bytes:
    """Decode a hex string to bytes.

    Args:
        s: The hex string to decode. Surrounding whitespace is ignored.

    Returns:
        The decoded bytes.

    Raises:
        ValueError: If the string is not valid hex.
    """
    try:
        return bytes.fromhex(s.strip())
    except ValueError as e:
        raise ValueError(f"Invalid hex string: {e}") from e


def to_base64(data: bytes) -> str:
    """Encode bytes to standard base64.

    Args:
        data: The bytes to encode.

    Returns:
        Standard base64 string with padding.
    """
    return base64.b64encode(data).decode("ascii")


def from_base64(s: str) -> bytes:
    """Decode standard base64 string to bytes.

    Args:
        s: The base64 string to decode.

    Returns:
        The decoded bytes.

    Raises:
        ValueError: If the string is not valid base64.
    """
    try:
        return base64.b64decode(s, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 string: {e}") from e
