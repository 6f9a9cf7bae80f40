"""Text encoding helpers shared by the request builder and the backends.

Callers only ever see unpadded base64url. The iOS bridge wants padded
standard base64, Android speaks base64url, and signers and wallets hand us
hex. Every conversion between those forms lives here.
"""
from __future__ import annotations

import base64
import binascii
import re
from typing import Union

from fido2.utils import websafe_decode, websafe_encode

__all__ = [
    "InvalidEncodingError",
    "base64_decode",
    "base64_encode",
    "base64_to_base64url",
    "base64url_decode",
    "base64url_encode",
    "base64url_to_base64",
    "base64url_to_hex",
    "bytes_to_hex",
    "hex_to_base64",
    "hex_to_base64url",
    "hex_to_bytes",
    "is_valid_hex",
    "strip_hex_prefix",
]


_HEX_PATTERN = re.compile(r"^(?:[0-9a-fA-F]{2})+$")
_BASE64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]*$")

BytesLike = Union[bytes, bytearray, memoryview]


class InvalidEncodingError(ValueError):
    """Raised when text is not valid in the encoding it claims to be."""


def strip_hex_prefix(value: str) -> str:
    """Remove a single leading ``0x`` from ``value``."""

    if value.startswith("0x"):
        return value[2:]
    return value


def is_valid_hex(value: str) -> bool:
    """Return ``True`` for one or more pairs of hex digits, without prefix."""

    if not isinstance(value, str):
        return False
    return _HEX_PATTERN.match(value) is not None


def hex_to_bytes(value: str) -> bytes:
    cleaned = strip_hex_prefix(value)
    if not is_valid_hex(cleaned):
        raise InvalidEncodingError(f"Invalid hex string: {value!r}")
    return bytes.fromhex(cleaned)


def bytes_to_hex(data: BytesLike) -> str:
    return bytes(data).hex()


def hex_to_base64url(value: str) -> str:
    """Convert hex text (``0x`` optional) to unpadded base64url."""

    return base64url_encode(hex_to_bytes(value))


def hex_to_base64(value: str) -> str:
    """Convert hex text (``0x`` optional) to padded standard base64."""

    return base64_encode(hex_to_bytes(value))


def base64_to_base64url(value: str) -> str:
    """Swap to the url-safe alphabet and drop padding.

    Already url-safe input comes back unchanged, so the function can be used
    to canonicalise text whose exact flavour is unknown.
    """

    return value.replace("+", "-").replace("/", "_").replace("=", "")


def base64url_to_base64(value: str) -> str:
    """Restore the standard alphabet and pad to a multiple of four."""

    converted = value.replace("-", "+").replace("_", "/")
    return converted + "=" * (-len(converted) % 4)


def base64url_encode(data: BytesLike) -> str:
    return websafe_encode(bytes(data))


def base64url_decode(value: str) -> bytes:
    if not isinstance(value, str) or not _BASE64URL_PATTERN.match(value.rstrip("=")):
        raise InvalidEncodingError(f"Invalid base64url string: {value!r}")
    try:
        return websafe_decode(value.rstrip("="))
    except (ValueError, binascii.Error) as exc:
        raise InvalidEncodingError(f"Invalid base64url string: {value!r}") from exc


def base64url_to_hex(value: str) -> str:
    return bytes_to_hex(base64url_decode(value))


def base64_encode(data: BytesLike) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def base64_decode(value: str) -> bytes:
    """Decode padded or unpadded standard base64, rejecting stray characters."""

    if not isinstance(value, str):
        raise InvalidEncodingError("base64 input must be text")
    cleaned = value.rstrip("=")
    try:
        return base64.b64decode(cleaned + "=" * (-len(cleaned) % 4), validate=True)
    except (ValueError, binascii.Error) as exc:
        raise InvalidEncodingError(f"Invalid base64 string: {value!r}") from exc
