"""Split DER encoded ECDSA signatures into their raw ``r`` and ``s`` values.

Assertion signatures come back from the platform as an ASN.1
``ECDSA-Sig-Value``::

    30 <len> 02 <rLen> <r> 02 <sLen> <s>

Raw consumers (contracts, fixed-width verifiers) want the two integers on
their own. DER prefixes an integer with ``00`` when its high bit is set; that
byte is not part of the value and is dropped here.

Only single-byte lengths are read, which covers P-256 and every other curve
whose integers stay under 128 bytes. Signatures that use the long length
form are rejected rather than decoded.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from .codec import BytesLike, InvalidEncodingError, base64url_decode, bytes_to_hex, hex_to_bytes

__all__ = [
    "DerSignature",
    "InvalidSignatureError",
    "decode_assertion_signature",
    "decode_der_signature",
    "to_raw_signature",
]

_SEQUENCE = 0x30
_INTEGER = 0x02
_LONG_FORM = 0x80


class InvalidSignatureError(ValueError):
    """The input does not have the layout of a short-form DER signature."""


@dataclass(frozen=True)
class DerSignature:
    """``r`` and ``s`` as lowercase hex, leading zero bytes removed."""

    r: str
    s: str

    def to_dict(self):
        return {"r": self.r, "s": self.s}


def _as_bytes(data: Union[BytesLike, str]) -> bytes:
    if isinstance(data, str):
        try:
            return hex_to_bytes(data)
        except InvalidEncodingError as exc:
            raise InvalidSignatureError("Signature text must be hex") from exc
    return bytes(data)


def _length_at(data: bytes, offset: int) -> int:
    if offset >= len(data):
        raise InvalidSignatureError("Truncated DER signature")
    length = data[offset]
    if length & _LONG_FORM:
        raise InvalidSignatureError("Multi-byte DER lengths are not supported")
    return length


def _expect_tag(data: bytes, offset: int, tag: int) -> None:
    if offset >= len(data) or data[offset] != tag:
        raise InvalidSignatureError(
            f"Expected DER tag 0x{tag:02x} at offset {offset}"
        )


def _split(data: bytes) -> Tuple[bytes, bytes]:
    _expect_tag(data, 0, _SEQUENCE)
    total = _length_at(data, 1)
    if total != len(data) - 2:
        raise InvalidSignatureError("DER sequence length does not match the input")

    _expect_tag(data, 2, _INTEGER)
    r_len = _length_at(data, 3)
    r = data[4 : 4 + r_len]

    _expect_tag(data, 4 + r_len, _INTEGER)
    s_len = _length_at(data, 5 + r_len)
    s = data[6 + r_len : 6 + r_len + s_len]

    if len(r) != r_len or len(s) != s_len or 6 + r_len + s_len != len(data):
        raise InvalidSignatureError("DER integer lengths do not match the input")
    return r.lstrip(b"\x00"), s.lstrip(b"\x00")


def decode_der_signature(data: Union[BytesLike, str]) -> DerSignature:
    """Decode a DER ECDSA signature given as bytes or hex text."""

    r, s = _split(_as_bytes(data))
    return DerSignature(r=bytes_to_hex(r), s=bytes_to_hex(s))


def to_raw_signature(data: Union[BytesLike, str], size: int = 32) -> bytes:
    """Return the fixed-width ``r || s`` form, each value left-padded to ``size``."""

    r, s = _split(_as_bytes(data))
    if len(r) > size or len(s) > size:
        raise InvalidSignatureError(f"Signature values do not fit in {size} bytes")
    return r.rjust(size, b"\x00") + s.rjust(size, b"\x00")


def decode_assertion_signature(signature: str) -> DerSignature:
    """Decode the base64url ``signature`` field of an authentication result."""

    try:
        raw = base64url_decode(signature)
    except InvalidEncodingError as exc:
        raise InvalidSignatureError("Signature is not base64url") from exc
    return decode_der_signature(raw)
