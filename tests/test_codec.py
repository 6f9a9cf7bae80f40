import base64

import pytest

from fido2.utils import websafe_decode

from passkey_bridge.codec import (
    InvalidEncodingError,
    base64_decode,
    base64_to_base64url,
    base64url_decode,
    base64url_encode,
    base64url_to_base64,
    base64url_to_hex,
    hex_to_base64,
    hex_to_base64url,
    hex_to_bytes,
    is_valid_hex,
    strip_hex_prefix,
)


def test_strip_hex_prefix_removes_single_prefix():
    assert strip_hex_prefix("0xdeadbeef") == "deadbeef"
    assert strip_hex_prefix("deadbeef") == "deadbeef"
    assert strip_hex_prefix("0x0xab") == "0xab"


@pytest.mark.parametrize("value", ["00", "deadbeef", "DEADBEEF", "DeAdBeEf", "0123456789abcdef"])
def test_is_valid_hex_accepts_pairs_of_digits(value):
    assert is_valid_hex(value)


@pytest.mark.parametrize("value", ["", "a", "abc", "0xab", "zz", "de ad", "12g4"])
def test_is_valid_hex_rejects_malformed_text(value):
    assert not is_valid_hex(value)


def test_hex_to_base64url_round_trips_through_bytes():
    for value in ("00", "deadbeef", "fbff", "ff" * 33, "0x" + "3e" * 7):
        encoded = hex_to_base64url(value)
        assert "=" not in encoded
        assert "+" not in encoded and "/" not in encoded
        assert websafe_decode(encoded) == hex_to_bytes(value)
        assert base64url_decode(encoded) == bytes.fromhex(strip_hex_prefix(value))


def test_hex_to_base64url_uses_url_alphabet():
    assert hex_to_base64url("fbff") == "-_8"
    assert hex_to_base64("fbff") == "+/8="


@pytest.mark.parametrize("value", ["", "abc", "0x", "nothex", "0Xdeadbeef"])
def test_hex_to_base64url_rejects_invalid_hex(value):
    with pytest.raises(InvalidEncodingError):
        hex_to_base64url(value)


def test_base64_and_base64url_are_inverse_translations():
    data = bytes(range(256))
    standard = base64.b64encode(data).decode()
    url = base64_to_base64url(standard)

    assert url == base64.urlsafe_b64encode(data).decode().rstrip("=")
    assert base64url_to_base64(url) == standard
    assert base64_to_base64url(url) == url


@pytest.mark.parametrize("length", range(1, 9))
def test_base64url_to_base64_restores_padding(length):
    data = b"\xfa" * length
    url = base64url_encode(data)
    restored = base64url_to_base64(url)
    assert len(restored) % 4 == 0
    assert base64.b64decode(restored) == data


def test_base64url_to_hex():
    assert base64url_to_hex("3q2-7w") == "deadbeef"


def test_base64url_decode_rejects_foreign_characters():
    with pytest.raises(InvalidEncodingError):
        base64url_decode("ab+/")
    with pytest.raises(InvalidEncodingError):
        base64url_decode("abcde")


def test_base64_decode_accepts_missing_padding():
    assert base64_decode("3q2+7w") == bytes.fromhex("deadbeef")
    assert base64_decode("3q2+7w==") == bytes.fromhex("deadbeef")
    with pytest.raises(InvalidEncodingError):
        base64_decode("3q2-7w")
