"""Read-only helpers over ceremony results.

Nothing here verifies attestation; the helpers only unpack what the platform
returned so callers can store the public key or check the echoed challenge.
"""
from __future__ import annotations

from typing import Any, Dict, Union

from fido2.webauthn import AttestationObject, CollectedClientData

from .codec import InvalidEncodingError, base64url_decode, bytes_to_hex, hex_to_bytes
from .errors import InvalidChallengeError, RequestFailedError
from .models import WEBAUTHN_CREATE, AuthenticationResult, CreateResult

__all__ = ["extract_public_key", "parse_client_data", "verify_client_data"]

_EC2_KEY_TYPE = 2

Result = Union[CreateResult, AuthenticationResult]


def parse_client_data(client_data_json: str) -> CollectedClientData:
    """Decode a base64url ``clientDataJSON`` field."""

    try:
        return CollectedClientData(base64url_decode(client_data_json))
    except (InvalidEncodingError, ValueError, KeyError) as exc:
        raise RequestFailedError("clientDataJSON could not be decoded") from exc


def verify_client_data(result: Result, challenge_hex: str) -> CollectedClientData:
    """Check that ``result`` answers the ceremony started with ``challenge_hex``."""

    client_data = parse_client_data(result.client_data_json)
    try:
        expected = hex_to_bytes(challenge_hex)
    except InvalidEncodingError as exc:
        raise InvalidChallengeError() from exc
    if client_data.type != result.type:
        raise RequestFailedError(
            f"Expected {result.type!r} client data, got {client_data.type!r}"
        )
    if client_data.challenge != expected:
        raise InvalidChallengeError("The signed challenge does not match the request")
    return client_data


def extract_public_key(result: CreateResult) -> Dict[str, Any]:
    """Return the attested credential public key of a registration.

    EC2 keys come back as ``{"alg", "crv", "x", "y"}`` with hex coordinates,
    other key types as ``{"alg", "kty"}`` plus the COSE map.
    """

    if result.type != WEBAUTHN_CREATE:
        raise RequestFailedError("Only registration results carry a public key")
    try:
        attestation = AttestationObject(base64url_decode(result.attestation_object))
    except (InvalidEncodingError, ValueError, KeyError, TypeError) as exc:
        raise RequestFailedError("attestationObject could not be decoded") from exc

    credential_data = attestation.auth_data.credential_data
    if credential_data is None:
        raise RequestFailedError("attestationObject carries no credential data")

    cose_key = credential_data.public_key
    if cose_key.get(1) == _EC2_KEY_TYPE:
        return {
            "alg": cose_key.get(3),
            "crv": cose_key.get(-1),
            "x": bytes_to_hex(cose_key[-2]),
            "y": bytes_to_hex(cose_key[-3]),
        }
    return {"alg": cose_key.get(3), "kty": cose_key.get(1), "cose": dict(cose_key)}
