"""Turn each platform's ceremony result into the canonical result shape."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Union

from .codec import base64_to_base64url
from .errors import RequestFailedError
from .models import AuthenticationResult, CreateResult

__all__ = [
    "normalize_android_authentication",
    "normalize_android_registration",
    "normalize_ios_authentication",
    "normalize_ios_registration",
]

logger = logging.getLogger(__name__)

NativeResult = Union[str, bytes, Mapping[str, Any]]


def _as_mapping(result: NativeResult) -> Mapping[str, Any]:
    if isinstance(result, (str, bytes)):
        try:
            result = json.loads(result)
        except ValueError as exc:
            raise RequestFailedError("The platform returned malformed JSON") from exc
    if not isinstance(result, Mapping):
        raise RequestFailedError()
    return result


def _required(mapping: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = mapping.get(key)
        if isinstance(value, str) and value:
            return base64_to_base64url(value)
    logger.debug("Platform result is missing %s", " / ".join(keys))
    raise RequestFailedError()


def _optional(mapping: Mapping[str, Any], key: str) -> Optional[str]:
    value = mapping.get(key)
    if isinstance(value, str) and value:
        return base64_to_base64url(value)
    return None


def _attachment(mapping: Mapping[str, Any]) -> Optional[str]:
    value = mapping.get("authenticatorAttachment")
    return value if isinstance(value, str) and value else None


def _extension_results(mapping: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    value = mapping.get("clientExtensionResults")
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise RequestFailedError("The platform returned malformed extension results")
    return dict(value)


def normalize_ios_registration(result: NativeResult) -> CreateResult:
    """iOS reports credentials and raw payloads as padded standard base64."""

    native = _as_mapping(result)
    response = _as_mapping(native.get("response") or {})
    credential_id = _required(native, "credentialID")
    return CreateResult(
        id=credential_id,
        raw_id=credential_id,
        client_data_json=_required(response, "rawClientDataJSON"),
        attestation_object=_required(response, "rawAttestationObject"),
        authenticator_attachment=_attachment(native),
    )


def normalize_ios_authentication(result: NativeResult) -> AuthenticationResult:
    native = _as_mapping(result)
    response = _as_mapping(native.get("response") or {})
    credential_id = _required(native, "credentialID")
    return AuthenticationResult(
        id=credential_id,
        raw_id=credential_id,
        client_data_json=_required(response, "rawClientDataJSON"),
        authenticator_data=_required(response, "rawAuthenticatorData"),
        signature=_required(response, "signature"),
        user_handle=_optional(native, "userID"),
        authenticator_attachment=_attachment(native),
    )


def normalize_android_registration(result: NativeResult) -> CreateResult:
    """Android answers with WebAuthn JSON; ``rawId`` is taken from ``id``.

    ``clientExtensionResults`` is carried over as given.
    """

    native = _as_mapping(result)
    response = _as_mapping(native.get("response") or {})
    credential_id = _required(native, "id", "rawId")
    return CreateResult(
        id=credential_id,
        raw_id=credential_id,
        client_data_json=_required(response, "clientDataJSON"),
        attestation_object=_required(response, "attestationObject"),
        authenticator_attachment=_attachment(native),
        client_extension_results=_extension_results(native),
    )


def normalize_android_authentication(result: NativeResult) -> AuthenticationResult:
    native = _as_mapping(result)
    response = _as_mapping(native.get("response") or {})
    credential_id = _required(native, "id", "rawId")
    return AuthenticationResult(
        id=credential_id,
        raw_id=credential_id,
        client_data_json=_required(response, "clientDataJSON"),
        authenticator_data=_required(response, "authenticatorData"),
        signature=_required(response, "signature"),
        user_handle=_optional(response, "userHandle"),
        authenticator_attachment=_attachment(native),
        client_extension_results=_extension_results(native),
    )
