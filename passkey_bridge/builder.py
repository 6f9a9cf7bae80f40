"""Build canonical WebAuthn requests from a user, a hex challenge and overrides."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from fido2.webauthn import (
    AttestationConveyancePreference,
    AuthenticatorAttachment,
    AuthenticatorTransport,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from .codec import (
    InvalidEncodingError,
    base64url_encode,
    hex_to_base64url,
    is_valid_hex,
    strip_hex_prefix,
)
from .config import BridgeConfig, load_config
from .errors import InvalidChallengeError, InvalidOptionError, InvalidUserIdError
from .models import (
    DEFAULT_PUB_KEY_CRED_PARAMS,
    AuthenticationRequest,
    AuthenticatorSelectionCriteria,
    CreateRequest,
    CredentialDescriptor,
    PublicKeyCredentialParameters,
    RelyingParty,
    UserEntity,
    option_value,
)

__all__ = [
    "AUTHENTICATOR_TYPES",
    "MEDIATION_REQUIREMENTS",
    "build_authentication_request",
    "build_create_request",
    "encode_challenge",
    "transports_for",
]


_LOCAL_TRANSPORTS: Tuple[str, ...] = (AuthenticatorTransport.INTERNAL.value,)
_ROAMING_TRANSPORTS: Tuple[str, ...] = (
    AuthenticatorTransport.HYBRID.value,
    AuthenticatorTransport.USB.value,
    AuthenticatorTransport.BLE.value,
    AuthenticatorTransport.NFC.value,
)

AUTHENTICATOR_TYPES: Dict[str, Tuple[str, ...]] = {
    "auto": _LOCAL_TRANSPORTS,
    "local": _LOCAL_TRANSPORTS,
    "roaming": _ROAMING_TRANSPORTS,
    "extern": _ROAMING_TRANSPORTS,
    "both": _LOCAL_TRANSPORTS + _ROAMING_TRANSPORTS,
}

_ATTACHMENT_FOR_TYPE: Dict[str, Optional[str]] = {
    "local": AuthenticatorAttachment.PLATFORM.value,
    "roaming": AuthenticatorAttachment.CROSS_PLATFORM.value,
    "extern": AuthenticatorAttachment.CROSS_PLATFORM.value,
    "both": None,
}

# CredentialMediationRequirement; fido2 has no enum for it.
MEDIATION_REQUIREMENTS: Tuple[str, ...] = ("optional", "conditional", "required", "silent")

UserInput = Union[UserEntity, Mapping[str, Any]]


def transports_for(authenticator_type: Optional[str]) -> Tuple[str, ...]:
    """Transports to advertise for an ``authenticatorType`` hint."""

    if not authenticator_type or not isinstance(authenticator_type, str):
        return _LOCAL_TRANSPORTS
    return AUTHENTICATOR_TYPES.get(authenticator_type.strip().lower(), _LOCAL_TRANSPORTS)


def encode_challenge(challenge_hex: str) -> str:
    """Validate a hex challenge (``0x`` optional) and return it as base64url."""

    if not isinstance(challenge_hex, str):
        raise InvalidChallengeError()
    try:
        return hex_to_base64url(challenge_hex)
    except InvalidEncodingError as exc:
        raise InvalidChallengeError() from exc


def _encode_user_id(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        if not value:
            raise InvalidUserIdError()
        return base64url_encode(value)
    if not isinstance(value, str):
        raise InvalidUserIdError()
    try:
        return hex_to_base64url(value)
    except InvalidEncodingError as exc:
        raise InvalidUserIdError() from exc


def _build_user(user: UserInput, overrides: Mapping[str, Any]) -> UserEntity:
    if isinstance(user, UserEntity):
        entity = user
    else:
        if not isinstance(user, Mapping) or "id" not in user:
            raise InvalidUserIdError()
        name = str(user.get("name") or "")
        entity = UserEntity(
            id=_encode_user_id(user["id"]),
            name=name,
            display_name=str(user.get("displayName") or name),
        )

    display_name = overrides.get("displayName")
    if display_name:
        entity = UserEntity(id=entity.id, name=entity.name, display_name=str(display_name))
    return entity


def _encode_credential_id(value: Any, preserve: bool, option: str) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64url_encode(value)
    if not isinstance(value, str) or not value:
        raise InvalidOptionError(option, value)
    if preserve:
        return value
    if not is_valid_hex(strip_hex_prefix(value)):
        raise InvalidOptionError(
            option,
            value,
            f"Credential id {value!r} is not hex; pass bytes, a CredentialDescriptor "
            "or set preserveCredentials",
        )
    return hex_to_base64url(value)


def _sequence(value: Any, option: str) -> List[Any]:
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        raise InvalidOptionError(option, value)
    try:
        return list(value)
    except TypeError:
        raise InvalidOptionError(option, value) from None


def _descriptors(
    credentials: Any,
    transports: Optional[Sequence[str]],
    preserve: bool,
    option: str,
) -> Tuple[CredentialDescriptor, ...]:
    descriptors: List[CredentialDescriptor] = []
    for credential in _sequence(credentials, option):
        if isinstance(credential, CredentialDescriptor):
            descriptors.append(credential)
        elif isinstance(credential, Mapping):
            entry = CredentialDescriptor.from_dict(credential)
            descriptors.append(
                CredentialDescriptor(
                    id=_encode_credential_id(entry.id, preserve, option),
                    type=entry.type,
                    transports=entry.transports,
                )
            )
        else:
            descriptors.append(
                CredentialDescriptor(
                    id=_encode_credential_id(credential, preserve, option),
                    transports=tuple(transports) if transports is not None else None,
                )
            )
    return tuple(descriptors)


def _attestation(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        preference = (
            AttestationConveyancePreference.DIRECT
            if value
            else AttestationConveyancePreference.NONE
        )
        return preference.value
    return option_value(AttestationConveyancePreference, value, "attestation")


def _selection(overrides: Mapping[str, Any]) -> AuthenticatorSelectionCriteria:
    if "authenticatorSelection" in overrides:
        selection = overrides["authenticatorSelection"]
        if isinstance(selection, AuthenticatorSelectionCriteria):
            return selection
        return AuthenticatorSelectionCriteria.from_dict(selection or {})

    selection = AuthenticatorSelectionCriteria()
    attachment = selection.authenticator_attachment
    resident_key = selection.resident_key
    require_resident_key = selection.require_resident_key
    user_verification = selection.user_verification

    authenticator_type = overrides.get("authenticatorType")
    if isinstance(authenticator_type, str):
        key = authenticator_type.strip().lower()
        if key in _ATTACHMENT_FOR_TYPE:
            attachment = _ATTACHMENT_FOR_TYPE[key]

    discoverable = overrides.get("discoverable")
    if discoverable:
        resident_key = option_value(ResidentKeyRequirement, discoverable, "discoverable")
        require_resident_key = resident_key == ResidentKeyRequirement.REQUIRED.value

    if overrides.get("userVerification"):
        user_verification = option_value(
            UserVerificationRequirement, overrides["userVerification"], "userVerification"
        )

    return AuthenticatorSelectionCriteria(
        authenticator_attachment=attachment,
        resident_key=resident_key,
        require_resident_key=require_resident_key,
        user_verification=user_verification,
    )


def _relying_party(value: Any, config: BridgeConfig) -> RelyingParty:
    if value is None:
        return config.relying_party
    if isinstance(value, RelyingParty):
        return value
    return RelyingParty.from_dict(value)


def _timeout(overrides: Mapping[str, Any], config: BridgeConfig) -> Optional[int]:
    if "timeout" not in overrides:
        return config.timeout
    value = overrides["timeout"]
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidOptionError("timeout", value)
    try:
        timeout = int(value)
    except (TypeError, ValueError):
        raise InvalidOptionError("timeout", value) from None
    if timeout <= 0:
        raise InvalidOptionError("timeout", value)
    return timeout


def _extensions(overrides: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    value = overrides.get("extensions")
    if value is not None and not isinstance(value, Mapping):
        raise InvalidOptionError("extensions", value)
    return value


def _mediation(overrides: Mapping[str, Any]) -> Optional[str]:
    value = overrides.get("mediation")
    if value is None:
        return None
    if value not in MEDIATION_REQUIREMENTS:
        raise InvalidOptionError("mediation", value)
    return value


def build_create_request(
    user: UserInput,
    challenge_hex: str,
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    config: Optional[BridgeConfig] = None,
) -> CreateRequest:
    """Build a registration request.

    A field present in ``overrides`` replaces the default for that field
    wholesale; nested defaults are not merged. The shorthand options
    ``userVerification``, ``authenticatorType`` and ``discoverable`` only
    apply when ``authenticatorSelection`` itself is not overridden.

    Raises :class:`InvalidChallengeError` or :class:`InvalidUserIdError`
    before anything else happens when the inputs cannot be encoded, and
    :class:`InvalidOptionError` for an override the request cannot carry.
    """

    overrides = overrides or {}
    config = config or load_config()

    challenge = encode_challenge(challenge_hex)
    entity = _build_user(user, overrides)

    if "pubKeyCredParams" in overrides:
        params = tuple(
            p if isinstance(p, PublicKeyCredentialParameters) else PublicKeyCredentialParameters.from_dict(p)
            for p in _sequence(overrides["pubKeyCredParams"], "pubKeyCredParams")
        )
    else:
        params = DEFAULT_PUB_KEY_CRED_PARAMS

    exclude = overrides.get("excludeCredentials")
    preserve = bool(overrides.get("preserveCredentials"))

    return CreateRequest(
        rp=_relying_party(overrides.get("rp"), config),
        user=entity,
        challenge=challenge,
        pub_key_cred_params=params,
        authenticator_selection=_selection(overrides),
        attestation=_attestation(overrides.get("attestation")),
        timeout=_timeout(overrides, config),
        exclude_credentials=(
            _descriptors(exclude, None, preserve, "excludeCredentials")
            if exclude is not None
            else None
        ),
        extensions=_extensions(overrides),
    )


def build_authentication_request(
    credential_ids: Iterable[Any],
    challenge_hex: str,
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    config: Optional[BridgeConfig] = None,
) -> AuthenticationRequest:
    """Build an assertion request for the given credential ids.

    Each id becomes a descriptor whose transports follow the
    ``authenticatorType`` hint. Text ids must be hex and are converted to
    base64url. With ``preserveCredentials`` they are passed through untouched
    instead. Bytes and :class:`CredentialDescriptor` entries need no hint.
    """

    overrides = overrides or {}
    config = config or load_config()

    challenge = encode_challenge(challenge_hex)

    rp_id = overrides.get("rpId")
    if rp_id is None and isinstance(overrides.get("rp"), Mapping):
        rp_id = overrides["rp"].get("id")

    if "allowCredentials" in overrides:
        allow = overrides["allowCredentials"]
        option = "allowCredentials"
    else:
        allow = credential_ids if credential_ids is not None else ()
        option = "credentialIds"

    return AuthenticationRequest(
        challenge=challenge,
        rp_id=str(rp_id or config.rp_id),
        allow_credentials=(
            _descriptors(
                allow,
                transports_for(overrides.get("authenticatorType")),
                bool(overrides.get("preserveCredentials")),
                option,
            )
            if allow is not None
            else None
        ),
        user_verification=option_value(
            UserVerificationRequirement,
            overrides.get("userVerification") or UserVerificationRequirement.PREFERRED,
            "userVerification",
        ),
        timeout=_timeout(overrides, config),
        extensions=_extensions(overrides),
        mediation=_mediation(overrides),
    )
