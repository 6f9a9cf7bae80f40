"""Canonical request and result shapes exchanged with callers.

Binary members are held as unpadded base64url text. ``to_dict`` renders the
WebAuthn JSON layout (camelCase keys, optional members omitted).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from fido2.cose import ES256
from fido2.webauthn import (
    AuthenticatorAttachment,
    AuthenticatorTransport,
    PublicKeyCredentialType,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from .errors import InvalidOptionError

__all__ = [
    "AuthenticationRequest",
    "AuthenticationResult",
    "AuthenticatorSelectionCriteria",
    "CreateRequest",
    "CreateResult",
    "CredentialDescriptor",
    "PublicKeyCredentialParameters",
    "RelyingParty",
    "UserEntity",
    "WEBAUTHN_CREATE",
    "WEBAUTHN_GET",
    "option_value",
]

WEBAUTHN_CREATE = "webauthn.create"
WEBAUTHN_GET = "webauthn.get"

PUBLIC_KEY = PublicKeyCredentialType.PUBLIC_KEY.value


def option_value(enum_type: Any, value: Any, option: str) -> str:
    """Resolve ``value`` against one of the fido2 string enums.

    fido2 2.x returns ``None`` for unrecognized strings instead of raising,
    so both outcomes are turned into :class:`InvalidOptionError`.
    """

    try:
        member = enum_type(getattr(value, "value", value))
    except (TypeError, ValueError):
        member = None
    if member is None:
        raise InvalidOptionError(option, value)
    return member.value


def _mapping(data: Any, option: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise InvalidOptionError(option, data)
    return data


def _required(data: Mapping[str, Any], key: str, option: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise InvalidOptionError(option, dict(data), f"{option} is missing {key!r}")
    return value


@dataclass(frozen=True)
class RelyingParty:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RelyingParty":
        data = _mapping(data, "rp")
        rp_id = str(_required(data, "id", "rp"))
        return cls(id=rp_id, name=str(data.get("name") or rp_id))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class UserEntity:
    id: str
    name: str
    display_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "displayName": self.display_name}


@dataclass(frozen=True)
class CredentialDescriptor:
    id: str
    type: str = PUBLIC_KEY
    transports: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CredentialDescriptor":
        data = _mapping(data, "credentials")
        transports = data.get("transports")
        if transports is not None and isinstance(transports, (str, bytes)):
            raise InvalidOptionError("transports", transports)
        return cls(
            id=str(_required(data, "id", "credentials")),
            type=str(data.get("type") or PUBLIC_KEY),
            transports=(
                tuple(option_value(AuthenticatorTransport, t, "transports") for t in transports)
                if transports is not None
                else None
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "id": self.id}
        if self.transports is not None:
            data["transports"] = list(self.transports)
        return data


@dataclass(frozen=True)
class PublicKeyCredentialParameters:
    alg: int
    type: str = PUBLIC_KEY

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PublicKeyCredentialParameters":
        data = _mapping(data, "pubKeyCredParams")
        alg = _required(data, "alg", "pubKeyCredParams")
        if isinstance(alg, bool) or not isinstance(alg, int):
            raise InvalidOptionError("pubKeyCredParams", alg)
        return cls(alg=alg, type=str(data.get("type") or PUBLIC_KEY))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "alg": self.alg}


DEFAULT_PUB_KEY_CRED_PARAMS: Tuple[PublicKeyCredentialParameters, ...] = (
    PublicKeyCredentialParameters(alg=ES256.ALGORITHM),
)


@dataclass(frozen=True)
class AuthenticatorSelectionCriteria:
    authenticator_attachment: Optional[str] = AuthenticatorAttachment.PLATFORM.value
    resident_key: str = ResidentKeyRequirement.REQUIRED.value
    require_resident_key: bool = True
    user_verification: str = UserVerificationRequirement.PREFERRED.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AuthenticatorSelectionCriteria":
        data = _mapping(data, "authenticatorSelection")
        attachment = data.get("authenticatorAttachment")
        resident_key = data.get("residentKey")
        require_resident_key = data.get("requireResidentKey")
        if resident_key is None:
            resident_key = (
                ResidentKeyRequirement.REQUIRED
                if require_resident_key
                else ResidentKeyRequirement.DISCOURAGED
            )
        resident_key = option_value(ResidentKeyRequirement, resident_key, "residentKey")
        if require_resident_key is None:
            require_resident_key = resident_key == ResidentKeyRequirement.REQUIRED.value
        return cls(
            authenticator_attachment=(
                option_value(AuthenticatorAttachment, attachment, "authenticatorAttachment")
                if attachment is not None
                else None
            ),
            resident_key=resident_key,
            require_resident_key=bool(require_resident_key),
            user_verification=option_value(
                UserVerificationRequirement,
                data.get("userVerification") or UserVerificationRequirement.PREFERRED,
                "userVerification",
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.authenticator_attachment is not None:
            data["authenticatorAttachment"] = self.authenticator_attachment
        data["residentKey"] = self.resident_key
        data["requireResidentKey"] = self.require_resident_key
        data["userVerification"] = self.user_verification
        return data


@dataclass(frozen=True)
class CreateRequest:
    rp: RelyingParty
    user: UserEntity
    challenge: str
    pub_key_cred_params: Tuple[PublicKeyCredentialParameters, ...] = DEFAULT_PUB_KEY_CRED_PARAMS
    authenticator_selection: AuthenticatorSelectionCriteria = field(
        default_factory=AuthenticatorSelectionCriteria
    )
    attestation: Optional[str] = None
    timeout: Optional[int] = None
    exclude_credentials: Optional[Tuple[CredentialDescriptor, ...]] = None
    extensions: Optional[Mapping[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "challenge": self.challenge,
            "rp": self.rp.to_dict(),
            "user": self.user.to_dict(),
            "pubKeyCredParams": [p.to_dict() for p in self.pub_key_cred_params],
            "authenticatorSelection": self.authenticator_selection.to_dict(),
        }
        if self.timeout is not None:
            data["timeout"] = self.timeout
        if self.attestation is not None:
            data["attestation"] = self.attestation
        if self.exclude_credentials is not None:
            data["excludeCredentials"] = [c.to_dict() for c in self.exclude_credentials]
        if self.extensions is not None:
            data["extensions"] = dict(self.extensions)
        return data


@dataclass(frozen=True)
class AuthenticationRequest:
    challenge: str
    rp_id: str
    allow_credentials: Optional[Tuple[CredentialDescriptor, ...]] = None
    user_verification: str = UserVerificationRequirement.PREFERRED.value
    timeout: Optional[int] = None
    extensions: Optional[Mapping[str, Any]] = None
    mediation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"challenge": self.challenge, "rpId": self.rp_id}
        if self.timeout is not None:
            data["timeout"] = self.timeout
        if self.allow_credentials is not None:
            data["allowCredentials"] = [c.to_dict() for c in self.allow_credentials]
        data["userVerification"] = self.user_verification
        if self.extensions is not None:
            data["extensions"] = dict(self.extensions)
        if self.mediation is not None:
            data["mediation"] = self.mediation
        return data


@dataclass(frozen=True)
class CreateResult:
    id: str
    raw_id: str
    client_data_json: str
    attestation_object: str
    authenticator_attachment: Optional[str] = None
    client_extension_results: Optional[Mapping[str, Any]] = None
    type: str = WEBAUTHN_CREATE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "rawId": self.raw_id,
            "type": self.type,
            "response": {
                "clientDataJSON": self.client_data_json,
                "attestationObject": self.attestation_object,
            },
        }
        if self.authenticator_attachment is not None:
            data["authenticatorAttachment"] = self.authenticator_attachment
        if self.client_extension_results is not None:
            data["clientExtensionResults"] = dict(self.client_extension_results)
        return data


@dataclass(frozen=True)
class AuthenticationResult:
    id: str
    raw_id: str
    client_data_json: str
    authenticator_data: str
    signature: str
    user_handle: Optional[str] = None
    authenticator_attachment: Optional[str] = None
    client_extension_results: Optional[Mapping[str, Any]] = None
    type: str = WEBAUTHN_GET

    def to_dict(self) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "clientDataJSON": self.client_data_json,
            "authenticatorData": self.authenticator_data,
            "signature": self.signature,
        }
        if self.user_handle is not None:
            response["userHandle"] = self.user_handle
        data: Dict[str, Any] = {
            "id": self.id,
            "rawId": self.raw_id,
            "type": self.type,
            "response": response,
        }
        if self.authenticator_attachment is not None:
            data["authenticatorAttachment"] = self.authenticator_attachment
        if self.client_extension_results is not None:
            data["clientExtensionResults"] = dict(self.client_extension_results)
        return data
