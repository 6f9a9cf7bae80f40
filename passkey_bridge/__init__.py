"""Normalized passkey registration and authentication across iOS and Android."""
from __future__ import annotations

from .codec import (
    InvalidEncodingError,
    base64_to_base64url,
    base64url_to_base64,
    hex_to_base64url,
    is_valid_hex,
    strip_hex_prefix,
)
from .config import BridgeConfig, load_config
from .der import DerSignature, InvalidSignatureError, decode_der_signature
from .dispatcher import CeremonyRegistry, PasskeyBridge
from .errors import (
    ErrorCode,
    InterruptedCeremonyError,
    InvalidChallengeError,
    InvalidOptionError,
    InvalidUserIdError,
    NativeCeremonyError,
    NativeError,
    NoCredentialsError,
    NotConfiguredError,
    NotSupportedError,
    Outcome,
    PasskeyError,
    RequestFailedError,
    UnknownError,
    UserCancelledError,
    map_native_error,
)
from .builder import build_authentication_request, build_create_request
from .models import AuthenticationResult, CreateResult
from .support import PlatformInfo, is_supported

__all__ = [
    "AuthenticationResult",
    "BridgeConfig",
    "CeremonyRegistry",
    "CreateResult",
    "DerSignature",
    "ErrorCode",
    "InterruptedCeremonyError",
    "InvalidChallengeError",
    "InvalidEncodingError",
    "InvalidOptionError",
    "InvalidSignatureError",
    "InvalidUserIdError",
    "NativeCeremonyError",
    "NativeError",
    "NoCredentialsError",
    "NotConfiguredError",
    "NotSupportedError",
    "Outcome",
    "PasskeyBridge",
    "PasskeyError",
    "PlatformInfo",
    "RequestFailedError",
    "UnknownError",
    "UserCancelledError",
    "base64_to_base64url",
    "base64url_to_base64",
    "build_authentication_request",
    "build_create_request",
    "decode_der_signature",
    "hex_to_base64url",
    "is_supported",
    "is_valid_hex",
    "load_config",
    "map_native_error",
    "strip_hex_prefix",
]
