"""Typed passkey errors and the translation of native error signals."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Type, TypeVar, Union

__all__ = [
    "ErrorCode",
    "InterruptedCeremonyError",
    "InvalidChallengeError",
    "InvalidOptionError",
    "InvalidUserIdError",
    "NativeCeremonyError",
    "NativeError",
    "NoCredentialsError",
    "NotConfiguredError",
    "NotSupportedError",
    "Outcome",
    "PasskeyError",
    "RequestFailedError",
    "UnknownError",
    "UserCancelledError",
    "map_native_error",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


@unique
class ErrorCode(str, Enum):
    """Error codes exposed to callers, identical on every platform."""

    NOT_SUPPORTED = "NotSupported"
    REQUEST_FAILED = "RequestFailed"
    USER_CANCELLED = "UserCancelled"
    INVALID_CHALLENGE = "InvalidChallenge"
    INVALID_USER_ID = "InvalidUserId"
    INVALID_OPTION = "InvalidOption"
    NOT_CONFIGURED = "NotConfigured"
    NO_CREDENTIALS = "NoCredentials"
    INTERRUPTED = "Interrupted"
    UNKNOWN_ERROR = "UnknownError"
    NATIVE_ERROR = "NativeError"


class PasskeyError(Exception):
    """Base class for every error surfaced by the bridge."""

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    default_message = "An unknown error occurred"
    retryable = False

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class NotSupportedError(PasskeyError):
    code = ErrorCode.NOT_SUPPORTED
    default_message = "Passkeys are not supported on this device"


class RequestFailedError(PasskeyError):
    code = ErrorCode.REQUEST_FAILED
    default_message = "The request failed, no credentials were returned"


class UserCancelledError(PasskeyError):
    code = ErrorCode.USER_CANCELLED
    default_message = "The user cancelled the request"


class InvalidChallengeError(PasskeyError):
    code = ErrorCode.INVALID_CHALLENGE
    default_message = "The provided challenge was invalid"


class InvalidUserIdError(PasskeyError):
    code = ErrorCode.INVALID_USER_ID
    default_message = "The provided userId was invalid"


class InvalidOptionError(PasskeyError):
    """A caller option has a value the request cannot carry.

    Raised while building a request, before the platform is involved.
    ``option`` names the offending key.
    """

    code = ErrorCode.INVALID_OPTION
    default_message = "An option has an unsupported value"

    def __init__(self, option: str, value: Any = None, message: Optional[str] = None):
        super().__init__(message or f"Unsupported value for {option}: {value!r}")
        self.option = option
        self.value = value


class NotConfiguredError(PasskeyError):
    code = ErrorCode.NOT_CONFIGURED
    default_message = "Your app is not properly configured"


class NoCredentialsError(PasskeyError):
    code = ErrorCode.NO_CREDENTIALS
    default_message = "No viable credential is available for the user"


class InterruptedCeremonyError(PasskeyError):
    """The ceremony was interrupted; the caller may retry it."""

    code = ErrorCode.INTERRUPTED
    default_message = "The operation was interrupted and may be retried"
    retryable = True


class UnknownError(PasskeyError):
    code = ErrorCode.UNKNOWN_ERROR


class NativeError(PasskeyError):
    """A native signal that matched nothing in the taxonomy."""

    code = ErrorCode.NATIVE_ERROR

    def __init__(self, raw: Any = None):
        super().__init__()
        self.raw = raw

    def __repr__(self):
        return f"NativeError(raw={self.raw!r})"


class NativeCeremonyError(Exception):
    """Raised by native providers to report a failed ceremony.

    ``code`` is the platform's tag or numeric code, ``message`` the short
    error name the platform attaches to it.
    """

    def __init__(self, code: Union[str, int, None], message: Optional[str] = None):
        super().__init__(message or str(code))
        self.code = code
        self.message = message


_ERRORS_BY_CODE: Dict[str, Type[PasskeyError]] = {
    cls.code.value: cls
    for cls in (
        NotSupportedError,
        RequestFailedError,
        UserCancelledError,
        InvalidChallengeError,
        InvalidUserIdError,
        NotConfiguredError,
        NoCredentialsError,
        InterruptedCeremonyError,
        UnknownError,
    )
}

# Tags emitted by the native layers that are not part of the public surface.
_TAG_ALIASES: Dict[str, Type[PasskeyError]] = {
    "InvalidRpId": NotConfiguredError,
    "Cancelled": UserCancelledError,
}

_NUMERIC_CODES: Dict[int, Type[PasskeyError]] = {
    # ASAuthorizationError
    1001: UserCancelledError,
    1004: RequestFailedError,
    4004: NotConfiguredError,
    # iOS bridge
    20601: NotSupportedError,
    20602: RequestFailedError,
    20603: UserCancelledError,
    20604: InvalidChallengeError,
    20605: NotConfiguredError,
    20606: InvalidUserIdError,
    20607: NotConfiguredError,
    20608: UnknownError,
    # Android bridge; 10601 (DOM error) and 10608 carry free text instead.
    10602: UserCancelledError,
    10603: InterruptedCeremonyError,
    10604: NotConfiguredError,
    10605: UnknownError,
    10606: NotSupportedError,
    10607: NoCredentialsError,
}

_TOKEN_SPLIT = re.compile(r"[\s:,()\[\]'\"]+")


def _lookup_tag(text: str) -> Optional[Type[PasskeyError]]:
    stripped = text.strip()
    if stripped in _ERRORS_BY_CODE:
        return _ERRORS_BY_CODE[stripped]
    if stripped in _TAG_ALIASES:
        return _TAG_ALIASES[stripped]
    if stripped.lstrip("-").isdigit():
        return _NUMERIC_CODES.get(int(stripped))
    return None


def _lookup_text(text: str) -> Optional[Type[PasskeyError]]:
    found = _lookup_tag(text)
    if found is not None:
        return found
    for token in _TOKEN_SPLIT.split(text):
        if token and not token.isdigit():
            found = _lookup_tag(token)
            if found is not None:
                return found
    return None


def _resolve(signal: Any) -> Optional[Type[PasskeyError]]:
    if isinstance(signal, bool):
        return None
    if isinstance(signal, int):
        return _NUMERIC_CODES.get(signal)
    if isinstance(signal, str):
        return _lookup_text(signal)
    if isinstance(signal, NativeCeremonyError):
        # The message names the condition; the code only disambiguates when
        # the message is free text.
        if signal.message:
            found = _lookup_text(signal.message)
            if found is not None:
                return found
        return _resolve(signal.code)
    if isinstance(signal, Mapping):
        for key in ("message", "code"):
            if key in signal:
                found = _resolve(signal[key])
                if found is not None:
                    return found
        return None
    code = getattr(signal, "code", None)
    if code is not None and not callable(code):
        found = _resolve(code)
        if found is not None:
            return found
    return _lookup_text(str(signal))


def map_native_error(signal: Any) -> PasskeyError:
    """Translate a native error signal into exactly one taxonomy member.

    Existing :class:`PasskeyError` instances are returned unchanged. Signals
    that match no known tag or code become :class:`NativeError` with the raw
    signal preserved.
    """

    if isinstance(signal, PasskeyError):
        return signal

    error_cls = _resolve(signal)
    if error_cls is None:
        logger.warning("Unrecognised native passkey error: %r", signal)
        error: PasskeyError = NativeError(signal)
    else:
        error = error_cls()

    if isinstance(signal, BaseException):
        error.__cause__ = signal
    return error


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Tagged result of a fallible bridge operation: a value or an error."""

    value: Optional[T] = None
    error: Optional[PasskeyError] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: PasskeyError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def map(self, func: Callable[[T], Any]) -> "Outcome[Any]":
        if self.error is not None:
            return self
        return Outcome.success(func(self.value))  # type: ignore[arg-type]
