"""Platform backends: encode a canonical request, run the native call, normalize.

Each backend wraps a native provider object supplied by the host
application. Providers may be plain callables or coroutines; the awaited
provider call is the only point where a ceremony suspends.
"""
from __future__ import annotations

import abc
import inspect
import json
import logging
from typing import Any, Awaitable, List, Optional, Protocol, Union

from .codec import base64url_to_base64
from .models import AuthenticationRequest, AuthenticationResult, CreateRequest, CreateResult
from .normalizer import (
    normalize_android_authentication,
    normalize_android_registration,
    normalize_ios_authentication,
    normalize_ios_registration,
)

__all__ = [
    "AndroidBackend",
    "AndroidProvider",
    "Backend",
    "IOSBackend",
    "IOSProvider",
    "backend_for",
]

logger = logging.getLogger(__name__)

MaybeAwaitable = Union[Any, Awaitable[Any]]


class IOSProvider(Protocol):
    """Native AuthenticationServices bridge. Binary arguments are padded base64."""

    def register(
        self,
        rp_id: str,
        challenge: str,
        display_name: str,
        user_id: str,
        excluded_credentials: List[str],
        security_key: bool,
    ) -> MaybeAwaitable:
        ...

    def authenticate(
        self,
        rp_id: str,
        challenge: str,
        allowed_credentials: List[str],
        security_key: bool,
    ) -> MaybeAwaitable:
        ...


class AndroidProvider(Protocol):
    """Native Credential Manager bridge speaking WebAuthn JSON text."""

    def register(self, request_json: str) -> MaybeAwaitable:
        ...

    def authenticate(self, request_json: str) -> MaybeAwaitable:
        ...


async def _settle(value: MaybeAwaitable) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Backend(abc.ABC):
    """One platform's way of running the two ceremonies."""

    name: str = ""

    def __init__(self, provider: Any, *, debug: bool = False):
        self.provider = provider
        self.debug = debug

    def _log_payload(self, label: str, payload: Any) -> None:
        if self.debug:
            logger.debug("%s %s: %r", self.name, label, payload)

    @abc.abstractmethod
    async def register(
        self, request: CreateRequest, *, security_key: bool = False
    ) -> CreateResult:
        """Run a registration ceremony."""

    @abc.abstractmethod
    async def authenticate(
        self, request: AuthenticationRequest, *, security_key: bool = False
    ) -> AuthenticationResult:
        """Run an authentication ceremony."""


class IOSBackend(Backend):
    """AuthenticationServices takes discrete arguments in standard base64
    and reports results the same way."""

    name = "ios"

    async def register(
        self, request: CreateRequest, *, security_key: bool = False
    ) -> CreateResult:
        excluded = [
            base64url_to_base64(c.id) for c in request.exclude_credentials or ()
        ]
        args = (
            request.rp.id,
            base64url_to_base64(request.challenge),
            request.user.display_name,
            base64url_to_base64(request.user.id),
            excluded,
            security_key,
        )
        self._log_payload("register request", args)
        native = await _settle(self.provider.register(*args))
        self._log_payload("register result", native)
        return normalize_ios_registration(native)

    async def authenticate(
        self, request: AuthenticationRequest, *, security_key: bool = False
    ) -> AuthenticationResult:
        allowed = [
            base64url_to_base64(c.id) for c in request.allow_credentials or ()
        ]
        args = (
            request.rp_id,
            base64url_to_base64(request.challenge),
            allowed,
            security_key,
        )
        self._log_payload("authenticate request", args)
        native = await _settle(self.provider.authenticate(*args))
        self._log_payload("authenticate result", native)
        return normalize_ios_authentication(native)


class AndroidBackend(Backend):
    """Credential Manager consumes and produces the WebAuthn JSON layout,
    which already uses base64url."""

    name = "android"

    @staticmethod
    def _encode(payload: Any) -> str:
        return json.dumps(payload, separators=(",", ":"))

    async def register(
        self, request: CreateRequest, *, security_key: bool = False
    ) -> CreateResult:
        payload = self._encode(request.to_dict())
        self._log_payload("register request", payload)
        native = await _settle(self.provider.register(payload))
        self._log_payload("register result", native)
        return normalize_android_registration(native)

    async def authenticate(
        self, request: AuthenticationRequest, *, security_key: bool = False
    ) -> AuthenticationResult:
        payload = self._encode(request.to_dict())
        self._log_payload("authenticate request", payload)
        native = await _settle(self.provider.authenticate(payload))
        self._log_payload("authenticate result", native)
        return normalize_android_authentication(native)


def backend_for(system: Optional[str], provider: Any, *, debug: bool = False) -> Optional[Backend]:
    """Instantiate the backend matching ``system``, if a provider exists for it."""

    if provider is None:
        return None
    if system == IOSBackend.name:
        return IOSBackend(provider, debug=debug)
    if system == AndroidBackend.name:
        return AndroidBackend(provider, debug=debug)
    return None
