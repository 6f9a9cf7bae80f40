"""Entry point tying support detection, request building and the backends together."""
from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Iterable, Iterator, Mapping, Optional, Set

from .backends import Backend, backend_for
from .builder import UserInput, build_authentication_request, build_create_request
from .config import BridgeConfig, load_config
from .errors import InvalidOptionError, NotSupportedError, Outcome, PasskeyError, map_native_error
from .models import AuthenticationResult, CreateResult
from .support import ANDROID, IOS, PlatformInfo, detect_platform, is_supported

__all__ = ["CeremonyRegistry", "PasskeyBridge"]

logger = logging.getLogger(__name__)


class CeremonyRegistry:
    """Thread-safe set of ceremonies currently waiting on the platform.

    A handle is added when a ceremony starts and discarded when it ends,
    whatever the outcome. Platform callbacks stay referenced through it while
    their ceremony runs.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: Set[str] = set()

    def add(self, handle: str) -> None:
        with self._lock:
            self._active.add(handle)

    def discard(self, handle: str) -> None:
        with self._lock:
            self._active.discard(handle)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._active

    def __len__(self) -> int:
        with self._lock:
            return len(self._active)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._active))


class PasskeyBridge:
    """Register and authenticate passkeys through the native platform.

    ``ios`` and ``android`` are the native provider objects; only the one
    matching the detected platform is used. The backend is chosen once, at
    construction.

    ``create`` and ``authenticate`` raise :class:`PasskeyError` subclasses.
    ``try_create`` and ``try_authenticate`` return an :class:`Outcome`
    instead.
    """

    def __init__(
        self,
        *,
        ios: Any = None,
        android: Any = None,
        platform_info: Optional[PlatformInfo] = None,
        config: Optional[BridgeConfig] = None,
        registry: Optional[CeremonyRegistry] = None,
    ):
        self.platform_info = platform_info or detect_platform()
        self.config = config or load_config()
        self.registry = registry if registry is not None else CeremonyRegistry()

        providers = {IOS: ios, ANDROID: android}
        self._backend: Optional[Backend] = None
        if is_supported(self.platform_info):
            self._backend = backend_for(
                self.platform_info.system,
                providers.get(self.platform_info.system),
                debug=self.config.debug,
            )
        logger.debug(
            "Passkey bridge on %s %s using backend %s",
            self.platform_info.system,
            self.platform_info.version,
            self._backend.name if self._backend else None,
        )

    @property
    def backend(self) -> Optional[Backend]:
        return self._backend

    def is_supported(self) -> bool:
        return self._backend is not None

    async def _run(self, label: str, ceremony) -> Outcome:
        handle = uuid.uuid4().hex
        self.registry.add(handle)
        logger.info("Starting passkey %s on %s", label, self._backend.name)
        try:
            result = await ceremony()
        except PasskeyError as exc:
            logger.info("Passkey %s failed: %s", label, exc.code.value)
            return Outcome.failure(exc)
        except Exception as exc:
            error = map_native_error(exc)
            logger.info("Passkey %s failed: %s", label, error.code.value)
            return Outcome.failure(error)
        finally:
            self.registry.discard(handle)
        logger.info("Passkey %s finished", label)
        return Outcome.success(result)

    async def try_create(
        self,
        user: UserInput,
        challenge_hex: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Outcome[CreateResult]:
        backend = self._backend
        if backend is None:
            return Outcome.failure(NotSupportedError())
        overrides = overrides or {}
        if not isinstance(overrides, Mapping):
            return Outcome.failure(InvalidOptionError("overrides", overrides))
        try:
            request = build_create_request(user, challenge_hex, overrides, config=self.config)
        except PasskeyError as exc:
            return Outcome.failure(exc)
        security_key = bool(overrides.get("withSecurityKey"))
        return await self._run(
            "registration",
            lambda: backend.register(request, security_key=security_key),
        )

    async def try_authenticate(
        self,
        credential_ids: Iterable[Any],
        challenge_hex: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Outcome[AuthenticationResult]:
        backend = self._backend
        if backend is None:
            return Outcome.failure(NotSupportedError())
        overrides = overrides or {}
        if not isinstance(overrides, Mapping):
            return Outcome.failure(InvalidOptionError("overrides", overrides))
        try:
            request = build_authentication_request(
                credential_ids, challenge_hex, overrides, config=self.config
            )
        except PasskeyError as exc:
            return Outcome.failure(exc)
        security_key = bool(overrides.get("withSecurityKey"))
        return await self._run(
            "authentication",
            lambda: backend.authenticate(request, security_key=security_key),
        )

    async def create(
        self,
        user: UserInput,
        challenge_hex: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> CreateResult:
        return (await self.try_create(user, challenge_hex, overrides)).unwrap()

    async def authenticate(
        self,
        credential_ids: Iterable[Any],
        challenge_hex: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> AuthenticationResult:
        return (await self.try_authenticate(credential_ids, challenge_hex, overrides)).unwrap()
