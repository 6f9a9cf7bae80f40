"""Configuration for the passkey bridge, read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .models import RelyingParty

__all__ = ["BridgeConfig", "load_config"]


_DEFAULT_RP_ID = "localhost"
_DEFAULT_RP_NAME = "Passkey bridge"


def _env_flag(environ: Mapping[str, str], name: str) -> Optional[bool]:
    """Return ``True`` or ``False`` when the named env var is explicitly set."""

    raw_value = environ.get(name)
    if raw_value is None:
        return None

    normalised = raw_value.strip().lower()
    if normalised in {"", "0", "false", "off", "no"}:
        return False
    return True


def _env_positive_int(environ: Mapping[str, str], name: str) -> Optional[int]:
    raw_value = environ.get(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        value = int(raw_value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class BridgeConfig:
    """Relying party defaults and behaviour switches.

    ``timeout`` is in milliseconds and only forwarded to the platform as a
    hint. ``debug`` enables payload logging.
    """

    rp_id: str = _DEFAULT_RP_ID
    rp_name: str = _DEFAULT_RP_NAME
    timeout: Optional[int] = None
    debug: bool = False

    @property
    def relying_party(self) -> RelyingParty:
        return RelyingParty(id=self.rp_id, name=self.rp_name)


def load_config(environ: Optional[Mapping[str, str]] = None) -> BridgeConfig:
    """Build a :class:`BridgeConfig` from ``PASSKEY_BRIDGE_*`` variables."""

    if environ is None:
        environ = os.environ

    rp_id = (environ.get("PASSKEY_BRIDGE_RP_ID") or "").strip() or _DEFAULT_RP_ID
    rp_name = (environ.get("PASSKEY_BRIDGE_RP_NAME") or "").strip() or _DEFAULT_RP_NAME

    return BridgeConfig(
        rp_id=rp_id,
        rp_name=rp_name,
        timeout=_env_positive_int(environ, "PASSKEY_BRIDGE_TIMEOUT"),
        debug=bool(_env_flag(environ, "PASSKEY_BRIDGE_DEBUG")),
    )
