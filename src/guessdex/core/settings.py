"""Client settings sourced from the environment.

Two knobs matter to the client: where the game server lives and how long a
single round trip may take before it is reported as unreachable.  Both are read
from environment variables and can be temporarily overridden in tests via a
context manager, mirroring how flags are handled elsewhere.

Usage::

    from guessdex.core import settings

    cfg = settings.load_settings()
    with settings.override(base_url="http://testserver"):
        ...

``GUESSDEX_BASE_URL`` defaults to ``http://127.0.0.1:8080``.  ``GUESSDEX_TIMEOUT``
is a number of seconds; ``0``, ``none`` or ``off`` disables the timeout.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Final

__all__ = ["ClientSettings", "load_settings", "override"]

logger = logging.getLogger(__name__)

_BASE_URL_VAR: Final = "GUESSDEX_BASE_URL"
_TIMEOUT_VAR: Final = "GUESSDEX_TIMEOUT"

DEFAULT_BASE_URL: Final = "http://127.0.0.1:8080"
DEFAULT_TIMEOUT: Final = 15.0

_DISABLED = {"0", "none", "off", "false"}


@dataclass(frozen=True)
class ClientSettings:
    base_url: str = DEFAULT_BASE_URL
    timeout: float | None = DEFAULT_TIMEOUT


def _parse_base_url(raw: str | None) -> str:
    if raw is None or not raw.strip():
        return DEFAULT_BASE_URL
    value = raw.strip().rstrip("/")
    if not value.startswith(("http://", "https://")):
        logger.warning("Ignoring %s=%r; expected an http(s) URL", _BASE_URL_VAR, raw)
        return DEFAULT_BASE_URL
    return value


def _parse_timeout(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT
    value = raw.strip().lower()
    if value in _DISABLED:
        return None
    try:
        seconds = float(value)
    except ValueError:
        logger.warning("Ignoring %s=%r; expected seconds", _TIMEOUT_VAR, raw)
        return DEFAULT_TIMEOUT
    if seconds != seconds or seconds < 0.0:  # NaN or negative
        logger.warning("Ignoring %s=%r; expected a non-negative number", _TIMEOUT_VAR, raw)
        return DEFAULT_TIMEOUT
    return seconds or None


_OVERRIDE_STACK: list[dict[str, Any]] = []


def load_settings() -> ClientSettings:
    """Resolve settings from the environment, then apply any active overrides."""

    resolved = ClientSettings(
        base_url=_parse_base_url(os.getenv(_BASE_URL_VAR)),
        timeout=_parse_timeout(os.getenv(_TIMEOUT_VAR)),
    )
    for fields in _OVERRIDE_STACK:
        resolved = replace(resolved, **fields)
    return resolved


@contextmanager
def override(**fields: Any) -> Iterator[None]:
    """Temporarily override settings fields.  Overrides stack like nested scopes."""

    unknown = set(fields) - set(ClientSettings.__dataclass_fields__)
    if unknown:
        raise TypeError(f"unknown settings: {', '.join(sorted(unknown))}")
    _OVERRIDE_STACK.append(dict(fields))
    try:
        yield
    finally:
        _OVERRIDE_STACK.pop()
