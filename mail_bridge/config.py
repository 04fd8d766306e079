"""Environment-driven settings for the bridge."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_DEFAULT_OSASCRIPT = "osascript"
_DEFAULT_TIMEOUT_SECONDS = 60.0
_DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"


@dataclass(frozen=True)
class BridgeConfig:
    """Where to find ``osascript`` and how long a single script may run."""

    osascript: str = _DEFAULT_OSASCRIPT
    timeout: float = _DEFAULT_TIMEOUT_SECONDS
    log_level: str = _DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> BridgeConfig:
        """Build BridgeConfig from environment variables."""
        return cls(
            osascript=os.environ.get("MAIL_BRIDGE_OSASCRIPT") or _DEFAULT_OSASCRIPT,
            timeout=_env_float("MAIL_BRIDGE_TIMEOUT", _DEFAULT_TIMEOUT_SECONDS),
            log_level=os.environ.get("MAIL_BRIDGE_LOG_LEVEL", _DEFAULT_LOG_LEVEL).upper(),
        )


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def configure_logging(level: str) -> None:
    """Send log records to stderr so stdout stays reserved for JSON output."""
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format=LOG_FORMAT)
