"""Run AppleScript through ``osascript`` and classify its failures.

The rest of the bridge only sees the :class:`ScriptExecutor` protocol:
``execute(script) -> text``, raising a :class:`BridgeError` on failure.  Tests
substitute a fake that returns canned delimited text.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Protocol, runtime_checkable

from mail_bridge.config import BridgeConfig
from mail_bridge.mail.errors import AutomationError, classify, parse_osascript_error

logger = logging.getLogger(__name__)


@runtime_checkable
class ScriptExecutor(Protocol):
    """Synchronous capability to run one AppleScript and return its text result."""

    def execute(self, script: str) -> str:
        """Run ``script`` and return its result text.

        Raises a BridgeError subclass on any failure.  Implementations must
        not retry.
        """
        ...


class OsascriptExecutor:
    """Runs scripts with ``osascript -`` (script on stdin, result on stdout).

    Scripts go over stdin so no shell quoting is involved.  A single call is
    bounded by ``config.timeout``; a timeout is reported as an
    :class:`AutomationError` and the child process is killed.
    """

    def __init__(self, config: BridgeConfig | None = None) -> None:
        self._config = config or BridgeConfig.from_env()

    def execute(self, script: str) -> str:
        command = [self._config.osascript, "-"]
        logger.debug("osascript ← %d chars", len(script))
        started = time.monotonic()
        try:
            result = subprocess.run(
                command,
                input=script,
                capture_output=True,
                text=True,
                timeout=self._config.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise AutomationError(
                f"osascript timed out after {self._config.timeout:g}s"
            ) from exc
        except OSError as exc:
            raise AutomationError(
                f"could not run {self._config.osascript!r}: {exc}"
            ) from exc

        elapsed = time.monotonic() - started
        if result.returncode != 0:
            code, message = parse_osascript_error(result.stderr)
            logger.debug("osascript failed in %.2fs: code=%s %s", elapsed, code, message)
            raise classify(code, message or f"osascript exited with status {result.returncode}")

        # osascript terminates its result with a single newline.
        output = result.stdout.removesuffix("\n")
        logger.debug("osascript → %d chars in %.2fs", len(output), elapsed)
        return output
