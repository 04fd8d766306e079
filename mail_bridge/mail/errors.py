"""Closed error taxonomy for the Mail.app bridge.

Every public operation either returns its record or raises exactly one of the
:class:`BridgeError` subclasses below.  ``str(error)`` is the human-readable
message placed in the envelope's ``error`` field.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

#: errAEEventNotPermitted: the process may not send Apple events to Mail.app.
NOT_AUTHORIZED_CODE = -1743

#: errAENoSuchObject / errAEIllegalIndex: a referenced object does not exist.
NO_SUCH_OBJECT_CODES = frozenset({-1728, -1719})

# osascript reports failures on stderr as e.g.
#   "45:112: execution error: Not authorized to send Apple events to Mail. (-1743)"
_OSASCRIPT_ERROR = re.compile(r"(?:^|:\s*)(?:execution |syntax )?error:\s*(?P<message>.*?)\s*\((?P<code>-?\d+)\)\s*$", re.DOTALL)


class BridgeError(Exception):
    """Base class for every failure an operation can report."""


class MailAccessDenied(BridgeError):
    def __init__(self) -> None:
        super().__init__(
            "Mail.app access denied. Grant access in System Settings > "
            "Privacy & Security > Automation."
        )


class AccountNotFound(BridgeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Mail account not found: {name}")


class MailboxNotFound(BridgeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Mailbox not found: {name}")


class MessageNotFound(BridgeError):
    def __init__(self, message_id: int) -> None:
        self.message_id = message_id
        super().__init__(f"Message not found: {message_id}")


class AutomationError(BridgeError):
    """Any other failure reported by the AppleScript runtime.

    ``message`` carries the runtime's text verbatim; ``code`` is the
    AppleScript error number when one was reported.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        self.message = message
        self.code = code
        suffix = f" (error {code})" if code is not None else ""
        super().__init__(f"AppleScript error: {message}{suffix}")


class InvalidParameter(BridgeError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Invalid parameter: {message}")


def classify(code: int | None, message: str) -> BridgeError:
    """Map a runtime failure to the taxonomy.

    The reserved not-authorized code always yields :class:`MailAccessDenied`;
    everything else is an :class:`AutomationError` carrying ``message``.
    """
    if code == NOT_AUTHORIZED_CODE:
        logger.debug("Classified error %s as access denied", code)
        return MailAccessDenied()
    return AutomationError(message or "Unknown AppleScript error", code)


def parse_osascript_error(stderr: str) -> tuple[int | None, str]:
    """Extract ``(code, message)`` from osascript's stderr text."""
    text = stderr.strip()
    match = _OSASCRIPT_ERROR.search(text)
    if match is None:
        return None, text
    return int(match.group("code")), match.group("message")
