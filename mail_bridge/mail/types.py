"""Data types shared across the Mail.app bridge modules."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


# Field names whose JSON key is not a plain camelCase conversion.
_JSON_KEYS: dict[str, str] = {"mac_os_version": "macOSVersion"}


def _camel(name: str) -> str:
    if name in _JSON_KEYS:
        return _JSON_KEYS[name]
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_json_value(value: Any) -> Any:
    """Convert records (and lists of records) into JSON-ready values.

    Dataclass field names are emitted in camelCase, which is the shape every
    caller of the bridge expects (``unreadCount``, ``hasMore``, ...).
    """
    if is_dataclass(value) and not isinstance(value, type):
        return {_camel(f.name): to_json_value(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


# ── Records ────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Account:
    """A Mail.app account.

    ``id`` is the account's position in the enumeration returned by the call
    that produced it.  It is an ephemeral ordinal, not a durable key: if the
    user reorders or adds accounts the same id can name a different account.
    """

    id: str
    name: str
    full_name: str
    email_addresses: list[str] = field(default_factory=list)
    account_type: str = ""
    enabled: bool = False


@dataclass(frozen=True)
class Mailbox:
    """A mailbox with at most one level of nested children.

    ``full_name`` is synthesised (``account/name`` or ``account/parent/name``),
    never read from Mail.app.
    """

    name: str
    full_name: str
    account: str
    unread_count: int = 0
    message_count: int = 0
    children: list[Mailbox] = field(default_factory=list)


@dataclass(frozen=True)
class Attachment:
    name: str
    mime_type: str
    file_size: int = 0


@dataclass(frozen=True)
class MessageHeader:
    """Lightweight message summary used by listings, unread scans and search.

    ``id`` is Mail.app's integer message id: stable within a mailbox and the
    lookup key for :class:`MessageDetail`.  Dates are Mail.app's own text
    rendering and are passed through untouched.
    """

    id: int
    message_id: str
    subject: str
    sender: str
    sender_name: str
    sender_email: str
    date_sent: str
    date_received: str
    is_read: bool
    is_flagged: bool
    has_attachments: bool
    mailbox: str
    account: str


@dataclass(frozen=True)
class MessageDetail:
    id: int
    message_id: str
    subject: str
    sender: str
    sender_name: str
    sender_email: str
    to_recipients: list[str]
    cc_recipients: list[str]
    date_sent: str
    date_received: str
    is_read: bool
    is_flagged: bool
    content: str
    attachments: list[Attachment]
    mailbox: str
    account: str


@dataclass(frozen=True)
class PaginatedMessages:
    """One newest-first page of a mailbox listing.

    ``limit`` is the effective page size after clamping.
    """

    messages: list[MessageHeader]
    total: int
    offset: int
    limit: int
    has_more: bool


@dataclass(frozen=True)
class Diagnostics:
    mail_access: str
    account_count: int
    accounts: list[str]
    mac_os_version: str


# ── Envelope ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Envelope(Generic[T]):
    """Uniform success/failure wrapper returned by every operation.

    Exactly one of ``data`` / ``error`` is meaningful, selected by ``status``.
    """

    status: str
    data: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, data: T) -> Envelope[T]:
        return cls(status="ok", data=data)

    @classmethod
    def failure(cls, message: str) -> Envelope[Any]:
        return cls(status="error", error=message)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"status": self.status, "data": to_json_value(self.data)}
        return {"status": self.status, "error": self.error}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)
