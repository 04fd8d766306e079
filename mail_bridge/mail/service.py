"""MailService: the seven read-only Mail.app operations behind a typed API."""

from __future__ import annotations

import logging
import platform
import re
from collections.abc import Callable
from typing import Any, TypeVar

from mail_bridge.mail import decoders, scripts
from mail_bridge.mail.errors import (
    NO_SUCH_OBJECT_CODES,
    AccountNotFound,
    AutomationError,
    BridgeError,
    InvalidParameter,
    MailboxNotFound,
    MessageNotFound,
)
from mail_bridge.mail.executor import OsascriptExecutor, ScriptExecutor
from mail_bridge.mail.pagination import clamp_limit, paginate
from mail_bridge.mail.tree import build_mailbox_tree
from mail_bridge.mail.types import (
    Account,
    Diagnostics,
    Envelope,
    Mailbox,
    MessageDetail,
    MessageHeader,
    PaginatedMessages,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LIMIT = 50

_CANT_GET = re.compile(r"Can[’']t get (.+)", re.DOTALL)
_MESSAGE_HEAD = re.compile(r"(?:first |last )?(?:message|item)\b")


class MailService:
    """Typed, synchronous wrapper around Mail.app's AppleScript dictionary.

    Each operation issues one script (two for paginated listings) through the
    executor and decodes the result on the calling thread.  Nothing is cached
    between calls and nothing is retried: the first automation failure is
    raised as a :class:`BridgeError`.

    Usage::

        service = MailService()
        page = service.list_messages("INBOX", account="iCloud", limit=20)
    """

    def __init__(self, executor: ScriptExecutor | None = None) -> None:
        self._executor = executor or OsascriptExecutor()

    # ââ Public API âââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââ

    def diagnostics(self) -> Diagnostics:
        """Report whether Mail.app can be scripted and which accounts it has.

        Never raises: a failure is described in ``mail_access`` instead.
        """
        version = platform.mac_ver()[0] or platform.platform()
        try:
            names = decoders.decode_names(self._run(scripts.diagnostics_script()))
        except BridgeError as exc:
            return Diagnostics(mail_access=str(exc), account_count=0, accounts=[], mac_os_version=version)
        return Diagnostics(
            mail_access="authorized",
            account_count=len(names),
            accounts=names,
            mac_os_version=version,
        )

    def list_accounts(self) -> list[Account]:
        return decoders.decode_accounts(self._run(scripts.accounts_script()))

    def list_mailboxes(self, account: str | None = None) -> list[Mailbox]:
        """Mailboxes with unread/message counts, nested one level deep."""
        account = _optional_name("account", account)
        text = self._run(scripts.mailboxes_script(account), account=account)
        return build_mailbox_tree(decoders.decode_mailbox_rows(text))

    def list_messages(
        self,
        mailbox: str,
        account: str | None = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> PaginatedMessages:
        """One page of headers from ``mailbox``, newest first.

        Makes two calls: a message count, then a fetch of the page's index
        range (skipped when the page is empty).
        """
        mailbox = _required_name("mailbox", mailbox)
        account = _optional_name("account", account)
        _check_limit(limit)
        if offset < 0:
            raise InvalidParameter(f"offset must be >= 0, got {offset}")

        total = max(0, decoders.parse_int(self._run(
            scripts.message_count_script(mailbox, account), account=account, mailbox=mailbox,
        )))
        window = paginate(total, offset, limit)
        if window.empty:
            return PaginatedMessages(messages=[], total=total, offset=offset, limit=window.limit, has_more=False)

        text = self._run(
            scripts.message_range_script(mailbox, account, window.start, window.end),
            account=account,
            mailbox=mailbox,
        )
        headers = decoders.decode_range_headers(text, mailbox, account)
        headers.reverse()
        if not headers:
            return PaginatedMessages(messages=[], total=total, offset=offset, limit=window.limit, has_more=False)
        return PaginatedMessages(
            messages=headers,
            total=total,
            offset=offset,
            limit=window.limit,
            has_more=window.has_more,
        )

    def get_message(self, message_id: int, mailbox: str, account: str | None = None) -> MessageDetail:
        """Full message including recipients, attachments and body text."""
        if message_id < 1:
            raise InvalidParameter(f"message id must be a positive integer, got {message_id}")
        mailbox = _required_name("mailbox", mailbox)
        account = _optional_name("account", account)

        text = self._run(
            scripts.message_detail_script(message_id, mailbox, account),
            account=account,
            mailbox=mailbox,
            message_id=message_id,
        )
        detail = decoders.decode_detail(text, message_id, mailbox, account)
        if detail is None:
            raise MessageNotFound(message_id)
        return detail

    def list_unread(
        self,
        account: str | None = None,
        mailbox: str | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[MessageHeader]:
        """Unread headers, scoped to a mailbox, an account, or everything."""
        account = _optional_name("account", account)
        mailbox = _optional_name("mailbox", mailbox)
        _check_limit(limit)
        if mailbox is not None and account is None:
            logger.info("Mailbox %r given without an account; scanning all accounts", mailbox)
        text = self._run(
            scripts.unread_script(account, mailbox, limit=clamp_limit(limit)),
            account=account,
            mailbox=mailbox if account is not None else None,
        )
        return decoders.decode_unread_headers(text)

    def search(
        self,
        query: str,
        account: str | None = None,
        mailbox: str | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[MessageHeader]:
        """Headers whose subject or sender contains ``query``.

        Match semantics (case, word boundaries) are whatever Mail.app's
        ``contains`` does; they are not normalised here.
        """
        query = _required_name("query", query)
        account = _optional_name("account", account)
        mailbox = _optional_name("mailbox", mailbox)
        _check_limit(limit)
        text = self._run(
            scripts.search_script(query, account, mailbox, limit=clamp_limit(limit)),
            account=account,
            mailbox=mailbox if account is not None else None,
        )
        return decoders.decode_search_headers(text)

    # ââ Internal helpers âââââââââââââââââââââââââââââââââââââââââââââââââââââââ

    def _run(
        self,
        script: str,
        *,
        account: str | None = None,
        mailbox: str | None = None,
        message_id: int | None = None,
    ) -> str:
        """Execute ``script``, turning "no such object" failures into not-found errors."""
        try:
            return self._executor.execute(script)
        except AutomationError as exc:
            refined = _refine_not_found(exc, account=account, mailbox=mailbox, message_id=message_id)
            if refined is exc:
                raise
            logger.debug("Refined %s into %s", exc, type(refined).__name__)
            raise refined from exc


def _refine_not_found(
    exc: AutomationError,
    *,
    account: str | None,
    mailbox: str | None,
    message_id: int | None,
) -> BridgeError:
    """Name the missing object when Mail.app reports errAENoSuchObject.

    Mail.app describes the reference it could not resolve, e.g.
    ``Can't get message 1 of mailbox "X" of account "Y" whose id = 9.``  The
    head of that reference is the missing object; the rest is its container.
    """
    if exc.code not in NO_SUCH_OBJECT_CODES:
        return exc

    match = _CANT_GET.search(exc.message)
    if match is None:
        return MessageNotFound(message_id) if message_id is not None else exc

    head = match.group(1)
    if account is not None and head.startswith(f'account "{scripts.escape_applescript(account)}"'):
        return AccountNotFound(account)
    if mailbox is not None and head.startswith(f'mailbox "{scripts.escape_applescript(mailbox)}"'):
        return MailboxNotFound(mailbox)
    if message_id is not None and _MESSAGE_HEAD.match(head):
        return MessageNotFound(message_id)
    return exc


def _required_name(param: str, value: str) -> str:
    if not value or not value.strip():
        raise InvalidParameter(f"{param} must not be empty")
    return value


def _optional_name(param: str, value: str | None) -> str | None:
    if value is None:
        return None
    return _required_name(param, value)


def _check_limit(limit: int) -> None:
    if limit < 1:
        raise InvalidParameter(f"limit must be >= 1, got {limit}")


def run_operation(operation: Callable[..., T], *args: Any, **kwargs: Any) -> Envelope[T]:
    """Call ``operation`` and wrap its outcome in an :class:`Envelope`.

    Bridge errors become their rendered message.  Anything unexpected is
    logged with its traceback and reported as an AppleScript error so no
    exception ever crosses the envelope boundary.
    """
    try:
        return Envelope.success(operation(*args, **kwargs))
    except BridgeError as exc:
        logger.debug("%s failed: %s", getattr(operation, "__name__", operation), exc)
        return Envelope.failure(str(exc))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected failure in %s", getattr(operation, "__name__", operation))
        return Envelope.failure(str(AutomationError(str(exc) or type(exc).__name__)))
