"""Turn decoded field lists into typed records.

Every row shape has a minimum field count.  Rows that come back short are
dropped rather than failing the whole listing, so one odd message cannot hide
the rest of a mailbox.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from mail_bridge.mail import codec
from mail_bridge.mail.sender import parse_sender
from mail_bridge.mail.tree import MailboxRow
from mail_bridge.mail.types import Account, Attachment, MessageDetail, MessageHeader

logger = logging.getLogger(__name__)

R = TypeVar("R")

ACCOUNT_FIELDS = 5
MAILBOX_FIELDS = 5
RANGE_HEADER_FIELDS = 9
UNREAD_HEADER_FIELDS = 10
SEARCH_HEADER_FIELDS = 11
DETAIL_FIELDS = 11
ATTACHMENT_FIELDS = 3

#: Header rows carry the subject, the only free-text column, at this index.
SUBJECT_COLUMN = 2

#: Account reported for rows fetched without an explicit account scope.
UNKNOWN_ACCOUNT = "Unknown"


def parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def parse_int(value: str) -> int:
    """Best-effort integer; anything unparsable is 0."""
    try:
        return int(value.strip())
    except ValueError:
        return 0


def fold_free_text(parts: list[str], index: int, width: int) -> list[str]:
    """Rejoin column ``index`` if the field separator over-segmented it.

    Rows of a fixed ``width`` that split into more parts can only have gained
    them from the free-text column, so the surplus is folded back into it.
    """
    surplus = len(parts) - width
    if surplus <= 0:
        return parts
    end = index + surplus + 1
    return parts[:index] + [codec.FIELD_SEP.join(parts[index:end])] + parts[end:]


def decode_rows(
    text: str,
    minimum: int,
    build: Callable[[list[str]], R],
    *,
    free_text: int | None = None,
) -> list[R]:
    """Split ``text`` into rows and build a record from each long-enough row.

    With ``free_text`` set, rows are exactly ``minimum`` wide and any surplus
    parts are folded back into that column.
    """
    records: list[R] = []
    for row in codec.split_records(text):
        parts = codec.split_fields(row)
        if len(parts) < minimum:
            logger.debug("Dropping row with %d field(s), need %d: %.80r", len(parts), minimum, row)
            continue
        if free_text is not None:
            parts = fold_free_text(parts, free_text, minimum)
        records.append(build(parts))
    return records


# ── Accounts & mailboxes ───────────────────────────────────────────────────────


def decode_accounts(text: str) -> list[Account]:
    """Rows: name, full name, addresses (list), type, enabled.

    Ids are assigned from the row's position in ``text``, counting dropped
    rows, so an id always names the same slot of that one enumeration.
    """
    accounts: list[Account] = []
    for index, row in enumerate(codec.split_records(text)):
        parts = codec.split_fields(row)
        if len(parts) < ACCOUNT_FIELDS:
            logger.debug("Dropping short account row %d", index)
            continue
        accounts.append(Account(
            id=str(index),
            name=parts[0],
            full_name=parts[1],
            email_addresses=codec.split_list(parts[2]),
            account_type=parts[3],
            enabled=parse_bool(parts[4]),
        ))
    return accounts


def _mailbox_row(parts: list[str]) -> MailboxRow:
    parent: str | None = None
    if len(parts) > MAILBOX_FIELDS and parts[MAILBOX_FIELDS].startswith(codec.PARENT_MARKER):
        parent = parts[MAILBOX_FIELDS][len(codec.PARENT_MARKER):]
    return MailboxRow(
        name=parts[0],
        account=parts[1],
        unread_count=max(0, parse_int(parts[2])),
        message_count=max(0, parse_int(parts[3])),
        parent=parent,
    )


def decode_mailbox_rows(text: str) -> list[MailboxRow]:
    """Rows: name, account, unread, messages, child count[, PARENT=name].

    The child count only tells the script whether to enumerate children; the
    tree is rebuilt from the PARENT= rows themselves.
    """
    return decode_rows(text, MAILBOX_FIELDS, _mailbox_row)


# ── Message headers ────────────────────────────────────────────────────────────


def _header(
    parts: list[str],
    *,
    is_read: bool,
    is_flagged: str,
    attachments: str,
    mailbox: str,
    account: str,
) -> MessageHeader:
    name, email = parse_sender(parts[3])
    return MessageHeader(
        id=parse_int(parts[0]),
        message_id=parts[1],
        subject=parts[2],
        sender=parts[3],
        sender_name=name,
        sender_email=email,
        date_sent=parts[4],
        date_received=parts[5],
        is_read=is_read,
        is_flagged=parse_bool(is_flagged),
        has_attachments=parse_int(attachments) > 0,
        mailbox=mailbox,
        account=account,
    )


def decode_range_headers(text: str, mailbox: str, account: str | None) -> list[MessageHeader]:
    """Rows from a mailbox range fetch, oldest first.

    Columns: id, message-id, subject, sender, sent, received, read, flagged,
    attachment count.  Mailbox and account come from the request scope.
    """
    return decode_rows(text, RANGE_HEADER_FIELDS, lambda p: _header(
        p,
        is_read=parse_bool(p[6]),
        is_flagged=p[7],
        attachments=p[8],
        mailbox=mailbox,
        account=account or UNKNOWN_ACCOUNT,
    ), free_text=SUBJECT_COLUMN)


def decode_unread_headers(text: str) -> list[MessageHeader]:
    """Columns: id, message-id, subject, sender, sent, received, flagged,
    attachment count, mailbox, account.  Every row is unread by construction.
    """
    return decode_rows(text, UNREAD_HEADER_FIELDS, lambda p: _header(
        p,
        is_read=False,
        is_flagged=p[6],
        attachments=p[7],
        mailbox=p[8],
        account=p[9],
    ), free_text=SUBJECT_COLUMN)


def decode_search_headers(text: str) -> list[MessageHeader]:
    """Columns: the range-fetch columns followed by mailbox and account."""
    return decode_rows(text, SEARCH_HEADER_FIELDS, lambda p: _header(
        p,
        is_read=parse_bool(p[6]),
        is_flagged=p[7],
        attachments=p[8],
        mailbox=p[9],
        account=p[10],
    ), free_text=SUBJECT_COLUMN)


# ── Message detail ─────────────────────────────────────────────────────────────


def decode_attachments(value: str) -> list[Attachment]:
    attachments: list[Attachment] = []
    for item in codec.split_list(value):
        parts = codec.split_attachment(item)
        if len(parts) < ATTACHMENT_FIELDS:
            continue
        attachments.append(Attachment(
            name=parts[0],
            mime_type=parts[1],
            file_size=max(0, parse_int(parts[2])),
        ))
    return attachments


def decode_detail(text: str, message_id: int, mailbox: str, account: str | None) -> MessageDetail | None:
    """Decode a single-message result, or ``None`` if it is too short.

    The detail script separates its columns with the record separator and
    puts the body last: message-id, subject, sender, sent, received, read,
    flagged, to (list), cc (list), attachments (list), content.  Content is
    everything after the tenth separator, embedded separators included.
    Subject and sender arrive percent-escaped.
    """
    parts = codec.split_with_remainder(text, codec.RECORD_SEP, DETAIL_FIELDS - 1)
    if len(parts) < DETAIL_FIELDS:
        logger.debug("Detail result for %s has %d field(s)", message_id, len(parts))
        return None

    subject = codec.unescape_field(parts[1])
    sender = codec.unescape_field(parts[2])
    name, email = parse_sender(sender)
    return MessageDetail(
        id=message_id,
        message_id=parts[0],
        subject=subject,
        sender=sender,
        sender_name=name,
        sender_email=email,
        to_recipients=codec.split_list(parts[7]),
        cc_recipients=codec.split_list(parts[8]),
        date_sent=parts[3],
        date_received=parts[4],
        is_read=parse_bool(parts[5]),
        is_flagged=parse_bool(parts[6]),
        content=parts[10],
        attachments=decode_attachments(parts[9]),
        mailbox=mailbox,
        account=account or UNKNOWN_ACCOUNT,
    )


def decode_names(text: str) -> list[str]:
    """A plain list of names joined by the record separator."""
    return codec.split_records(text)
