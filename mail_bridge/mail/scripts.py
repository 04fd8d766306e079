"""AppleScript query builders, one per bridge operation.

Every script batches its rows into a single delimited string (see
:mod:`mail_bridge.mail.codec`) before returning, because each Apple event
round trip to Mail.app is expensive.  Free text is always embedded through
:func:`escape_applescript`; integers are embedded as-is.
"""

from __future__ import annotations

from mail_bridge.mail.codec import ATTACHMENT_SEP, FIELD_SEP, LIST_SEP, PARENT_MARKER, RECORD_SEP


def escape_applescript(text: str) -> str:
    """Make ``text`` safe to embed inside an AppleScript string literal.

    Doubles backslashes, then escapes double quotes.  This keeps the literal
    syntactically intact; it is not a general sanitiser.
    """
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _quoted(text: str) -> str:
    return f'"{escape_applescript(text)}"'


def _account_clause(account: str | None) -> str:
    return f"of account {_quoted(account)}" if account is not None else ""


# Appends rowData to output, separating rows with the record separator.
_APPEND_ROW = f"""
                if output is "" then
                    set output to rowData
                else
                    set output to output & "{RECORD_SEP}" & rowData
                end if"""

# Reads the header columns shared by every message listing into msg* variables.
_READ_HEADER = """
                set msgId to id of msg
                set msgMessageId to ""
                try
                    set msgMessageId to message id of msg
                end try
                set msgSubject to subject of msg
                set msgSender to sender of msg
                set msgDateSent to date sent of msg as text
                set msgDateReceived to date received of msg as text
                set msgRead to read status of msg
                set msgFlagged to flagged status of msg
                set attachCount to 0
                try
                    set attachCount to count of mail attachments of msg
                end try"""

_F = f' & "{FIELD_SEP}" & '

_HEADER_COLUMNS = _F.join([
    "(msgId as text)",
    "msgMessageId",
    "msgSubject",
    "msgSender",
    "msgDateSent",
    "msgDateReceived",
])

# Percent-escapes "%" then "|" so a column can never contain the record separator.
_ESCAPE_FIELD_HANDLER = """
on escapeField(theText)
    set oldDelims to AppleScript's text item delimiters
    set theText to theText as text
    set AppleScript's text item delimiters to "%"
    set pieces to text items of theText
    set AppleScript's text item delimiters to "%25"
    set theText to pieces as text
    set AppleScript's text item delimiters to "|"
    set pieces to text items of theText
    set AppleScript's text item delimiters to "%7C"
    set theText to pieces as text
    set AppleScript's text item delimiters to oldDelims
    return theText
end escapeField
"""


# ── Diagnostics & accounts ─────────────────────────────────────────────────────


def diagnostics_script() -> str:
    return f"""
tell application "Mail"
    set accountNames to name of every account
    set AppleScript's text item delimiters to "{RECORD_SEP}"
    return accountNames as text
end tell
"""


def accounts_script() -> str:
    row = _F.join([
        "acctName", "acctFullName", "emailStr", "acctType", "(acctEnabled as text)",
    ])
    return f"""
tell application "Mail"
    set output to ""
    repeat with acct in every account
        set acctName to name of acct
        set acctFullName to full name of acct
        set acctEmails to email addresses of acct
        set acctEnabled to enabled of acct
        set acctType to ""
        try
            set acctType to (account type of acct) as text
        end try
        set AppleScript's text item delimiters to "{LIST_SEP}"
        set emailStr to acctEmails as text
        set rowData to {row}{_APPEND_ROW}
    end repeat
    return output
end tell
"""


# ── Mailboxes ──────────────────────────────────────────────────────────────────


def mailboxes_script(account: str | None = None) -> str:
    """Top-level mailboxes plus one level of children.

    Child rows carry a sixth ``PARENT=<name>`` column.  Deeper nesting would
    need a query per mailbox, which is too slow to be worth it.
    """
    scope = (
        f"set accts to {{account {_quoted(account)}}}"
        if account is not None
        else "set accts to every account"
    )
    row = _F.join([
        "mboxName", "acctName", "(unreadCnt as text)", "(msgCnt as text)", "(childCount as text)",
    ])
    child_row = _F.join([
        "childName", "acctName", "(childUnread as text)", "(childMsgCnt as text)",
        "(childChildCount as text)", f'"{PARENT_MARKER}" & mboxName',
    ])
    return f"""
tell application "Mail"
    set output to ""
    {scope}
    repeat with acct in accts
        set acctName to name of acct
        repeat with mbox in mailboxes of acct
            set mboxName to name of mbox
            set unreadCnt to unread count of mbox
            set msgCnt to count of messages of mbox
            set childCount to count of mailboxes of mbox
            set rowData to {row}{_APPEND_ROW}
            if childCount > 0 then
                repeat with childBox in mailboxes of mbox
                    set childName to name of childBox
                    set childUnread to unread count of childBox
                    set childMsgCnt to count of messages of childBox
                    set childChildCount to count of mailboxes of childBox
                    set rowData to {child_row}{_APPEND_ROW}
                end repeat
            end if
        end repeat
    end repeat
    return output
end tell
"""


# ── Messages ───────────────────────────────────────────────────────────────────


def message_count_script(mailbox: str, account: str | None = None) -> str:
    return f"""
tell application "Mail"
    set mbox to mailbox {_quoted(mailbox)} {_account_clause(account)}
    return (count of messages of mbox) as text
end tell
"""


def message_range_script(mailbox: str, account: str | None, start: int, end: int) -> str:
    """Headers for messages ``start`` through ``end`` (1-based, oldest first)."""
    row = _F.join([_HEADER_COLUMNS, "(msgRead as text)", "(msgFlagged as text)", "(attachCount as text)"])
    return f"""
tell application "Mail"
    set mbox to mailbox {_quoted(mailbox)} {_account_clause(account)}
    set msgs to messages {int(start)} thru {int(end)} of mbox
    set output to ""
    repeat with msg in msgs{_READ_HEADER}
        set rowData to {row}{_APPEND_ROW}
    end repeat
    return output
end tell
"""


def message_detail_script(message_id: int, mailbox: str, account: str | None = None) -> str:
    """Full message; columns use the record separator and the body comes last.

    Subject and sender are percent-escaped so they cannot contain the
    separator; see :func:`mail_bridge.mail.codec.unescape_field`.
    """
    return f"""
tell application "Mail"
    set mbox to mailbox {_quoted(mailbox)} {_account_clause(account)}
    set msg to (first message of mbox whose id is {int(message_id)})

    set msgMessageId to ""
    try
        set msgMessageId to message id of msg
    end try
    set msgSubject to my escapeField(subject of msg)
    set msgSender to my escapeField(sender of msg)
    set msgDateSent to date sent of msg as text
    set msgDateReceived to date received of msg as text
    set msgRead to read status of msg
    set msgFlagged to flagged status of msg
    set msgContent to ""
    try
        set msgContent to content of msg
    end try

    set toList to ""
    try
        set toAddrs to address of every to recipient of msg
        set AppleScript's text item delimiters to "{LIST_SEP}"
        set toList to toAddrs as text
    end try

    set ccList to ""
    try
        set ccAddrs to address of every cc recipient of msg
        set AppleScript's text item delimiters to "{LIST_SEP}"
        set ccList to ccAddrs as text
    end try

    set attachInfo to ""
    try
        repeat with att in mail attachments of msg
            set attRow to (name of att) & "{ATTACHMENT_SEP}" & (MIME type of att) & "{ATTACHMENT_SEP}" & ((file size of att) as text)
            if attachInfo is "" then
                set attachInfo to attRow
            else
                set attachInfo to attachInfo & "{LIST_SEP}" & attRow
            end if
        end repeat
    end try

    set R to "{RECORD_SEP}"
    return msgMessageId & R & msgSubject & R & msgSender & R & msgDateSent & R & msgDateReceived & R & (msgRead as text) & R & (msgFlagged as text) & R & toList & R & ccList & R & attachInfo & R & msgContent
end tell
{_ESCAPE_FIELD_HANDLER}"""


# ── Unread & search ────────────────────────────────────────────────────────────


def unread_script(account: str | None = None, mailbox: str | None = None, *, limit: int) -> str:
    """Unread headers, stopping after ``limit`` rows.

    Scope is one mailbox of one account, every mailbox of one account, or
    every mailbox of every account.  A mailbox without an account scans all
    accounts.
    """
    row = _F.join([
        _HEADER_COLUMNS, "(msgFlagged as text)", "(attachCount as text)", "mboxName", "acctName",
    ])
    body = f"""
                if msgCount >= {int(limit)} then exit repeat{_READ_HEADER}
                set rowData to {row}{_APPEND_ROW}
                set msgCount to msgCount + 1"""

    if account is not None and mailbox is not None:
        return f"""
tell application "Mail"
    set output to ""
    set msgCount to 0
    set mbox to mailbox {_quoted(mailbox)} of account {_quoted(account)}
    set acctName to {_quoted(account)}
    set mboxName to {_quoted(mailbox)}
    set unreadMsgs to (messages of mbox whose read status is false)
    repeat with msg in unreadMsgs{body}
    end repeat
    return output
end tell
"""

    if account is not None:
        accounts = f"{{account {_quoted(account)}}}"
    else:
        accounts = "every account"
    return f"""
tell application "Mail"
    set output to ""
    set msgCount to 0
    repeat with acct in {accounts}
        if msgCount >= {int(limit)} then exit repeat
        set acctName to name of acct
        repeat with mbox in mailboxes of acct
            if msgCount >= {int(limit)} then exit repeat
            set mboxName to name of mbox
            set unreadMsgs to (messages of mbox whose read status is false)
            repeat with msg in unreadMsgs{body}
            end repeat
        end repeat
    end repeat
    return output
end tell
"""


def search_script(query: str, account: str | None = None, mailbox: str | None = None, *, limit: int) -> str:
    """Headers whose subject or sender contains ``query``.

    Matching is Mail.app's own ``contains`` operator.  A mailbox that fails to
    answer the query is skipped rather than failing the whole search.
    """
    if account is not None and mailbox is not None:
        scope = f"set searchScope to {{mailbox {_quoted(mailbox)} of account {_quoted(account)}}}"
    elif account is not None:
        scope = f"set searchScope to mailboxes of account {_quoted(account)}"
    else:
        scope = """set searchScope to {}
    repeat with acct in every account
        repeat with mbox in mailboxes of acct
            copy mbox to end of searchScope
        end repeat
    end repeat"""

    needle = _quoted(query)
    row = _F.join([
        _HEADER_COLUMNS, "(msgRead as text)", "(msgFlagged as text)", "(attachCount as text)",
        "mboxName", "acctName",
    ])
    return f"""
tell application "Mail"
    {scope}
    set output to ""
    set msgCount to 0
    repeat with mbox in searchScope
        if msgCount >= {int(limit)} then exit repeat
        set mboxName to name of mbox
        set acctName to name of account of mbox
        try
            set matchedMsgs to (messages of mbox whose subject contains {needle} or sender contains {needle})
            repeat with msg in matchedMsgs
                if msgCount >= {int(limit)} then exit repeat{_READ_HEADER}
                set rowData to {row}{_APPEND_ROW}
                set msgCount to msgCount + 1
            end repeat
        end try
    end repeat
    return output
end tell
"""
