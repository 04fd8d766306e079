"""Flat text protocol used to carry tabular results out of AppleScript.

Scripts join everything into one string so each operation costs a single
Apple event round trip.  Four separators nest by specificity::

    record    |||   between rows
    field     :::   between a row's columns
    list      ;;;   between items of a multi-valued column
    attach    ~~~   between the three columns of one attachment

Message content may contain any of these sequences, so it is only ever
decoded as "the remainder after N structural fields" (see
:func:`split_with_remainder`).  Other free-text columns of a detail result
(subject, sender) are percent-escaped by the script: ``%`` becomes ``%25`` and
``|`` becomes ``%7C``, so they can never contain the record separator
(see :func:`unescape_field`).
"""

from __future__ import annotations

import re

RECORD_SEP = "|||"
FIELD_SEP = ":::"
LIST_SEP = ";;;"
ATTACHMENT_SEP = "~~~"

#: Prefix marking the parent mailbox column of a child mailbox row.
PARENT_MARKER = "PARENT="

_ESCAPED = re.compile(r"%(25|7C)")
_UNESCAPED = {"25": "%", "7C": "|"}


def split_records(text: str) -> list[str]:
    """Split a result blob into rows. An empty result is an empty list."""
    if not text:
        return []
    return text.split(RECORD_SEP)


def split_fields(row: str) -> list[str]:
    return row.split(FIELD_SEP)


def split_list(value: str) -> list[str]:
    """Split a multi-valued column; an empty column is an empty list."""
    if not value:
        return []
    return value.split(LIST_SEP)


def split_attachment(value: str) -> list[str]:
    return value.split(ATTACHMENT_SEP)


def split_with_remainder(text: str, sep: str, structural: int) -> list[str]:
    """Split off ``structural`` leading fields and keep the rest as one field.

    The result has at most ``structural + 1`` items.  The last item is
    everything after the structural fields, with any ``sep`` embedded in the
    free text left verbatim.
    """
    return text.split(sep, structural)


def unescape_field(value: str) -> str:
    """Reverse the script-side escaping of ``%`` and ``|`` in one pass."""
    return _ESCAPED.sub(lambda m: _UNESCAPED[m.group(1)], value)
