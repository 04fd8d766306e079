"""Split a Mail.app sender string into display name and address."""

from __future__ import annotations


def parse_sender(raw: str) -> tuple[str, str]:
    """Return ``(name, email)`` for a raw sender string.

    Handles ``Display Name <addr>``, ``"Quoted Name" <addr>``, ``<addr>`` and
    bare addresses.  The last ``<`` / ``>`` pair is used so a display name
    containing angle brackets still resolves to the real address.  No address
    validation is attempted.

    Examples::

        parse_sender("Jane Doe <jane@x.com>")  # ("Jane Doe", "jane@x.com")
        parse_sender("<jane@x.com>")           # ("jane@x.com", "jane@x.com")
        parse_sender("Jane Doe")               # ("Jane Doe", "")
    """
    trimmed = raw.strip()

    start = trimmed.rfind("<")
    end = trimmed.rfind(">")
    if start != -1 and start < end:
        email = trimmed[start + 1:end].strip()
        name = _strip_quotes(trimmed[:start].strip())
        return (name or email), email

    if "@" in trimmed:
        return trimmed, trimmed

    return trimmed, ""


def _strip_quotes(name: str) -> str:
    if len(name) >= 2 and name[0] == '"' and name[-1] == '"':
        return name[1:-1]
    return name
