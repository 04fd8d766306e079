"""Newest-first pagination over Mail.app's oldest-first message indices."""

from __future__ import annotations

from dataclasses import dataclass

#: Hard ceiling on any page or scan size.
MAX_LIMIT = 200


def clamp_limit(limit: int) -> int:
    return min(limit, MAX_LIMIT)


@dataclass(frozen=True)
class PageWindow:
    """Inclusive 1-based index range to fetch, plus page metadata.

    ``start``/``end`` are ``None`` when there is nothing to fetch.  Rows
    fetched for ``[start, end]`` arrive oldest first and must be reversed.
    """

    start: int | None
    end: int | None
    limit: int
    has_more: bool

    @property
    def empty(self) -> bool:
        return self.start is None


def paginate(total: int, offset: int, limit: int) -> PageWindow:
    """Compute the index window for page ``offset``/``limit`` counted from the newest.

    Mail.app numbers messages 1..total with the newest at ``total``.

    Example: ``paginate(120, 0, 50)`` fetches 71..120 and reports more pages.
    """
    effective = clamp_limit(limit)
    if total == 0:
        return PageWindow(None, None, effective, False)

    end = max(1, total - offset)
    start = max(1, total - offset - effective + 1)
    if offset >= total or start > end:
        return PageWindow(None, None, effective, False)

    return PageWindow(start, end, effective, offset + effective < total)
