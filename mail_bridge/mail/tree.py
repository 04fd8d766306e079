"""Rebuild the two-level mailbox hierarchy from a flat enumeration."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from mail_bridge.mail.types import Mailbox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailboxRow:
    """One decoded mailbox row; ``parent`` is set for nested mailboxes."""

    name: str
    account: str
    unread_count: int
    message_count: int
    parent: str | None = None


def build_mailbox_tree(rows: Iterable[MailboxRow]) -> list[Mailbox]:
    """Attach child rows to their top-level parent, preserving input order.

    Children are matched on ``(account, parent name)``.  Children whose parent
    is not among the top-level rows are dropped; the tree never goes deeper
    than one nested level.
    """
    rows = list(rows)
    children: dict[tuple[str, str], list[Mailbox]] = defaultdict(list)

    for row in rows:
        if row.parent is None:
            continue
        children[(row.account, row.parent)].append(Mailbox(
            name=row.name,
            full_name=f"{row.account}/{row.parent}/{row.name}",
            account=row.account,
            unread_count=row.unread_count,
            message_count=row.message_count,
        ))

    tree: list[Mailbox] = []
    attached: set[tuple[str, str]] = set()
    for row in rows:
        if row.parent is not None:
            continue
        key = (row.account, row.name)
        attached.add(key)
        tree.append(Mailbox(
            name=row.name,
            full_name=f"{row.account}/{row.name}",
            account=row.account,
            unread_count=row.unread_count,
            message_count=row.message_count,
            children=list(children.get(key, [])),
        ))

    orphans = sum(len(v) for k, v in children.items() if k not in attached)
    if orphans:
        logger.debug("Dropped %d mailbox(es) with no top-level parent", orphans)
    return tree
