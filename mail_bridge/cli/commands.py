"""CLI command implementations — all commands delegate to MailService."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mail_bridge.mail.service import DEFAULT_LIMIT, run_operation
from mail_bridge.mail.types import Account, Envelope, Mailbox, MessageHeader, PaginatedMessages

if TYPE_CHECKING:
    from mail_bridge.mail.service import MailService

logger = logging.getLogger(__name__)
console = Console(width=200)

_LIMIT_HELP = f"Maximum messages to return (default {DEFAULT_LIMIT}, max 200)."

table_option = click.option(
    "--table", "as_table", is_flag=True, help="Render a table instead of JSON."
)


def _emit(envelope: Envelope[Any], render: Any = None) -> None:
    """Print the envelope as JSON, or hand its data to ``render`` for a table."""
    if render is None:
        click.echo(envelope.to_json())
        return
    if not envelope.ok:
        console.print(f"[red]{escape(envelope.error or '')}[/red]")
        return
    render(envelope.data)


# ── Renderers ──────────────────────────────────────────────────────────────────


def _render_headers(headers: list[MessageHeader], title: str = "") -> None:
    if not headers:
        console.print("[yellow]No messages found.[/yellow]")
        return

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan", title=title or None)
    table.add_column("ID", style="dim", width=8)
    table.add_column("Subject", max_width=48)
    table.add_column("From", max_width=30)
    table.add_column("Received", width=30)
    table.add_column("Mailbox", max_width=20)
    table.add_column("Flags", width=5)

    for h in headers:
        flags = ("" if h.is_read else "●") + ("⚑" if h.is_flagged else "") + ("📎" if h.has_attachments else "")
        style = "bold" if not h.is_read else ""
        table.add_row(
            str(h.id),
            f"[{style}]{escape(h.subject)}[/{style}]" if style else escape(h.subject),
            escape(h.sender_name or h.sender_email),
            h.date_received,
            escape(f"{h.account}/{h.mailbox}"),
            flags,
        )
    console.print(table)


def _render_page(page: PaginatedMessages) -> None:
    last = page.offset + len(page.messages)
    title = f"{page.offset + 1}–{last} of {page.total}" if page.messages else f"0 of {page.total}"
    _render_headers(page.messages, title=title)
    if page.has_more:
        console.print(f"  [dim]More messages: --offset {page.offset + page.limit}[/dim]")


def _render_mailboxes(tree: list[Mailbox]) -> None:
    if not tree:
        console.print("[yellow]No mailboxes found.[/yellow]")
        return

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Mailbox", max_width=60)
    table.add_column("Unread", justify="right", width=8)
    table.add_column("Messages", justify="right", width=10)

    for mbox in tree:
        table.add_row(escape(mbox.full_name), str(mbox.unread_count), str(mbox.message_count))
        for child in mbox.children:
            table.add_row(f"  └ {escape(child.name)}", str(child.unread_count), str(child.message_count))
    console.print(table)


def _render_accounts(accounts: list[Account]) -> None:
    if not accounts:
        console.print("[yellow]No accounts configured in Mail.app.[/yellow]")
        return

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=3)
    table.add_column("Account", max_width=30)
    table.add_column("Addresses", max_width=60)
    table.add_column("Type", width=10)
    table.add_column("Enabled", width=8)

    for acct in accounts:
        enabled = "[green]yes[/green]" if acct.enabled else "[dim]no[/dim]"
        table.add_row(acct.id, escape(acct.name), ", ".join(acct.email_addresses), acct.account_type, enabled)
    console.print(table)


# ── Commands ───────────────────────────────────────────────────────────────────


@click.command("mail-doctor")
@click.pass_obj
def mail_doctor(service: MailService) -> None:
    """Check Mail.app access and list the configured account names."""
    _emit(run_operation(service.diagnostics))


@click.command("mail-accounts")
@table_option
@click.pass_obj
def mail_accounts(service: MailService, as_table: bool) -> None:
    """List mail accounts."""
    _emit(run_operation(service.list_accounts), _render_accounts if as_table else None)


@click.command("mailboxes")
@click.option("--account", default=None, help="Filter by account name.")
@table_option
@click.pass_obj
def mailboxes(service: MailService, account: str | None, as_table: bool) -> None:
    """List mailboxes with unread and message counts."""
    _emit(
        run_operation(service.list_mailboxes, account),
        _render_mailboxes if as_table else None,
    )


@click.command("messages")
@click.option("--mailbox", required=True, help="Mailbox name (e.g. INBOX).")
@click.option("--account", default=None, help="Account name.")
@click.option("--limit", default=DEFAULT_LIMIT, type=int, help=_LIMIT_HELP)
@click.option("--offset", default=0, type=int, help="Offset from newest (default 0).")
@table_option
@click.pass_obj
def messages(
    service: MailService,
    mailbox: str,
    account: str | None,
    limit: int,
    offset: int,
    as_table: bool,
) -> None:
    """List message headers from a mailbox, newest first."""
    _emit(
        run_operation(service.list_messages, mailbox, account=account, limit=limit, offset=offset),
        _render_page if as_table else None,
    )


@click.command("message-detail")
@click.option("--id", "message_id", required=True, type=int, help="Message ID.")
@click.option("--mailbox", required=True, help="Mailbox name.")
@click.option("--account", default=None, help="Account name.")
@click.pass_obj
def message_detail(service: MailService, message_id: int, mailbox: str, account: str | None) -> None:
    """Get full message content."""
    _emit(run_operation(service.get_message, message_id, mailbox, account=account))


@click.command("unread-messages")
@click.option("--account", default=None, help="Account name.")
@click.option("--mailbox", default=None, help="Mailbox name.")
@click.option("--limit", default=DEFAULT_LIMIT, type=int, help=_LIMIT_HELP)
@table_option
@click.pass_obj
def unread_messages(
    service: MailService,
    account: str | None,
    mailbox: str | None,
    limit: int,
    as_table: bool,
) -> None:
    """List unread messages."""
    _emit(
        run_operation(service.list_unread, account=account, mailbox=mailbox, limit=limit),
        _render_headers if as_table else None,
    )


@click.command("search-mail")
@click.option("--query", required=True, help="Search query (matches subject and sender).")
@click.option("--account", default=None, help="Account name.")
@click.option("--mailbox", default=None, help="Mailbox name.")
@click.option("--limit", default=DEFAULT_LIMIT, type=int, help=_LIMIT_HELP)
@table_option
@click.pass_obj
def search_mail(
    service: MailService,
    query: str,
    account: str | None,
    mailbox: str | None,
    limit: int,
    as_table: bool,
) -> None:
    """Search messages by subject or sender."""
    _emit(
        run_operation(service.search, query, account=account, mailbox=mailbox, limit=limit),
        _render_headers if as_table else None,
    )
