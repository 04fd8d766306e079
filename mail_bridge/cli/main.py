"""CLI entry point for the Mail.app bridge."""

import logging

import click
from dotenv import load_dotenv

from mail_bridge.config import BridgeConfig, configure_logging
from mail_bridge.mail.executor import OsascriptExecutor
from mail_bridge.mail.service import MailService

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Read-only Mail.app bridge. Every command prints a JSON envelope."""
    load_dotenv()
    config = BridgeConfig.from_env()
    configure_logging("DEBUG" if verbose else config.log_level)
    ctx.obj = MailService(OsascriptExecutor(config))


# Import and register commands after cli is defined to avoid circular imports.
from mail_bridge.cli.commands import (  # noqa: E402
    mail_accounts,
    mail_doctor,
    mailboxes,
    message_detail,
    messages,
    search_mail,
    unread_messages,
)

cli.add_command(mail_doctor)
cli.add_command(mail_accounts)
cli.add_command(mailboxes)
cli.add_command(messages)
cli.add_command(message_detail)
cli.add_command(unread_messages)
cli.add_command(search_mail)
