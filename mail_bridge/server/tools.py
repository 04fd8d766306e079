"""Mail tools exposed to MCP clients — each one delegates to MailService."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mcp.server import Server
from mcp.types import TextContent, Tool

from mail_bridge.mail.errors import BridgeError, InvalidParameter
from mail_bridge.mail.service import DEFAULT_LIMIT, MailService, run_operation
from mail_bridge.mail.types import to_json_value

logger = logging.getLogger(__name__)

SERVER_NAME = "apple-mail"

_LIMIT_DESCRIPTION = f"Max messages to return (default {DEFAULT_LIMIT}, max 200)"


def _string(description: str) -> dict[str, str]:
    return {"type": "string", "description": description}


def _number(description: str) -> dict[str, str]:
    return {"type": "number", "description": description}


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    properties: dict[str, dict[str, str]]
    required: tuple[str, ...] = ()

    def to_tool(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema={
                "type": "object",
                "properties": self.properties,
                "required": list(self.required),
            },
        )


TOOL_SPECS: list[ToolSpec] = [
    ToolSpec(
        "mail_doctor",
        "Check Mail.app automation access and list account names",
        {},
    ),
    ToolSpec(
        "get_mail_accounts",
        "List all mail accounts (name, email, type, enabled)",
        {},
    ),
    ToolSpec(
        "get_mailboxes",
        "List mailboxes with unread/message counts and nested folders",
        {"account": _string("Filter by account name")},
    ),
    ToolSpec(
        "get_messages",
        "Get message headers from a mailbox with pagination (newest first)",
        {
            "mailbox": _string("Mailbox name (e.g. INBOX)"),
            "account": _string("Account name"),
            "limit": _number(_LIMIT_DESCRIPTION),
            "offset": _number("Offset from newest (default 0)"),
        },
        ("mailbox",),
    ),
    ToolSpec(
        "get_message",
        "Get full message content including body, recipients, and attachments",
        {
            "id": _number("Message ID"),
            "mailbox": _string("Mailbox name"),
            "account": _string("Account name"),
        },
        ("id", "mailbox"),
    ),
    ToolSpec(
        "get_unread_messages",
        "List unread messages across all accounts or filtered by account/mailbox",
        {
            "account": _string("Filter by account name"),
            "mailbox": _string("Filter by mailbox name"),
            "limit": _number(_LIMIT_DESCRIPTION),
        },
    ),
    ToolSpec(
        "search_mail",
        "Search messages by subject or sender",
        {
            "query": _string("Search query (matches subject and sender)"),
            "account": _string("Filter by account name"),
            "mailbox": _string("Filter by mailbox name"),
            "limit": _number(_LIMIT_DESCRIPTION),
        },
        ("query",),
    ),
]


def _int_arg(arguments: dict[str, Any], name: str, default: int | None = None) -> int:
    value = arguments.get(name, default)
    if value is None:
        raise InvalidParameter(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    return int(value)


def _str_arg(arguments: dict[str, Any], name: str) -> str | None:
    value = arguments.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidParameter(f"{name} must be a string, got {value!r}")
    return value


class MailTools:
    """Dispatches tool calls to a MailService.

    Mail.app does not tolerate concurrent Apple events well, so calls are run
    one at a time on a worker thread behind a single lock.
    """

    def __init__(self, service: MailService) -> None:
        self._service = service
        self._lock = asyncio.Lock()
        self._handlers: dict[str, Callable[[dict[str, Any]], Any]] = {
            "mail_doctor": lambda a: self._service.diagnostics(),
            "get_mail_accounts": lambda a: self._service.list_accounts(),
            "get_mailboxes": lambda a: self._service.list_mailboxes(_str_arg(a, "account")),
            "get_messages": lambda a: self._service.list_messages(
                _str_arg(a, "mailbox") or "",
                account=_str_arg(a, "account"),
                limit=_int_arg(a, "limit", DEFAULT_LIMIT),
                offset=_int_arg(a, "offset", 0),
            ),
            "get_message": lambda a: self._service.get_message(
                _int_arg(a, "id"),
                _str_arg(a, "mailbox") or "",
                account=_str_arg(a, "account"),
            ),
            "get_unread_messages": lambda a: self._service.list_unread(
                account=_str_arg(a, "account"),
                mailbox=_str_arg(a, "mailbox"),
                limit=_int_arg(a, "limit", DEFAULT_LIMIT),
            ),
            "search_mail": lambda a: self._service.search(
                _str_arg(a, "query") or "",
                account=_str_arg(a, "account"),
                mailbox=_str_arg(a, "mailbox"),
                limit=_int_arg(a, "limit", DEFAULT_LIMIT),
            ),
        }

    def list_tools(self) -> list[Tool]:
        return [spec.to_tool() for spec in TOOL_SPECS]

    async def call(self, name: str, arguments: dict[str, Any] | None) -> str:
        """Run tool ``name`` and return its result as pretty JSON.

        Raises BridgeError carrying the envelope's error message on failure.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise BridgeError(f"Unknown tool: {name}")

        logger.debug("tool → %s %s", name, arguments)
        async with self._lock:
            worker = asyncio.ensure_future(asyncio.to_thread(run_operation, handler, arguments or {}))
            try:
                envelope = await asyncio.shield(worker)
            except asyncio.CancelledError:
                # The thread cannot be interrupted; keep the lock until osascript returns.
                await asyncio.wait({worker})
                raise
        if not envelope.ok:
            logger.info("Tool %s failed: %s", name, envelope.error)
            raise BridgeError(envelope.error)
        return json.dumps(to_json_value(envelope.data), indent=2, ensure_ascii=False)


def build_server(tools: MailTools) -> Server:
    """Wire MailTools into a low-level MCP server."""
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return tools.list_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        text = await tools.call(name, arguments)
        return [TextContent(type="text", text=text)]

    return server
