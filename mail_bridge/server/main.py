"""Stdio entry point for the Mail.app MCP server."""

import asyncio
import logging

from dotenv import load_dotenv
from mcp.server.stdio import stdio_server

from mail_bridge.config import BridgeConfig, configure_logging
from mail_bridge.mail.executor import OsascriptExecutor
from mail_bridge.mail.service import MailService
from mail_bridge.server.tools import MailTools, build_server

logger = logging.getLogger(__name__)


async def serve(config: BridgeConfig) -> None:
    tools = MailTools(MailService(OsascriptExecutor(config)))
    server = build_server(tools)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("apple-mail MCP server running (osascript=%s)", config.osascript)
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    load_dotenv()
    config = BridgeConfig.from_env()
    configure_logging(config.log_level)
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
