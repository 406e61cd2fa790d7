#!/usr/bin/env python3
"""Command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, Sequence, TextIO

from dotenv import load_dotenv

from . import __version__
from .config import load_config
from .exceptions import ConfigurationError, FatalStartupError
from .logging_config import configure_logging
from .server import run_server
from .tools import tool_catalog

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zapsign-mcp",
        description="ZapSign MCP Server - ZapSign document signing tools via Model Context Protocol",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Environment: ZAPSIGN_API_KEY (required to serve), PORT, HOST, LOG_LEVEL, LOG_DIR, MCP_TRANSPORT",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["serve", "tools"],
        default="serve",
        help="serve: run the MCP server (default); tools: list available tools",
    )
    parser.add_argument("--sse", action="store_true", help="Serve over HTTP/SSE instead of stdio")
    parser.add_argument("--host", help="HTTP host for --sse (overrides HOST)")
    parser.add_argument("--port", type=int, help="HTTP port for --sse (overrides PORT)")
    parser.add_argument(
        "--log-level",
        choices=["error", "warn", "info", "debug"],
        help="Log level (overrides LOG_LEVEL)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def print_tool_catalog(stream: Optional[TextIO] = None) -> int:
    """Print every tool grouped by module with its parameter descriptions."""
    out = stream or sys.stdout
    catalog = tool_catalog()
    total = sum(len(tools) for tools in catalog.values())
    if not total:
        print("No tools found.", file=out)
        return 0

    print("\nAvailable Tools:\n", file=out)
    for tag, tools in catalog.items():
        print(f"Module: {tag}", file=out)
        for tool in tools:
            print(f"  {tool.name}", file=out)
            print(f"    Description: {tool.description or 'No description provided'}", file=out)
            if tool.properties:
                print("    Parameters:", file=out)
                for name, details in tool.properties.items():
                    marker = " (required)" if name in tool.required else ""
                    print(f"      - {name}{marker}: {details.get('description') or 'No description'}", file=out)
            print(file=out)
    print(f"{total} tools", file=out)
    return 0


def select_transport(args: argparse.Namespace) -> str:
    if args.sse or os.environ.get("MCP_TRANSPORT", "").strip().lower() == "sse":
        return "sse"
    return "stdio"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the MCP server. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    # .env in the current working directory; the shell environment wins
    load_dotenv()

    if args.command == "tools":
        configure_logging(args.log_level or "warn")
        return print_tool_catalog()

    try:
        config = load_config().with_overrides(host=args.host, port=args.port, log_level=args.log_level)
    except ConfigurationError as e:
        configure_logging("error")
        logger.error(f"{e.kind.value}: {e}")
        return 1

    configure_logging(config.log_level, config.log_dir)
    logger.debug(f"Configuration: {config.to_safe_dict()}")

    try:
        return asyncio.run(run_server(config, transport=select_transport(args)))
    except FatalStartupError as e:
        logger.error(f"{e.kind.value}: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0
    except Exception as e:
        logger.critical(f"Unexpected fatal error: {e}", exc_info=True)
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
