"""Application entry point.

Command-line front end over MarketplaceService. Each command performs one
service call and prints its result as JSON on stdout. Configures logging,
wires the container and always closes the browser session on exit.
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from .core.container import Container
from .errors import MarketplaceError, is_permanent, is_retryable
from .services.marketplace import MarketplaceService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_RETRYABLE = 2
EXIT_UNHEALTHY = 3


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.INFO,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agent-marketplace",
        description="Browse categories, agents and agent definitions of the marketplace.",
    )
    parser.add_argument("--config", type=Path, default=None, help="path to marketplace.yml")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument(
        "--timeout", type=float, default=None, help="abort the command after N seconds"
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("categories", help="list categories")
    agents = commands.add_parser("agents", help="list agents in a category")
    agents.add_argument("category")
    agent = commands.add_parser("agent", help="show one agent")
    agent.add_argument("agent_id")
    content = commands.add_parser("content", help="print an agent definition")
    content.add_argument("agent_id")
    search = commands.add_parser("search", help="search agents")
    search.add_argument("query")
    commands.add_parser("refresh", help="clear the cache and reload categories")
    commands.add_parser("stats", help="show cache statistics")
    commands.add_parser("health", help="check that the marketplace is reachable")
    return parser


def to_jsonable(value: Any) -> Any:
    """Convert service results (models, lists, plain values) for json.dumps."""
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    return value


def command_handler(
    service: MarketplaceService, args: argparse.Namespace
) -> Callable[[], Awaitable[Any]]:
    """Map a parsed command to the service coroutine that serves it."""

    async def stats() -> Any:
        return service.get_cache_stats()

    handlers: dict[str, Callable[[], Awaitable[Any]]] = {
        "categories": service.get_categories,
        "agents": lambda: service.get_agents(args.category),
        "agent": lambda: service.get_agent(args.agent_id),
        "content": lambda: service.get_agent_content(args.agent_id),
        "search": lambda: service.search(args.query),
        "refresh": service.refresh_cache,
        "stats": stats,
        "health": service.health_check,
    }
    return handlers[args.command]


async def run(args: argparse.Namespace, container: Container) -> int:
    """Execute one command and print its result."""
    service = container.marketplace_service()
    handler = command_handler(service, args)

    try:
        async with asyncio.timeout(args.timeout):
            result = await handler()
    finally:
        await service.browser.close()

    if args.command == "content":
        print(result)
    else:
        print(json.dumps(to_jsonable(result), indent=2, ensure_ascii=False))

    if args.command == "health" and not result:
        return EXIT_UNHEALTHY
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the command-line client."""
    args = build_parser().parse_args(argv)

    container = Container()
    if args.config is not None:
        container.config_path.override(args.config)

    try:
        configure_logging(args.debug or container.settings().marketplace.debug)
        return asyncio.run(run(args, container))
    except TimeoutError:
        logger.error(f"Command {args.command} timed out after {args.timeout}s")
        return EXIT_RETRYABLE
    except MarketplaceError as e:
        logger.error(str(e))
        if is_retryable(e) and not is_permanent(e):
            return EXIT_RETRYABLE
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
