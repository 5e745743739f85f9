#!/usr/bin/env python3
"""Newsfeed: RSS news aggregation, classification and query CLI.

This CLI tool ingests articles from Indian news RSS feeds, classifies
them (topic, entities, affected states, sentiment) and queries the
stored collection.

Commands:
    run         Run an ingestion cycle (once or continuously)
    articles    List articles with filters and pagination
    topics      List distinct topics
    sources     List distinct sources
    states      List distinct affected states
    stats       Show collection statistics
    seed        Load the demonstration article set
    status      Show configuration and store statistics

Examples:
    python main.py run                          # Single ingestion cycle
    python main.py run -c                       # Continuous polling
    python main.py articles --topic sports      # Latest sports articles
    python main.py articles --state punjab --page 2 --limit 10
    python main.py --offline stats              # Never touch the network

Environment:
    See config.py for all configuration options
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable

from config import Config
from observability.logging import setup_logging
from service import NewsService


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


async def _serve(
    config: Config,
    action: Callable[[NewsService], Awaitable[Any]],
    auto_refresh: bool = True,
    refresh_on_start: bool = True,
) -> Any:
    """Start a service, run one action against it, flush on exit."""
    service = NewsService.from_config(config, auto_refresh=auto_refresh)
    try:
        await service.start(refresh=refresh_on_start)
        return await action(service)
    finally:
        service.close()


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    """Execute ingestion once or continuously.

    Args:
        args: Parsed command line arguments
        config: Application configuration

    Returns:
        Exit code (0 for success)
    """
    logger = logging.getLogger(__name__)

    if args.interval:
        config.poll_interval_seconds = args.interval

    async def run_once(service: NewsService) -> dict[str, Any]:
        stats = await service.pipeline.run_once()
        return stats.to_dict()

    async def run_continuous(service: NewsService) -> None:
        await service.run_scheduler()

    try:
        if args.continuous:
            logger.info("Starting continuous mode...")
            try:
                asyncio.run(_serve(config, run_continuous, refresh_on_start=False))
            except KeyboardInterrupt:
                logger.info("Stopped by user (Ctrl+C)")
            return 0
        stats = asyncio.run(_serve(config, run_once, auto_refresh=False))
        logger.info("Run complete | stats=%s", json.dumps(stats))
        _print_json(stats)
        return 0
    except KeyboardInterrupt:
        logger.info("Stopped by user (Ctrl+C)")
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        logger.error("Ingestion failed | error=%s type=%s", e, type(e).__name__, exc_info=True)
        return 1


def cmd_articles(args: argparse.Namespace, config: Config) -> int:
    """List articles matching the filters."""
    limit = args.limit or config.default_page_limit

    async def query(service: NewsService) -> dict[str, Any]:
        return await service.articles(
            topic=args.topic, source=args.source, state=args.state,
            page=args.page, limit=limit,
        )

    result = asyncio.run(_serve(config, query, auto_refresh=not args.offline))
    _print_json(result)
    return 1 if "error" in result else 0


def _cmd_distinct(field: str) -> Callable[[argparse.Namespace, Config], int]:
    def command(args: argparse.Namespace, config: Config) -> int:
        async def query(service: NewsService) -> Any:
            return await service.distinct(field)

        result = asyncio.run(_serve(config, query, auto_refresh=not args.offline))
        _print_json(result)
        return 1 if isinstance(result, dict) else 0

    command.__doc__ = f"List distinct values of '{field}'."
    return command


def cmd_stats(args: argparse.Namespace, config: Config) -> int:
    """Show collection statistics."""
    async def query(service: NewsService) -> dict[str, Any]:
        return await service.stats()

    result = asyncio.run(_serve(config, query, auto_refresh=not args.offline))
    _print_json(result)
    return 1 if "error" in result else 0


def cmd_seed(args: argparse.Namespace, config: Config) -> int:
    """Load the demonstration article set."""
    async def seed(service: NewsService) -> dict[str, Any]:
        return await service.seed_sample()

    result = asyncio.run(_serve(config, seed, auto_refresh=False))
    print(result["message"])
    return 1 if "error" in result else 0


def cmd_status(args: argparse.Namespace, config: Config) -> int:
    """Display configuration and store statistics.

    Never triggers ingestion.
    """
    async def query(service: NewsService) -> dict[str, Any]:
        return await service.stats()

    stats = asyncio.run(_serve(config, query, auto_refresh=False))

    status = {
        "config": {
            "sources": len(config.sources),
            "stale_ttl_seconds": config.stale_ttl_seconds,
            "poll_interval": config.poll_interval_seconds,
            "fetch_timeout": config.fetch_timeout,
            "max_workers": config.max_workers,
            "max_articles": config.max_articles,
            "seed_on_empty": config.seed_on_empty,
        },
        "store": {
            "path": str(config.data_path) if config.data_path else "memory",
            **stats,
        },
    }

    _print_json(status)
    return 0


def main() -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Newsfeed - RSS news aggregation and classification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Serve stored articles only; never trigger ingestion on read",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # run command
    run_parser = subparsers.add_parser("run", help="Run an ingestion cycle")
    run_parser.add_argument(
        "-c", "--continuous",
        action="store_true",
        help="Run continuously, polling at interval",
    )
    run_parser.add_argument(
        "--interval",
        type=int,
        help="Poll interval in seconds (default: from config)",
    )

    # articles command
    articles_parser = subparsers.add_parser("articles", help="List articles")
    articles_parser.add_argument("--topic", help="Filter by topic (case-insensitive)")
    articles_parser.add_argument("--source", help="Filter by source (case-insensitive)")
    articles_parser.add_argument("--state", help="Filter by affected state (case-insensitive)")
    articles_parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Page number (default: 1)",
    )
    articles_parser.add_argument(
        "--limit",
        type=int,
        help="Page size, 1-50 (default: from config)",
    )

    subparsers.add_parser("topics", help="List distinct topics")
    subparsers.add_parser("sources", help="List distinct sources")
    subparsers.add_parser("states", help="List distinct affected states")
    subparsers.add_parser("stats", help="Show collection statistics")
    subparsers.add_parser("seed", help="Load demonstration articles")
    subparsers.add_parser("status", help="Show configuration and statistics")

    args = parser.parse_args()

    try:
        config = Config.load()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config, verbose=args.verbose)

    error = config.validate()
    if error:
        print(f"Configuration error: {error}", file=sys.stderr)
        return 1

    commands = {
        "run": cmd_run,
        "articles": cmd_articles,
        "topics": _cmd_distinct("topic"),
        "sources": _cmd_distinct("source"),
        "states": _cmd_distinct("affectedStates"),
        "stats": cmd_stats,
        "seed": cmd_seed,
        "status": cmd_status,
    }

    if args.command in commands:
        try:
            return commands[args.command](args, config)
        except Exception as e:
            logging.getLogger(__name__).error("Command failed | cmd=%s error=%s", args.command, e, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
