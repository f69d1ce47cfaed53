#!/usr/bin/env python
"""Administer the project vector index.

Usage:
    python -m scripts.manage_index ensure
    python -m scripts.manage_index stats
    python -m scripts.manage_index delete --yes
    python -m scripts.manage_index search "red barn under a yellow sun"

Connection settings come from the environment (QDRANT_*, EMBEDDING_*, LLM_*).
"""

import argparse
import asyncio
import sys

from canvas_search.api.dependencies import Services
from canvas_search.config import get_settings
from canvas_search.exceptions import CanvasSearchError
from canvas_search.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


async def run_command(args: argparse.Namespace) -> int:
    """Run one admin command and return the process exit code."""
    setup_logging(level="INFO")
    services = Services(get_settings())
    index = services.vector_index

    try:
        if args.command == "ensure":
            created = await index.ensure_index()
            print("Index created" if created else "Index already exists")

        elif args.command == "delete":
            if not args.yes:
                print("Refusing to delete the index without --yes")
                return 2
            deleted = await index.delete_index()
            print("Index deleted" if deleted else "Index does not exist")

        elif args.command == "stats":
            print(f"Stored project vectors: {await index.count()}")

        elif args.command == "search":
            response = await services.orchestrator.search(args.query)
            if not response.results:
                print("No similar projects found")
            for position, result in enumerate(response.results, start=1):
                print(f"{position:>2}. {result.id}  {result.similarity:.4f}")
            if response.results and not response.reranked:
                print("(re-ranking unavailable, ordered by similarity)")

    except CanvasSearchError as e:
        logger.error(f"{args.command} failed: {e.message}", extra={"code": e.code.value})
        print(f"Error [{e.code.value}]: {e.message}", file=sys.stderr)
        return 1

    finally:
        await services.aclose()

    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Administer the project vector index",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ensure", help="Create the index if it does not exist")
    subparsers.add_parser("stats", help="Show the number of stored vectors")

    delete_parser = subparsers.add_parser("delete", help="Delete the index")
    delete_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm deletion",
    )

    search_parser = subparsers.add_parser("search", help="Search projects by description")
    search_parser.add_argument("query", help="Free-text description")

    args = parser.parse_args()
    sys.exit(asyncio.run(run_command(args)))


if __name__ == "__main__":
    main()
