"""Show the current Hacker News top stories in the terminal.

Usage:
    python show_top_stories.py [LIMIT] [--arrival] [--json-logs]
"""

import argparse
import asyncio

from src.integrations.hackernews import FetchClient
from src.stories.cli_helpers import display_refresh_summary, display_stories, print_list_event
from src.stories.list_controller import InsertionOrder, LoadState, TopStoriesController
from src.utils.logging_config import get_logger, setup_logging


async def main(limit: int | None, order: InsertionOrder) -> int:
    logger = get_logger(__name__)

    async with FetchClient() as client:
        controller = TopStoriesController(client, page_size=limit, order=order)
        controller.add_listener(print_list_event)
        result = await controller.refresh()

    logger.debug("Refresh finished: %s", result)
    display_stories(controller.rows())
    display_refresh_summary(result)
    return 1 if result.status is LoadState.FAILED else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("limit", nargs="?", type=int, help="Number of stories (default PAGE_SIZE)")
    parser.add_argument("--arrival", action="store_true", help="Insert stories in arrival order")
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON")
    args = parser.parse_args()

    setup_logging(use_json=args.json_logs)
    order = InsertionOrder.ARRIVAL if args.arrival else InsertionOrder.RANK
    raise SystemExit(asyncio.run(main(args.limit, order)))
