#!/usr/bin/env python3
"""
Task Board — Demo Data Seeder
Creates a sample board with five columns and a handful of tasks through the
same service layer the API uses.

Usage:
    python seed.py
    python seed.py --title "Release Train" --tasks-per-column 3
"""

import argparse
import asyncio
import logging
from typing import Dict, List

from database import async_session_maker, init_db, close_db
from taskboard.observability import LoggingObserver
from taskboard.service import BoardService

logger = logging.getLogger("taskboard.seed")

# ── Configuration ───────────────────────────────────────────

DEFAULT_COLUMNS = ["Backlog", "To Do", "In Progress", "Review", "Done"]

SAMPLE_TASKS: Dict[str, List[Dict[str, str]]] = {
    "Backlog": [
        {"title": "Project setup", "description": "Initialise repository, tooling and folder structure"},
        {"title": "Environment config", "description": "Validate API keys, database URL and port settings"},
        {"title": "Caching layer", "description": "Cache board reads behind a short TTL"},
        {"title": "Provider interface", "description": "Define chat completion, model listing and error handling"},
    ],
    "To Do": [
        {"title": "Auth middleware", "description": "Reject requests without a valid API key"},
        {"title": "Rate limiting", "description": "Per-key sliding window limits"},
        {"title": "Request logging", "description": "One structured line per request with correlation id"},
    ],
    "In Progress": [
        {"title": "Streaming responses", "description": "Forward server-sent events to the client"},
        {"title": "Retry policy", "description": "Exponential backoff for transient upstream failures"},
    ],
    "Review": [
        {"title": "Usage metrics", "description": "Token counts per key and per model"},
    ],
    "Done": [
        {"title": "Health endpoint", "description": "Report database connectivity"},
    ],
}


async def seed(title: str = "AI Gateway", tasks_per_column: int = 0) -> str:
    """Create the demo board and return its id"""
    async with async_session_maker() as session:
        service = BoardService(session, LoggingObserver(request_id="seed"))
        board = await service.create_board(title)
        logger.info(f"Created board: {board.title}")

        for column_title in DEFAULT_COLUMNS:
            column = await service.create_column(board.id, column_title)
            logger.info(f"Created column: {column.title} (position {column.position})")

            tasks = SAMPLE_TASKS.get(column_title, [])
            if tasks_per_column:
                tasks = tasks[:tasks_per_column]
            for task in tasks:
                await service.create_task(column.id, task["title"], task["description"])
            logger.info(f"  {len(tasks)} task(s) added")

        stats = await service.board_stats(board.id)
        logger.info(
            f"Seed complete: {stats.total_tasks} tasks across "
            f"{len(stats.tasks_by_column)} columns"
        )
        return board.id


async def main(args: argparse.Namespace) -> None:
    await init_db()
    try:
        board_id = await seed(args.title, args.tasks_per_column)
        print(board_id)
    finally:
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Seed a demo task board")
    parser.add_argument("--title", default="AI Gateway", help="Board title")
    parser.add_argument("--tasks-per-column", type=int, default=0, help="Cap tasks per column (0 = all)")
    asyncio.run(main(parser.parse_args()))
