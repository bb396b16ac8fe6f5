"""Run a full seeker x provider matching batch and store the results.

Usage:
    python run_matching.py --workers 4
"""

import argparse
import asyncio
import logging
import sys

from dealflow.db import AsyncSessionMaker, dispose_engine
from dealflow.logging_config import setup_logging
from dealflow.pipelines.matching import MatchingError, run_full_matching

logger = logging.getLogger("run_matching")


async def run(workers: int | None) -> int:
    async with AsyncSessionMaker() as session:
        summary = await run_full_matching(session, workers=workers)
    await dispose_engine()

    logger.info(
        f"{summary.seekers_processed} seekers x {summary.providers_considered} providers "
        f"-> {summary.generated} matches"
    )
    return summary.generated


def main():
    parser = argparse.ArgumentParser(description="Run the matching engine over all entities")
    parser.add_argument("--workers", type=int, default=None, help="Processes for scoring (default from config)")
    args = parser.parse_args()

    setup_logging()
    try:
        asyncio.run(run(args.workers))
    except MatchingError as e:
        logger.error(f"Matching run failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
