"""Serve the matching API with uvicorn.

Host and port come from ``HOST``/``PORT`` (or ``--host``/``--port``);
``DEBUG=true`` turns on auto-reload for the ``dealflow`` and ``config`` packages.
"""
import argparse

import uvicorn

from dealflow.config import settings
from dealflow.db import safe_url


def main():
    parser = argparse.ArgumentParser(description="Run the dealflow matching API")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    args = parser.parse_args()

    print(f"Starting {settings.app_name} v{settings.version} on {args.host}:{args.port}")
    print(f"Database: {safe_url(settings.db.url)}")
    print(f"Matching: min score {settings.matching.min_score}, "
          f"top {settings.matching.max_matches_per_entity} per entity, "
          f"{settings.matching.workers} worker(s)")
    print(f"Auto-reload: {'Enabled' if settings.debug else 'Disabled'}")

    uvicorn.run(
        "dealflow.api:app",
        host=args.host,
        port=args.port,
        reload=settings.debug,
        reload_dirs=["dealflow", "config"] if settings.debug else None,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
