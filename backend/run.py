"""Start the moderation queue API with uvicorn.

Defaults come from settings (APP_HOST, APP_PORT); outside production the
server reloads on code changes.

Usage:
    python run.py
    python run.py --no-reload --port 9000
"""
import argparse
import sys

import uvicorn

from modqueue.config import settings

if sys.platform == "win32":
    import asyncio

    import uvicorn.loops.asyncio as _uvicorn_loops

    # asyncpg needs a selector loop; uvicorn picks Proactor on Windows
    _uvicorn_loops.asyncio_loop_factory = lambda use_subprocess=False: asyncio.SelectorEventLoop


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Moderation queue API server")
    parser.add_argument("--host", default=settings.APP_HOST)
    parser.add_argument("--port", type=int, default=settings.APP_PORT)
    parser.add_argument(
        "--reload",
        action=argparse.BooleanOptionalAction,
        default=settings.APP_ENV != "production",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    uvicorn.run(
        "modqueue.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
        loop="asyncio",
    )


if __name__ == "__main__":
    main()
