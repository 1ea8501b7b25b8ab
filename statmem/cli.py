"""
Command line entry point.

    statmem tools            serve memory tools over stdio (JSON-RPC)
    statmem web              serve the dashboard API
"""

import argparse
import sys

from .core.config import WEB_HOST, WEB_PORT, validate_config
from .core.memory_store import MemoryStore
from .util.logging import logger


def run_tools(args) -> int:
    from .api.tools import ToolServer

    store = MemoryStore(db_path=args.db_path)
    try:
        ToolServer(store).serve()
    finally:
        store.close()
    return 0


def run_web(args) -> int:
    import uvicorn
    from .api.main import create_app

    store = MemoryStore(db_path=args.db_path)
    logger.info(f"Starting web server on {args.host}:{args.port}")
    try:
        uvicorn.run(create_app(store), host=args.host, port=args.port)
    finally:
        store.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="statmem", description="Statistical embedding memory server")
    parser.add_argument("--db-path", default=None, help="SQLite database path (default: $DB_PATH or ./data/memory.db)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    tools = subparsers.add_parser("tools", help="Serve memory tools over stdio")
    tools.set_defaults(func=run_tools)

    web = subparsers.add_parser("web", help="Serve the dashboard API")
    web.add_argument("--host", default=WEB_HOST, help=f"Host to bind to (default: {WEB_HOST})")
    web.add_argument("--port", type=int, default=WEB_PORT, help=f"Port to serve on (default: {WEB_PORT})")
    web.set_defaults(func=run_web)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    issues = validate_config()
    if issues:
        for issue in issues:
            logger.error(f"Configuration error: {issue}")
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
