"""
Inventory Desk command line.

Usage:
    python -m inventory_desk serve [--port 8000]
    python -m inventory_desk dashboard --staff-id admin --password ... [--resource inventory] [--follow]
"""

import argparse
import asyncio
import logging
import sys

import uvicorn

from inventory_desk.config import get_settings, setup_logging
from inventory_desk.dashboard import (
    DEFAULT_COLUMNS,
    RESOURCES,
    DashboardClient,
    DashboardError,
    render_table,
    watch_events,
)

logger = logging.getLogger("inventory_desk")


def serve(args: argparse.Namespace) -> int:
    settings = get_settings()
    uvicorn.run(
        "inventory_desk.main:app",
        host=args.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


async def follow(base_url: str, token: str) -> None:
    async for event in watch_events(base_url, token):
        print(f"{event['timestamp']}  {event['event']:<20} {event['data']}")


def dashboard(args: argparse.Namespace) -> int:
    client = DashboardClient.connect(args.url)
    try:
        client.login(args.staff_id, args.password)
        if args.resource == "users":
            rows = client.users()
        else:
            rows = client.list(args.resource, page=args.page, pageSize=args.page_size)["items"]
    except DashboardError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(render_table(rows, DEFAULT_COLUMNS[args.resource]))

    if args.follow:
        print("\nWaiting for events (Ctrl+C to stop)...")
        try:
            asyncio.run(follow(args.url, client.token))
        except KeyboardInterrupt:
            pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inventory-desk")
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="run the API server")
    p_serve.add_argument("--host", default="0.0.0.0")
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.set_defaults(func=serve)

    p_dash = sub.add_parser("dashboard", help="print a resource table from a running server")
    p_dash.add_argument("--url", default="http://127.0.0.1:8000")
    p_dash.add_argument("--staff-id", required=True)
    p_dash.add_argument("--password", required=True)
    p_dash.add_argument("--resource", choices=[*RESOURCES, "users"], default="inventory")
    p_dash.add_argument("--page", type=int, default=1)
    p_dash.add_argument("--page-size", type=int, default=50)
    p_dash.add_argument("--follow", action="store_true", help="stream realtime events afterwards")
    p_dash.set_defaults(func=dashboard)
    return parser


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
