"""CLI entry point.

Usage:
    python main.py serve --port 8000
    python main.py init-db
    python main.py tier --instagram 12000 --tiktok 60000
"""

import argparse
import sys

from src.marketplace import Platform
from src.marketplace.tiers import classify_tier, describe_tier
from src.settings import get_settings


def serve(args) -> None:
    import uvicorn

    from src.api import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)


def init_database(args) -> None:
    from src.db import get_sync_engine, init_db

    settings = get_settings()
    init_db(get_sync_engine())
    print(f"Database initialized: {settings.database_url}")


def show_tier(args) -> None:
    counts = {p.value: getattr(args, p.value) for p in Platform}
    info = describe_tier(classify_tier(counts))
    print(f"Tier: {info['label']} ({info['tier']})")
    print(f"  {info['description']}")
    print(f"  Minimum followers: {info['min_followers']:,}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="FoodConnect - restaurant and influencer campaign marketplace"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve_parser = commands.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(handler=serve)

    db_parser = commands.add_parser("init-db", help="Create database tables")
    db_parser.set_defaults(handler=init_database)

    tier_parser = commands.add_parser("tier", help="Classify follower counts into a tier")
    for platform in Platform:
        tier_parser.add_argument(
            f"--{platform.value}", type=int, default=0,
            help=f"{platform.value} followers"
        )
    tier_parser.set_defaults(handler=show_tier)

    args = parser.parse_args(argv)
    args.handler(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
