"""Operator commands for the runtime options and post state.

Usage:
    python -m scripts.manage show
    python -m scripts.manage rotate-api-key
    python -m scripts.manage set-origins "https://front.example.com" "http://localhost:4321"
    python -m scripts.manage set-spam-check off
    python -m scripts.manage set-post 42 --title "Hello" --permalink https://blog/hello --closed
"""

import argparse
import asyncio

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra_asyncio.cluster import Cluster

from headless_comments.config.settings import get_settings
from headless_comments.config.store import (
    OPTION_ALLOWED_ORIGINS,
    OPTION_API_KEY,
    OPTION_USE_SPAM_CHECK,
    ConfigStore,
    generate_api_key,
)
from headless_comments.core.redis import init_redis, shutdown_redis


logger = structlog.get_logger(__name__)


POST_COLUMNS = ("title", "permalink", "author_email")


def build_post_update(args: argparse.Namespace, keyspace: str) -> tuple[str, list]:
    """Build an UPDATE that only touches the post columns that were given.

    Cassandra updates are upserts, so this also creates missing posts; a
    post without ``comment_status`` reads as open.
    """
    assignments: list[str] = []
    values: list = []

    for column in POST_COLUMNS:
        value = getattr(args, column)
        if value is not None:
            assignments.append(f"{column} = %s")
            values.append(value)

    if args.comments is not None:
        assignments.append("comment_status = %s")
        values.append(args.comments)

    if not assignments:
        msg = "nothing to update: pass --title, --permalink, --author-email, --open or --closed"
        raise ValueError(msg)

    query = f"UPDATE {keyspace}.posts SET {', '.join(assignments)} WHERE post_id = %s"  # noqa: S608
    return query, [*values, args.post_id]


async def show_options(store: ConfigStore) -> None:
    """Print the stored options and the classifier status."""
    settings = get_settings()
    options = await store.load()

    print(f"api_key:          {options.api_key}")
    print("allowed_origins:  " + (", ".join(options.allowed_origins) or "(none)"))
    print(f"use_spam_check:   {'on' if options.use_spam_check else 'off'}")

    if options.use_spam_check and not settings.spam_classifier_configured:
        print(
            "warning: spam checking is on but no classifier endpoint/key is "
            "configured; comments go straight to moderation"
        )


async def run_options_command(args: argparse.Namespace) -> None:
    """Run a command against the options store in Redis."""
    settings = get_settings()
    redis_client = await init_redis()
    store = ConfigStore(settings, redis_client)

    try:
        if args.command == "rotate-api-key":
            await store.set(OPTION_API_KEY, generate_api_key(settings.api_key_length))
            logger.info("api_key_rotated")
        elif args.command == "set-origins":
            await store.set(OPTION_ALLOWED_ORIGINS, args.origins)
            logger.info("allowed_origins_updated", count=len(args.origins))
        elif args.command == "set-spam-check":
            await store.set(OPTION_USE_SPAM_CHECK, args.state == "on")
            logger.info("spam_check_toggled", enabled=args.state == "on")
        await show_options(store)
    finally:
        await shutdown_redis()


async def run_set_post(args: argparse.Namespace) -> None:
    """Create or update the comment-relevant state of a post."""
    settings = get_settings()
    query, values = build_post_update(args, settings.cassandra_keyspace)

    auth_provider = None
    if settings.cassandra_username and settings.cassandra_password:
        auth_provider = PlainTextAuthProvider(
            username=settings.cassandra_username,
            password=settings.cassandra_password,
        )

    cluster = Cluster(
        contact_points=settings.cassandra_hosts,
        port=settings.cassandra_port,
        auth_provider=auth_provider,
        protocol_version=settings.cassandra_protocol_version,
    )
    session = cluster.connect()

    try:
        await session.aexecute(query, values)
        logger.info("post_updated", post_id=args.post_id, comment_status=args.comments)
    finally:
        session.shutdown()
        cluster.shutdown()


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(prog="manage", description=__doc__.splitlines()[0])
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("show", help="print the runtime options")
    commands.add_parser("rotate-api-key", help="replace the API key")

    origins = commands.add_parser("set-origins", help="replace the allowed origins")
    origins.add_argument("origins", nargs="*", help="origins, or * for all")

    spam = commands.add_parser("set-spam-check", help="toggle spam checking")
    spam.add_argument("state", choices=["on", "off"])

    post = commands.add_parser("set-post", help="create or update a post")
    post.add_argument("post_id", type=int)
    post.add_argument("--title")
    post.add_argument("--permalink")
    post.add_argument("--author-email")
    status = post.add_mutually_exclusive_group()
    status.add_argument(
        "--open", dest="comments", action="store_const", const="open", help="open comments"
    )
    status.add_argument(
        "--closed", dest="comments", action="store_const", const="closed", help="close comments"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "set-post":
        try:
            build_post_update(args, get_settings().cassandra_keyspace)
        except ValueError as e:
            parser.error(str(e))
        asyncio.run(run_set_post(args))
    else:
        asyncio.run(run_options_command(args))


if __name__ == "__main__":
    main()
