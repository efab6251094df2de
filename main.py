"""Command-line interface for the users API."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from users_api.config import Settings, get_settings
from users_api.database import Database
from users_api.seed import load_seed_users, seed_database

logger = logging.getLogger("usersapi.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Users API utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the users database")

    seed_parser = subparsers.add_parser("seed", help="Load users from a YAML seed file")
    seed_parser.add_argument("file", type=Path, help="YAML file with a top-level 'users' list")
    seed_parser.add_argument(
        "--append",
        action="store_true",
        help="Keep existing users instead of clearing the table first",
    )

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: from settings)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: from settings)")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "seed"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _seed(database: Database, path: Path, *, append: bool) -> int:
    try:
        users = load_seed_users(path)
        created = seed_database(database, users, append=append)
    except (OSError, ValueError) as exc:
        # UserExistsError is a ValueError; duplicates abort the seed.
        logger.error("Seeding from %s failed: %s", path, exc)
        return 1
    print(f"Seeded {len(created)} user(s) from {path}")
    return 0


def _serve(*, database: Database, host: str, port: int) -> None:
    from users_api.api import create_app
    import uvicorn

    logger.info("Starting users API on http://%s:%s", host, port)
    app = create_app(database=database)
    uvicorn.run(app, host=host, port=port, log_level="info")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = get_settings()
    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(
            database=database,
            host=args.host or settings.host,
            port=args.port or settings.port,
        )
    elif args.command == "seed":
        return _seed(database, args.file, append=args.append)
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
