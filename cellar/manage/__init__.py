import argparse
import asyncio
import logging
from typing import get_args

from cellar.database.status import StatusTarget
from cellar.database.seeding import SeedTarget
from cellar.logging import setup_logging
from .status import cmd_status
from .reset import cmd_reset
from .seed import cmd_seed

STATUS_TARGETS = get_args(StatusTarget)


async def main(argv: list[str] = None):
    setup_logging(
        enabled_loggers=["manage", "setup", "database"],
        level_overrides={"database": logging.WARNING},
        no_debug=True
    )

    parser = argparse.ArgumentParser(prog="cellar-manage")
    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser("status", help="View database status")
    status_parser.add_argument(
        "target",
        metavar="target",
        nargs="?",
        default="summary",
        choices=STATUS_TARGETS,
        help=f"What to show status for ({', '.join(STATUS_TARGETS)})"
    )

    reset_parser = subparsers.add_parser("reset", help="Drop and recreate the database, then run setup")
    reset_parser.add_argument(
        "--seed", "-s",
        dest="seed_target",
        metavar="target",
        nargs="?",
        const=SeedTarget.ALL,
        type=SeedTarget,
        choices=list(SeedTarget),
        help="Seed after reset (optionally specify target)"
    )

    seed_parser = subparsers.add_parser("seed", help="Seed database from fixtures")
    seed_parser.add_argument(
        "target",
        metavar="target",
        nargs="?",
        type=SeedTarget,
        choices=list(SeedTarget),
        default=SeedTarget.ALL,
        help=f"What to seed in the database ({', '.join(SeedTarget)})"
    )

    args = parser.parse_args(argv)

    match args.command:
        case "status":
            await cmd_status(args.target)
        case "reset":
            await cmd_reset(args.seed_target)
        case "seed":
            await cmd_seed(args.target)


def run():
    asyncio.run(main())
