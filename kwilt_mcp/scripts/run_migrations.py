#!/usr/bin/env python3
"""Run database migrations against the configured DATABASE_URL."""

import argparse
import os

from alembic import command
from alembic.config import Config

ALEMBIC_INI = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "alembic.ini")


def _config() -> Config:
    return Config(ALEMBIC_INI)


def upgrade(revision: str = "head") -> None:
    """Run migrations up to ``revision``."""
    command.upgrade(_config(), revision)
    print(f"Migrated to {revision}")


def downgrade(revision: str = "-1") -> None:
    """Downgrade to a specific revision."""
    command.downgrade(_config(), revision)
    print(f"Downgraded to {revision}")


def current() -> None:
    command.current(_config(), verbose=True)


def history() -> None:
    command.history(_config(), verbose=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run Kwilt MCP database migrations")
    parser.add_argument(
        "command",
        choices=["upgrade", "downgrade", "current", "history"],
        default="upgrade",
        nargs="?",
        help="Migration command to run",
    )
    parser.add_argument(
        "--revision",
        default=None,
        help="Target revision (default: head for upgrade, -1 for downgrade)",
    )
    args = parser.parse_args()

    if args.command == "upgrade":
        upgrade(args.revision or "head")
    elif args.command == "downgrade":
        downgrade(args.revision or "-1")
    elif args.command == "current":
        current()
    elif args.command == "history":
        history()


if __name__ == "__main__":
    main()
