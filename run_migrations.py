#!/usr/bin/env python
"""
Alembic wrapper for the records database.

Commands:
    create "<message>"     autogenerate a revision from the current models
    upgrade [revision]     apply revisions (default: head)
    downgrade [revision]   roll back (default: -1, one revision)
    current                print the revision the database is at
    history                list all revisions

Example:
    python run_migrations.py create "add encounter duration"
    python run_migrations.py upgrade
"""
import os
import sys
from typing import Callable, Dict, Optional

from alembic import command
from alembic.config import Config


ALEMBIC_INI = os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini")


def _config() -> Config:
    return Config(ALEMBIC_INI)


def create(message: Optional[str]) -> None:
    if not message:
        raise SystemExit('A revision message is required: create "<message>"')
    command.revision(_config(), message=message, autogenerate=True)
    print(f"Revision '{message}' generated; review it, then run upgrade")


def upgrade(revision: Optional[str]) -> None:
    target = revision or "head"
    command.upgrade(_config(), target)
    print(f"Database at {target}")


def downgrade(revision: Optional[str]) -> None:
    target = revision or "-1"
    command.downgrade(_config(), target)
    print(f"Database rolled back to {target}")


def current(_: Optional[str]) -> None:
    command.current(_config(), verbose=True)


def history(_: Optional[str]) -> None:
    command.history(_config(), verbose=True)


COMMANDS: Dict[str, Callable[[Optional[str]], None]] = {
    "create": create,
    "upgrade": upgrade,
    "downgrade": downgrade,
    "current": current,
    "history": history,
}


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0].lower() not in COMMANDS:
        print(__doc__)
        return 1

    name = args[0].lower()
    try:
        COMMANDS[name](args[1] if len(args) > 1 else None)
    except SystemExit:
        raise
    except Exception as e:
        print(f"{name} failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
