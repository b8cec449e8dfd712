#!/usr/bin/env python3
"""
Backfill role-based training for every user.

Runs the role profile sync for each role that currently has users, so anyone
missing an item from their role's template gets it assigned. Existing
assignments are never removed and earlier completions are restored.

Run with:
    python scripts/backfill_role_training.py
    python scripts/backfill_role_training.py --role <role_id>
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog  # noqa: E402
from src.core.logging import setup_logging  # noqa: E402
from src.domain.errors import DependencyFailureError, RoleHasNoUsersError  # noqa: E402
from src.domain.services import RoleProfileSyncService  # noqa: E402
from src.infrastructure.db.session import dispose_engine, get_session_factory  # noqa: E402
from src.infrastructure.repositories.users import UserRepository  # noqa: E402

logger = structlog.get_logger()


async def backfill(role_ids: list[str] | None = None) -> int:
    session_factory = get_session_factory()

    if not role_ids:
        async with session_factory() as session:
            role_ids = await UserRepository(session).roles_in_use()

    print(f"Syncing {len(role_ids)} role(s)...")
    total_added = 0
    failures = 0
    for role_id in role_ids:
        async with session_factory() as session:
            try:
                result = await RoleProfileSyncService(session).sync_role_profile(role_id)
            except RoleHasNoUsersError:
                print(f"  - {role_id}: no users, skipped")
                continue
            except DependencyFailureError as exc:
                failures += 1
                logger.error("backfill_role_failed", role_id=role_id, details=exc.details)
                print(f"  ! {role_id}: {exc} ({exc.details})")
                continue

        total_added += result.assignments_added
        print(
            f"  + {role_id}: {result.users_synced} user(s), "
            f"{result.assignments_added} added, {result.completions_restored} restored"
        )

    print(f"Done. {total_added} assignment(s) added, {failures} role(s) failed.")
    await dispose_engine()
    return 1 if failures else 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--role", action="append", dest="roles", help="Role id to sync")
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(backfill(args.roles)))


if __name__ == "__main__":
    main()
