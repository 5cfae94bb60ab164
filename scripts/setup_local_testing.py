#!/usr/bin/env python
"""Prepare a local database for the garden backend.

This script:
1. Creates the users, plots and inventory tables
2. Creates a player with all garden slots
3. Puts a few seeds into the player's inventory

Usage:
    # Player 1 with one seed of each base crop
    python scripts/setup_local_testing.py --user 1 --email player1@example.com

    # Custom seeds
    python scripts/setup_local_testing.py --user 1 --email player1@example.com --seeds carrot,carrot,mango

    # Use a throwaway SQLite file instead of PostgreSQL
    DB_URL_OVERRIDE=sqlite+aiosqlite:///garden.db python scripts/setup_local_testing.py
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ferm.config import settings
from ferm.core.errors import FermError
from ferm.core.growth import BASE_CROPS, CropType
from ferm.infra.database import Database
from ferm.infra.logging import get_logger, setup_logging
from ferm.models import User
from ferm.services.garden_service import PlotService
from ferm.services.inventory_service import InventoryService

setup_logging()
logger = get_logger(__name__)


async def ensure_user(db: Database, user_id: int, email: str) -> None:
    async with db.transaction() as session:
        user = await session.get(User, user_id)
        if user is None:
            session.add(User(id=user_id, email=email))
            logger.info("User created", user_id=user_id, email=email)
        elif user.email != email:
            user.email = email
            logger.info("User email updated", user_id=user_id, email=email)


async def setup(user_id: int, email: str, seeds: list[str]) -> int:
    db = Database.from_settings(settings)
    try:
        await db.connect(attempts=settings.db_connect_retries, delay_seconds=settings.db_connect_retry_delay_seconds)
        await db.create_all()
        await ensure_user(db, user_id, email)

        plots = await PlotService.from_settings(db, settings).ensure_plots_initialized(user_id)
        print(f"Plots ready: {[p.slot for p in plots]}")

        inventory = InventoryService(db)
        for crop_type in seeds:
            item = await inventory.add_seed(user_id, crop_type)
            print(f"Seed {item.id}: {item.crop_type}")

    except FermError as e:
        print(f"Error: {e.message}")
        return 1

    finally:
        await db.close()

    print("\nLocal garden ready.")
    print(f"Plant with: python scripts/simulate_plant.py --user {user_id} --slot 1 --inventory-id <seed id>")
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Create tables, a player, garden plots and seeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--user", type=int, default=1, help="User id (default: 1)")
    parser.add_argument("--email", default="player1@example.com", help="Notification address")
    parser.add_argument(
        "--seeds",
        default=",".join(sorted(BASE_CROPS)),
        help=f"Comma-separated crop types, any of: {', '.join(CropType)}",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    seeds = [s.strip() for s in args.seeds.split(",") if s.strip()]
    return asyncio.run(setup(args.user, args.email, seeds))


if __name__ == "__main__":
    sys.exit(main())
