"""
Database seeding script for local development.

Creates a guest and three captains with live-ride boats priced on every
route, then prints a bearer token for each account.
Run this script after database is set up but before first use.
"""

import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import select

from backend.app.core.jwt import access_token_for_user
from backend.app.core.observability import configure_logging
from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.domain.live_rides.pricing import ROUTE_HOURLY_RATE_CENTS
from backend.app.models.captain import Captain, Boat, BoatRoutePricing
from backend.app.models.enums import UserRole
from backend.app.models.user import User

logger = logging.getLogger(__name__)

GUEST_EMAIL = "guest@dayboat.dev"

CAPTAINS = [
    # (email, display name, boat, max passengers)
    ("marina@dayboat.dev", "Marina", "Gaviota", 8),
    ("pablo@dayboat.dev", "Pablo", "Delfin", 6),
    ("lucia@dayboat.dev", "Lucia", "Estrella", 12),
]


async def seed_dev_data(db):
    """
    Seed development accounts.

    Returns:
        List of created users, empty when the data already exists
    """
    result = await db.execute(select(User).where(User.email == GUEST_EMAIL))
    if result.scalar_one_or_none():
        logger.info("Development data already present, skipping seeding")
        return []

    guest = User(email=GUEST_EMAIL, first_name="Guest", role=UserRole.GUEST)
    db.add(guest)
    users = [guest]

    # Stagger creation times so the live-ride offer order is predictable
    base = datetime.utcnow() - timedelta(days=len(CAPTAINS))
    for index, (email, name, boat_name, max_passengers) in enumerate(CAPTAINS):
        user = User(email=email, first_name=name, role=UserRole.CAPTAIN)
        db.add(user)
        await db.flush()
        users.append(user)

        captain = Captain(
            user_id=user.id,
            display_name=f"Captain {name}",
            created_at=base + timedelta(days=index),
        )
        db.add(captain)
        await db.flush()

        boat = Boat(
            captain_id=captain.id,
            name=boat_name,
            max_passengers=max_passengers,
            minimum_hours=2,
            live_rides_on=True,
        )
        db.add(boat)
        await db.flush()

        for route, rate in ROUTE_HOURLY_RATE_CENTS.items():
            db.add(BoatRoutePricing(boat_id=boat.id, route=route, hourly_rate_cents=rate))

        logger.info("Created captain %s with boat %s", email, boat_name)

    await db.commit()
    return users


async def main():
    configure_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        users = await seed_dev_data(db)

    for user in users:
        print(f"{user.email} ({user.role.value}): {access_token_for_user(user)}")


if __name__ == "__main__":
    asyncio.run(main())
