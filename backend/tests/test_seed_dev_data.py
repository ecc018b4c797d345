"""
Development seed tests.
"""

import pytest
from sqlalchemy import select, func

from backend.app.models.captain import Captain, BoatRoutePricing
from backend.seed_dev_data import seed_dev_data
from backend.tests.factories import auth_headers


@pytest.mark.asyncio
async def test_seed_is_idempotent(db_session):
    users = await seed_dev_data(db_session)

    assert len(users) == 4
    assert await seed_dev_data(db_session) == []

    captains = await db_session.execute(select(func.count(Captain.id)))
    assert captains.scalar() == 3
    pricing = await db_session.execute(select(func.count(BoatRoutePricing.id)))
    assert pricing.scalar() == 9


@pytest.mark.asyncio
async def test_seeded_guest_can_request_ride(client, db_session):
    guest = (await seed_dev_data(db_session))[0]

    response = await client.post(
        "/v1/live-rides",
        json={"route": "R3", "passengerCount": 10, "hours": 4},
        headers=auth_headers(guest),
    )

    # Only the twelve-seat boat fits ten passengers
    assert response.status_code == 201
    result = await db_session.execute(select(Captain).where(Captain.display_name == "Captain Lucia"))
    assert response.json()["liveRide"]["offeredToCaptainId"] == result.scalar_one().id
