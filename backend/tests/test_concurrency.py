"""
Race condition tests.

Concurrent transitions are replayed in sequence: the loser must find its
precondition gone and abort without changing anything.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError

from backend.app.core.exceptions import ConflictError, ForbiddenError, InvalidStateError
from backend.app.domain.live_rides.offers import mark_terminal_and_cascade
from backend.app.domain.live_rides.orchestrator import create_live_ride_request, accept_offer, reject_offer
from backend.app.domain.live_rides.sweeper import sweep_expired
from backend.app.models.live_ride import LiveRideRequest, LiveRideOffer
from backend.app.models.live_ride_enums import (
    Route,
    LiveRideStatus,
    LiveRideOfferStatus,
    OfferCloseReason,
)
from backend.app.models.notification import Notification
from backend.app.models.trip import Trip
from backend.app.models.trip_enums import TripStatus
from backend.tests.factories import T0, reload, boats_of, auth_headers, captain_headers


async def new_ride(db, guest_id, now=T0):
    request = await create_live_ride_request(db, guest_id, Route.R1, 2, 4, now=now)
    return request.id


async def first_offer(db, request_id):
    result = await db.execute(
        select(LiveRideOffer)
        .where(LiveRideOffer.request_id == request_id)
        .order_by(LiveRideOffer.id)
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def trip_count(db):
    result = await db.execute(select(func.count(Trip.id)))
    return result.scalar()


@pytest.mark.asyncio
async def test_double_accept_creates_one_trip(db_session, guest, captains):
    c1_id = captains[0].id
    request_id = await new_ride(db_session, guest.id)

    await accept_offer(db_session, request_id, c1_id, now=T0 + timedelta(seconds=5))
    with pytest.raises(InvalidStateError):
        await accept_offer(db_session, request_id, c1_id, now=T0 + timedelta(seconds=5))

    assert await trip_count(db_session) == 1


@pytest.mark.asyncio
async def test_reject_loses_to_accept(db_session, guest, captains):
    c1_id = captains[0].id
    request_id = await new_ride(db_session, guest.id)
    offer_id = (await first_offer(db_session, request_id)).id

    await accept_offer(db_session, request_id, c1_id, now=T0 + timedelta(seconds=5))

    # The reject that raced the accept reaches the cascade with a stale offer
    with pytest.raises(ConflictError):
        await mark_terminal_and_cascade(db_session, offer_id, OfferCloseReason.REJECTED, T0 + timedelta(seconds=5))
    await db_session.rollback()

    request = await reload(db_session, LiveRideRequest, request_id)
    assert request.status == LiveRideStatus.ACCEPTED
    count = await db_session.execute(
        select(func.count(LiveRideOffer.id)).where(LiveRideOffer.request_id == request_id)
    )
    assert count.scalar() == 1


@pytest.mark.asyncio
async def test_sweep_loses_to_accept(db_session, guest, captains):
    c1_id = captains[0].id
    request_id = await new_ride(db_session, guest.id)

    await accept_offer(db_session, request_id, c1_id, now=T0 + timedelta(seconds=59))

    assert await sweep_expired(db_session, now=T0 + timedelta(seconds=120)) == 0
    offer = await first_offer(db_session, request_id)
    assert offer.status == LiveRideOfferStatus.ACCEPTED


@pytest.mark.asyncio
async def test_accept_loses_to_expiry(db_session, guest, captains):
    c1_id, c2_id = captains[0].id, captains[1].id
    request_id = await new_ride(db_session, guest.id)

    # The sweep inside accept runs first and hands the ride to C2
    with pytest.raises(ForbiddenError):
        await accept_offer(db_session, request_id, c1_id, now=T0 + timedelta(seconds=60))

    request = await reload(db_session, LiveRideRequest, request_id)
    assert request.offered_to_captain_id == c2_id
    assert await trip_count(db_session) == 0


@pytest.mark.asyncio
async def test_reject_loses_to_expiry(db_session, guest, captains):
    c1_id = captains[0].id
    request_id = await new_ride(db_session, guest.id)

    with pytest.raises(ForbiddenError):
        await reject_offer(db_session, request_id, c1_id, now=T0 + timedelta(seconds=61))

    offer = await first_offer(db_session, request_id)
    assert offer.close_reason == OfferCloseReason.TIMEOUT


@pytest.mark.asyncio
async def test_single_open_offer_enforced_by_store(db_session, guest, captains):
    c2 = captains[1]
    c2_id = c2.id
    boat_id = (await boats_of(db_session, c2))[0].id
    request_id = await new_ride(db_session, guest.id)

    db_session.add(LiveRideOffer(
        request_id=request_id,
        captain_id=c2_id,
        boat_id=boat_id,
        status=LiveRideOfferStatus.OFFERED,
        created_at=T0,
    ))
    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()


@pytest.mark.asyncio
async def test_accept_rechecks_boat_availability(db_session, guest, captains):
    """A boat booked between offer and accept cannot be double-booked."""
    guest_id = guest.id
    c1 = captains[0]
    c1_id = c1.id
    boat_id = (await boats_of(db_session, c1))[0].id
    request_id = await new_ride(db_session, guest_id)

    # Another ride on the same boat was accepted in the meantime
    db_session.add(Trip(
        boat_id=boat_id,
        created_by_id=guest_id,
        status=TripStatus.ACTIVE,
        start_at=T0,
        end_at=T0 + timedelta(hours=4),
        passenger_count=2,
        subtotal_cents=24000,
        commission_rate=0.18,
        commission_cents=4320,
        total_cents=28320,
    ))
    await db_session.commit()

    with pytest.raises(ConflictError):
        await accept_offer(db_session, request_id, c1_id, now=T0 + timedelta(seconds=10))

    assert await trip_count(db_session) == 1
    request = await reload(db_session, LiveRideRequest, request_id)
    assert request.status == LiveRideStatus.OFFERED
    assert request.offered_to_captain_id == c1_id
    offer = await first_offer(db_session, request_id)
    assert offer.status == LiveRideOfferStatus.OFFERED


@pytest.mark.asyncio
async def test_accept_double_booking_over_http(client, db_session, guest, captains):
    boat_id = (await boats_of(db_session, captains[0]))[0].id
    response = await client.post(
        "/v1/live-rides",
        json={"route": "R1", "passengerCount": 2, "hours": 4},
        headers=auth_headers(guest),
    )
    live_ride = response.json()["liveRide"]

    db_session.add(Trip(
        boat_id=boat_id,
        created_by_id=guest.id,
        status=TripStatus.ACCEPTED,
        start_at=T0 - timedelta(days=365),
        end_at=T0 + timedelta(days=3650),
        passenger_count=2,
        subtotal_cents=0,
        commission_rate=0.18,
        commission_cents=0,
        total_cents=0,
    ))
    await db_session.commit()

    headers = await captain_headers(db_session, captains[0])
    response = await client.post(f"/v1/live-rides/{live_ride['id']}/accept", headers=headers)

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"


@pytest.mark.asyncio
async def test_deleting_request_keeps_trip(db_session, guest, captains):
    c1_id = captains[0].id
    request_id = await new_ride(db_session, guest.id)
    trip = await accept_offer(db_session, request_id, c1_id, now=T0 + timedelta(seconds=5))
    trip_id = trip.id

    await db_session.execute(delete(LiveRideRequest).where(LiveRideRequest.id == request_id))
    await db_session.commit()

    assert await reload(db_session, Trip, trip_id) is not None
    offers = await db_session.execute(
        select(func.count(LiveRideOffer.id)).where(LiveRideOffer.request_id == request_id)
    )
    assert offers.scalar() == 0
    notifications = await db_session.execute(
        select(func.count(Notification.id)).where(Notification.live_ride_request_id == request_id)
    )
    assert notifications.scalar() == 0
