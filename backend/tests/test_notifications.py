"""
Notification tests.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from backend.app.models.live_ride import LiveRideOffer
from backend.app.models.live_ride_enums import Route, LiveRideOfferStatus
from backend.app.models.notification import NotificationType
from backend.app.services.notification_service import NotificationService
from backend.tests.factories import auth_headers, captain_headers, create_user, create_captain, boats_of

RIDE = {"route": "R2", "passengerCount": 3, "hours": 5}


async def request_ride(client, guest):
    response = await client.post("/v1/live-rides", json=RIDE, headers=auth_headers(guest))
    assert response.status_code == 201, response.text
    return response.json()["liveRide"]


async def list_notifications(client, headers, **params):
    response = await client.get("/v1/notifications", params=params, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
async def r2_captain(db_session):
    return await create_captain(db_session, "r2@example.com", boats=[{"routes": {Route.R2: 8000}}])


@pytest.mark.asyncio
async def test_captain_notified_of_offer(client, db_session, guest, r2_captain):
    live_ride = await request_ride(client, guest)

    body = await list_notifications(client, await captain_headers(db_session, r2_captain))

    assert body["unreadCount"] == 1
    [notification] = body["notifications"]
    assert notification["type"] == NotificationType.LIVE_RIDE_OFFER.value
    assert notification["isRead"] is False
    assert notification["liveRideOfferId"] is not None
    assert notification["liveRide"]["id"] == live_ride["id"]
    assert notification["liveRide"]["route"] == "R2"
    assert notification["liveRide"]["passengerCount"] == 3
    assert notification["liveRide"]["totalCents"] == 47200


@pytest.mark.asyncio
async def test_guest_notified_of_acceptance(client, db_session, guest, r2_captain):
    live_ride = await request_ride(client, guest)
    await client.post(f"/v1/live-rides/{live_ride['id']}/accept", headers=await captain_headers(db_session, r2_captain))

    body = await list_notifications(client, auth_headers(guest))

    [notification] = body["notifications"]
    assert notification["type"] == NotificationType.LIVE_RIDE_ACCEPTED.value
    assert notification["tripId"] is not None
    assert notification["liveRide"]["status"] == "ACCEPTED"


@pytest.mark.asyncio
async def test_acceptance_embeds_trip_summary(client, db_session, guest, r2_captain):
    guest_id = guest.id
    [boat] = await boats_of(db_session, r2_captain)
    boat_id, boat_name = boat.id, boat.name
    live_ride = await request_ride(client, guest)
    await client.post(f"/v1/live-rides/{live_ride['id']}/accept", headers=await captain_headers(db_session, r2_captain))

    body = await list_notifications(client, auth_headers(guest))

    [notification] = body["notifications"]
    trip = notification["trip"]
    assert trip["id"] == notification["tripId"]
    assert trip["status"] == "ACTIVE"
    assert trip["passengerCount"] == 3
    assert trip["boat"] == {"id": boat_id, "name": boat_name}
    assert trip["createdBy"] == {"id": guest_id, "email": "guest@example.com"}
    assert trip["pricingSnapshot"]["route"] == "R2"
    assert notification["liveRide"]["createdBy"]["id"] == guest_id


@pytest.mark.asyncio
async def test_offer_notification_has_no_trip(client, db_session, guest, r2_captain):
    await request_ride(client, guest)

    body = await list_notifications(client, await captain_headers(db_session, r2_captain))

    [notification] = body["notifications"]
    assert notification["trip"] is None
    assert notification["liveRide"]["createdBy"]["email"] == "guest@example.com"


@pytest.mark.asyncio
async def test_listing_sweeps_expired_offers(client, db_session, guest, r2_captain):
    live_ride = await request_ride(client, guest)
    await db_session.execute(
        update(LiveRideOffer)
        .where(LiveRideOffer.status == LiveRideOfferStatus.OFFERED)
        .values(created_at=datetime.utcnow() - timedelta(minutes=2))
    )
    await db_session.commit()

    # Only one captain serves R2, so expiry leaves the ride unmatched
    body = await list_notifications(client, auth_headers(guest))

    [notification] = body["notifications"]
    assert notification["type"] == NotificationType.LIVE_RIDE_UNMATCHED.value
    assert notification["liveRide"]["id"] == live_ride["id"]
    assert notification["liveRide"]["status"] == "REQUESTED"


@pytest.mark.asyncio
async def test_read_all_sweeps_expired_offers(client, db_session, guest, r2_captain):
    await request_ride(client, guest)
    await db_session.execute(
        update(LiveRideOffer)
        .where(LiveRideOffer.status == LiveRideOfferStatus.OFFERED)
        .values(created_at=datetime.utcnow() - timedelta(minutes=2))
    )
    await db_session.commit()
    headers = auth_headers(guest)

    # The unmatched notification is created by the sweep and marked read with the rest
    response = await client.patch("/v1/notifications/read-all", headers=headers)

    assert response.json() == {"ok": True, "updated": 1}
    body = await list_notifications(client, headers)
    assert body["unreadCount"] == 0
    [notification] = body["notifications"]
    assert notification["type"] == NotificationType.LIVE_RIDE_UNMATCHED.value
    assert notification["isRead"] is True


@pytest.mark.asyncio
async def test_mark_read(client, db_session, guest, r2_captain):
    await request_ride(client, guest)
    headers = await captain_headers(db_session, r2_captain)
    notification_id = (await list_notifications(client, headers))["notifications"][0]["id"]

    first = await client.patch(f"/v1/notifications/{notification_id}/read", headers=headers)
    second = await client.patch(f"/v1/notifications/{notification_id}/read", headers=headers)

    assert first.status_code == 200
    assert first.json() == {"ok": True}
    assert second.status_code == 200

    body = await list_notifications(client, headers)
    assert body["unreadCount"] == 0
    assert body["notifications"][0]["isRead"] is True
    assert body["notifications"][0]["readAt"] is not None


@pytest.mark.asyncio
async def test_mark_read_ownership(client, db_session, guest, r2_captain):
    await request_ride(client, guest)
    notification_id = (await list_notifications(client, await captain_headers(db_session, r2_captain)))["notifications"][0]["id"]

    foreign = await client.patch(f"/v1/notifications/{notification_id}/read", headers=auth_headers(guest))
    missing = await client.patch("/v1/notifications/999/read", headers=auth_headers(guest))

    assert foreign.status_code == 403
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_mark_all_read_and_filters(client, db_session, guest, r2_captain):
    for _ in range(3):
        live_ride = await request_ride(client, guest)
        await client.post(f"/v1/live-rides/{live_ride['id']}/reject", headers=await captain_headers(db_session, r2_captain))

    headers = auth_headers(guest)
    body = await list_notifications(client, headers)
    assert body["unreadCount"] == 3
    assert len(body["notifications"]) == 3

    assert len((await list_notifications(client, headers, limit=0))["notifications"]) == 1
    assert len((await list_notifications(client, headers, limit=2))["notifications"]) == 2
    assert len((await list_notifications(client, headers, limit=500))["notifications"]) == 3

    response = await client.patch("/v1/notifications/read-all", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"ok": True, "updated": 3}

    body = await list_notifications(client, headers, unreadOnly="true")
    assert body["unreadCount"] == 0
    assert body["notifications"] == []


@pytest.mark.asyncio
async def test_newest_first(client, db_session, guest, r2_captain):
    first = await request_ride(client, guest)
    second = await request_ride(client, guest)

    body = await list_notifications(client, await captain_headers(db_session, r2_captain))

    assert [n["liveRide"]["id"] for n in body["notifications"]] == [second["id"], first["id"]]


@pytest.mark.asyncio
async def test_notifications_require_auth(client):
    response = await client.get("/v1/notifications")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_one_notification_per_offer(client, db_session, guest, r2_captain):
    await request_ride(client, guest)
    other = await create_user(db_session, "other@example.com")
    _, rows = await NotificationService.list_for_user(db_session, r2_captain.user_id)
    offer_notification = rows[0][0]

    with pytest.raises(IntegrityError):
        await NotificationService.create_notification(
            db_session,
            user_id=other.id,
            type=NotificationType.LIVE_RIDE_OFFER,
            title="Duplicate",
            message="Duplicate",
            live_ride_offer_id=offer_notification.live_ride_offer_id,
        )
    await db_session.rollback()
