"""
Tests for the registration lifecycle endpoints: status codes, error bodies
and the capacity fields every successful response carries.
"""

import pytest
from datetime import datetime, timezone, timedelta
from httpx import AsyncClient

from conftest import auth_headers_for, participant_count, registration_status


@pytest.mark.asyncio
async def test_register_for_event(client: AsyncClient, make_event, make_vendor):
    """Vendor submits a registration and waits for approval."""
    event = await make_event(max_capacity=3)
    vendor = await make_vendor("Clay Works")

    response = await client.post(
        f"/api/v1/events/{event.id}/register",
        json={"notes": "Bringing my own table"},
        headers=auth_headers_for(vendor),
    )
    assert response.status_code == 201
    data = response.json()
    assert data["registration"]["status"] == "pending"
    assert data["registration"]["notes"] == "Bringing my own table"
    assert data["registration"]["vendor"]["business_name"] == "Clay Works"
    assert data["current_participants"] == 0
    assert data["max_capacity"] == 3
    assert data["remaining_capacity"] == 3
    assert data["promoted_registration"] is None


@pytest.mark.asyncio
async def test_register_without_body(client: AsyncClient, make_event, make_vendor):
    event = await make_event()
    vendor = await make_vendor("Quiet Quilts")

    response = await client.post(
        f"/api/v1/events/{event.id}/register", headers=auth_headers_for(vendor)
    )
    assert response.status_code == 201
    assert response.json()["registration"]["notes"] is None


@pytest.mark.asyncio
async def test_register_unauthenticated(client: AsyncClient, make_event):
    """Missing bearer token returns 401."""
    event = await make_event()
    response = await client.post(f"/api/v1/events/{event.id}/register")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_register_as_admin_forbidden(client: AsyncClient, make_event, admin):
    event = await make_event()
    response = await client.post(
        f"/api/v1/events/{event.id}/register", headers=auth_headers_for(admin)
    )
    assert response.status_code == 403
    assert response.json() == {
        "error": "unauthorized",
        "detail": "Only vendors can register for events",
    }


@pytest.mark.asyncio
async def test_register_duplicate(client: AsyncClient, make_event, make_vendor):
    event = await make_event()
    vendor = await make_vendor("Clay Works")
    headers = auth_headers_for(vendor)

    await client.post(f"/api/v1/events/{event.id}/register", headers=headers)
    response = await client.post(f"/api/v1/events/{event.id}/register", headers=headers)

    assert response.status_code == 409
    assert response.json()["error"] == "duplicate_registration"


@pytest.mark.asyncio
async def test_register_after_deadline(client: AsyncClient, make_event, make_vendor):
    now = datetime.now(timezone.utc)
    event = await make_event(registration_deadline=now - timedelta(minutes=5))
    vendor = await make_vendor("Late Looms")

    response = await client.post(
        f"/api/v1/events/{event.id}/register", headers=auth_headers_for(vendor)
    )
    assert response.status_code == 400
    assert response.json() == {
        "error": "deadline_passed",
        "detail": "Registration deadline has passed",
    }


@pytest.mark.asyncio
async def test_register_for_unknown_event(client: AsyncClient, make_vendor):
    vendor = await make_vendor("Lost Leather")
    response = await client.post(
        "/api/v1/events/missing/register", headers=auth_headers_for(vendor)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_approve_and_capacity_exceeded(client: AsyncClient, make_event, make_vendor, admin):
    """Approvals fill the event; the next one is refused with 409."""
    event = await make_event(max_capacity=1)
    first = await make_vendor("First Frames")
    second = await make_vendor("Second Silver")

    reg_1 = (await client.post(
        f"/api/v1/events/{event.id}/register", headers=auth_headers_for(first)
    )).json()["registration"]
    reg_2 = (await client.post(
        f"/api/v1/events/{event.id}/register", headers=auth_headers_for(second)
    )).json()["registration"]

    response = await client.put(
        f"/api/v1/events/{event.id}/registrations/{reg_1['id']}/approve",
        headers=auth_headers_for(admin),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["registration"]["status"] == "confirmed"
    assert data["current_participants"] == 1
    assert data["remaining_capacity"] == 0

    response = await client.put(
        f"/api/v1/events/{event.id}/registrations/{reg_2['id']}/approve",
        headers=auth_headers_for(admin),
    )
    assert response.status_code == 409
    assert response.json() == {
        "error": "capacity_exceeded",
        "detail": "Event has reached maximum capacity",
    }


@pytest.mark.asyncio
async def test_approve_by_vendor_forbidden(client: AsyncClient, make_event, make_vendor):
    event = await make_event()
    vendor = await make_vendor("Self Approver")
    headers = auth_headers_for(vendor)
    reg = (await client.post(f"/api/v1/events/{event.id}/register", headers=headers)).json()

    response = await client.put(
        f"/api/v1/events/{event.id}/registrations/{reg['registration']['id']}/approve",
        headers=headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_approve_twice_conflict(
    client: AsyncClient, db_session, make_event, make_vendor, add_registration, admin
):
    event = await make_event()
    vendor = await make_vendor("Repeat Request")
    reg = await add_registration(event, vendor, "pending")
    url = f"/api/v1/events/{event.id}/registrations/{reg.id}/approve"

    await client.put(url, headers=auth_headers_for(admin))
    response = await client.put(url, headers=auth_headers_for(admin))

    assert response.status_code == 409
    assert response.json()["error"] == "invalid_state"
    assert await participant_count(db_session, event.id) == 1


@pytest.mark.asyncio
async def test_reject_with_reason(client: AsyncClient, make_event, make_vendor, add_registration, admin):
    event = await make_event()
    vendor = await make_vendor("Not This Time")
    reg = await add_registration(event, vendor, "pending")

    response = await client.put(
        f"/api/v1/events/{event.id}/registrations/{reg.id}/reject",
        json={"reason": "Too many jewellery stalls"},
        headers=auth_headers_for(admin),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["registration"]["status"] == "cancelled"
    assert data["registration"]["notes"] == "Too many jewellery stalls"


@pytest.mark.asyncio
async def test_unregister_promotes_waitlist(
    client: AsyncClient, db_session, make_event, make_vendor, add_registration
):
    event = await make_event(max_capacity=1)
    seated = await make_vendor("Seated Studio")
    waiting = await make_vendor("Waiting Weaver")
    now = datetime.now(timezone.utc)
    await add_registration(event, seated, "confirmed", now - timedelta(days=2))
    waitlisted = await add_registration(event, waiting, "waitlist", now - timedelta(days=1))

    response = await client.delete(
        f"/api/v1/events/{event.id}/register", headers=auth_headers_for(seated)
    )
    assert response.status_code == 200
    data = response.json()
    assert data["registration"]["status"] == "cancelled"
    assert data["promoted_registration"]["id"] == waitlisted.id
    assert data["promoted_registration"]["status"] == "confirmed"
    assert data["current_participants"] == 1
    assert await registration_status(db_session, waitlisted.id) == "confirmed"


@pytest.mark.asyncio
async def test_unregister_after_start(client: AsyncClient, make_event, make_vendor, add_registration):
    now = datetime.now(timezone.utc)
    event = await make_event(
        start_date=now - timedelta(hours=1),
        end_date=now + timedelta(hours=6),
        registration_deadline=now - timedelta(days=3),
    )
    vendor = await make_vendor("Vendor F")
    await add_registration(event, vendor, "confirmed")

    response = await client.delete(
        f"/api/v1/events/{event.id}/register", headers=auth_headers_for(vendor)
    )
    assert response.status_code == 400
    assert response.json()["error"] == "event_already_started"


@pytest.mark.asyncio
async def test_unregister_not_registered(client: AsyncClient, make_event, make_vendor):
    event = await make_event()
    vendor = await make_vendor("Stranger")

    response = await client.delete(
        f"/api/v1/events/{event.id}/register", headers=auth_headers_for(vendor)
    )
    assert response.status_code == 404


async def _finished_event(make_event):
    now = datetime.now(timezone.utc)
    return await make_event(
        start_date=now - timedelta(days=2),
        end_date=now - timedelta(days=1),
        registration_deadline=now - timedelta(days=7),
    )


@pytest.mark.asyncio
async def test_submit_feedback(client: AsyncClient, make_event, make_vendor, add_registration):
    event = await _finished_event(make_event)
    vendor = await make_vendor("Happy Potter")
    await add_registration(event, vendor, "confirmed")

    response = await client.post(
        f"/api/v1/events/{event.id}/feedback",
        json={"rating": 5, "feedback": "Sold out by noon"},
        headers=auth_headers_for(vendor),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["registration"]["status"] == "attended"
    assert data["registration"]["rating"] == 5
    assert data["current_participants"] == 1


@pytest.mark.asyncio
async def test_feedback_rating_out_of_range(
    client: AsyncClient, make_event, make_vendor, add_registration
):
    event = await _finished_event(make_event)
    vendor = await make_vendor("Vendor G")
    await add_registration(event, vendor, "attended")

    response = await client.post(
        f"/api/v1/events/{event.id}/feedback",
        json={"rating": 6},
        headers=auth_headers_for(vendor),
    )
    assert response.status_code == 422
    assert response.json() == {
        "error": "validation_error",
        "detail": "Rating must be between 1 and 5",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"rating": "5"}, {"rating": 4.5}, {"rating": None}])
async def test_feedback_malformed_rating(
    client: AsyncClient, db_session, make_event, make_vendor, add_registration, body
):
    """Missing or non-integer ratings get the typed validation_error body."""
    event = await _finished_event(make_event)
    vendor = await make_vendor("Vendor G")
    registration = await add_registration(event, vendor, "attended")

    response = await client.post(
        f"/api/v1/events/{event.id}/feedback",
        json=body,
        headers=auth_headers_for(vendor),
    )
    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "validation_error"
    assert "rating" in data["detail"]
    assert await registration_status(db_session, registration.id) == "attended"


@pytest.mark.asyncio
async def test_feedback_body_not_json(client: AsyncClient, make_event, make_vendor, add_registration):
    event = await _finished_event(make_event)
    vendor = await make_vendor("Vendor H")
    await add_registration(event, vendor, "attended")

    response = await client.post(
        f"/api/v1/events/{event.id}/feedback",
        content="not json at all",
        headers={**auth_headers_for(vendor), "Content-Type": "application/json"},
    )
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_feedback_before_event_ends(
    client: AsyncClient, make_event, make_vendor, add_registration
):
    event = await make_event()
    vendor = await make_vendor("Too Eager")
    await add_registration(event, vendor, "confirmed")

    response = await client.post(
        f"/api/v1/events/{event.id}/feedback",
        json={"rating": 4},
        headers=auth_headers_for(vendor),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "event_not_yet_ended"


@pytest.mark.asyncio
async def test_response_carries_request_id(client: AsyncClient, make_event):
    event = await make_event()
    response = await client.get(
        f"/api/v1/events/{event.id}", headers={"X-Request-ID": "trace-123"}
    )
    assert response.headers["X-Request-ID"] == "trace-123"
