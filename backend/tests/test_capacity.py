"""
Tests for the capacity enforcer: the pure rule and its atomic SQL form.
"""

import pytest

from craftfair.models.event import Event
from craftfair.services.capacity import can_confirm, claim_seat, release_seat
from conftest import participant_count


def test_can_confirm_unlimited():
    assert can_confirm(Event(max_capacity=None, current_participants=10_000))


def test_can_confirm_with_free_seat():
    assert can_confirm(Event(max_capacity=3, current_participants=2))


def test_can_confirm_full():
    assert not can_confirm(Event(max_capacity=3, current_participants=3))


@pytest.mark.asyncio
async def test_claim_seat_stops_at_capacity(db_session, make_event):
    event = await make_event(max_capacity=2)

    assert await claim_seat(db_session, event.id) is True
    assert await claim_seat(db_session, event.id) is True
    assert await claim_seat(db_session, event.id) is False

    assert await participant_count(db_session, event.id) == 2


@pytest.mark.asyncio
async def test_claim_seat_unlimited_event(db_session, make_event):
    event = await make_event(max_capacity=None)

    for _ in range(5):
        assert await claim_seat(db_session, event.id) is True

    assert await participant_count(db_session, event.id) == 5


@pytest.mark.asyncio
async def test_release_seat_never_goes_negative(db_session, make_event):
    event = await make_event()

    assert await release_seat(db_session, event.id) is False
    assert await participant_count(db_session, event.id) == 0
