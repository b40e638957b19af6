"""
Tests for customer booking and self-cancellation.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from shopdesk.application.use_cases.booking import BookingRequest, BookingUseCase
from shopdesk.application.use_cases.staff_directory import StaffDirectoryUseCase
from shopdesk.infrastructure.backend.memory_backend import InMemoryShopBackend


@pytest.fixture
def backend(shop_settings, at, make_reservation):
    return InMemoryShopBackend(
        shop_settings,
        [make_reservation(at(10), 60, reservation_id="existing")],
        service_durations={"svc-oil": 60},
    )


@pytest.mark.asyncio
async def test_book_an_offered_slot(backend, at):
    uc = BookingUseCase(backend)

    result = await uc.book(BookingRequest(at(13), "svc-oil", "  engine light on  "))

    assert result.ok
    booked = backend.reservations[result.reservation_id]
    assert booked.scheduled_at == at(13)
    assert booked.status == "pending"
    assert booked.duration_minutes == 60
    assert backend.calls_to("create_reservation") == [(at(13), "svc-oil", 1)]


@pytest.mark.asyncio
async def test_quantity_is_clamped_to_batch_limit(shop_settings, at):
    backend = InMemoryShopBackend(replace(shop_settings, capacity=4), service_durations={"svc-oil": 60})

    result = await BookingUseCase(backend).book(BookingRequest(at(13), "svc-oil", "fleet service", quantity=9))

    assert result.ok
    # max_batch_qty of the shop fixture is 3
    assert backend.calls_to("create_reservation") == [(at(13), "svc-oil", 3)]
    assert backend.reservations[result.reservation_id].quantity == 3


@pytest.mark.asyncio
async def test_taken_slot_reports_remote_message(backend, at):
    uc = BookingUseCase(backend)

    result = await uc.book(BookingRequest(at(10), "svc-oil", "noise", quantity=1))

    assert not result.ok
    assert result.message == "The selected slot is no longer available."


@pytest.mark.asyncio
async def test_naive_slot_is_shop_time(backend, at):
    uc = BookingUseCase(backend)

    result = await uc.book(BookingRequest(at(15).replace(tzinfo=None), "svc-oil", "tires"))

    assert result.ok
    assert backend.reservations[result.reservation_id].scheduled_at == at(15)


@pytest.mark.asyncio
async def test_problem_is_required(backend, at):
    result = await BookingUseCase(backend).book(BookingRequest(at(13), "svc-oil", "   "))

    assert not result.ok
    assert backend.calls_to("create_reservation") == []


@pytest.mark.asyncio
async def test_cancel_own_reservation(backend):
    uc = BookingUseCase(backend)

    first = await uc.cancel("existing")
    again = await uc.cancel("existing")

    assert first.ok
    assert backend.reservations["existing"].status == "canceled"
    assert not again.ok


@pytest.mark.asyncio
async def test_staff_directory_is_sorted_by_label():
    backend = InMemoryShopBackend(staff=[{"user_id": "u2", "label": "yuna"}, {"user_id": "u1", "label": "Minji"}])

    staff = await StaffDirectoryUseCase(backend).execute()

    assert [s["user_id"] for s in staff] == ["u1", "u2"]
