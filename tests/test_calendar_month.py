"""
Tests for month aggregation and de-duplication.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date, timedelta

import pytest

from shopdesk.application.use_cases.calendar_month import aggregate_month, backend_day_fetcher, month_days
from shopdesk.infrastructure.backend.memory_backend import InMemoryShopBackend


@pytest.mark.asyncio
async def test_spanning_records_appear_once(at, make_reservation, make_block):
    overnight = make_reservation(at(22, on=date(2026, 2, 10)), 240, reservation_id="overnight")
    block = make_block(at(0, on=date(2026, 2, 14)), at(0, on=date(2026, 2, 16)), "holiday")
    calls: list[date] = []

    async def fetch(day):
        calls.append(day)
        reservations = [overnight] if day in (date(2026, 2, 10), date(2026, 2, 11)) else []
        blocked = [block] if day in (date(2026, 2, 14), date(2026, 2, 15)) else []
        return reservations, blocked

    aggregate = await aggregate_month(2026, 2, fetch)

    assert len(calls) == 28
    assert list(aggregate.reservations_by_id) == ["overnight"]
    assert list(aggregate.blocked_by_id) == [block.blocked_id]

    events = aggregate.events()
    assert [e.kind for e in events] == ["block", "reservation"]
    assert events[0].event_id == f"block:{block.blocked_id}"

    stats = aggregate.stats()
    assert stats.busy_days == 2
    assert stats.total_blocked == 2


@pytest.mark.asyncio
async def test_first_seen_order_is_kept(at, make_reservation):
    first = make_reservation(at(10, on=date(2026, 4, 2)), 60, reservation_id="b")
    second = make_reservation(at(10, on=date(2026, 4, 1)), 60, reservation_id="a")

    async def fetch(day):
        if day == date(2026, 4, 1):
            return [first, second], []
        if day == date(2026, 4, 2):
            return [replace(second, status="completed")], []
        return [], []

    aggregate = await aggregate_month(2026, 4, fetch)

    assert list(aggregate.reservations_by_id) == ["b", "a"]
    assert aggregate.reservations_by_id["a"].status == "confirmed"


@pytest.mark.asyncio
async def test_days_are_fetched_concurrently():
    in_flight = 0
    peak = 0

    async def fetch(day):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0)
        in_flight -= 1
        return [], []

    await aggregate_month(2026, 1, fetch)

    assert peak > 1


@pytest.mark.asyncio
async def test_backend_fetcher_dedupes_multi_day_jobs(shop_settings, at, make_reservation):
    job = make_reservation(at(9, on=date(2026, 5, 11)), 3 * 1440, reservation_id="body-work")
    backend = InMemoryShopBackend(shop_settings, [job])

    aggregate = await aggregate_month(2026, 5, backend_day_fetcher(backend))

    assert list(aggregate.reservations_by_id) == ["body-work"]
    assert aggregate.stats().busy_days == 4
    event = aggregate.events(shop_settings)[0]
    assert event.end == at(18, on=date(2026, 5, 11) + timedelta(days=3))


def test_invalid_month():
    with pytest.raises(ValueError):
        month_days(2026, 13)
    assert len(month_days(2024, 2)) == 29
