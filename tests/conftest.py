"""Shared fixtures: a 09:00-18:00 shop in Seoul with 30-minute slots and one lift."""

from __future__ import annotations

import itertools
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import Reservation

TZ = ZoneInfo("Asia/Seoul")
DAY = date(2026, 3, 10)


@pytest.fixture
def day() -> date:
    return DAY


@pytest.fixture
def at():
    def _at(hour: int, minute: int = 0, on: date = DAY) -> datetime:
        return datetime.combine(on, time(hour, minute), tzinfo=TZ)

    return _at


@pytest.fixture
def shop_settings() -> OperatingSettings:
    return OperatingSettings(
        open_time=time(9, 0),
        close_time=time(18, 0),
        slot_minutes=30,
        capacity=1,
        timezone="Asia/Seoul",
        max_batch_qty=3,
    )


@pytest.fixture
def make_reservation():
    counter = itertools.count(1)

    def _make(start: datetime, minutes: int = 60, status: str = "confirmed", **fields) -> Reservation:
        fields.setdefault("reservation_id", f"res-{next(counter)}")
        fields.setdefault("service_name", "Tire change")
        return Reservation(scheduled_at=start, duration_minutes=minutes, status=status, **fields)

    return _make


@pytest.fixture
def make_block():
    counter = itertools.count(1)

    def _make(start: datetime, end: datetime, reason: str | None = None) -> BlockedInterval:
        return BlockedInterval(blocked_id=f"blk-{next(counter)}", start_at=start, end_at=end, reason=reason)

    return _make
