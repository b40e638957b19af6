from __future__ import annotations

import asyncio
import calendar
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Awaitable, Callable

from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.application.use_cases.day_window import effective_window
from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import Reservation

DayFetcher = Callable[[date], Awaitable[tuple[list[Reservation], list[BlockedInterval]]]]


@dataclass(frozen=True)
class CalendarEvent:
    event_id: str
    kind: str  # "block" | "reservation"
    start: datetime
    end: datetime
    title: str = ""
    status: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class MonthStats:
    total_reservations: int
    total_blocked: int
    busy_days: int
    completed: int


@dataclass
class MonthAggregate:
    year: int
    month: int
    reservations_by_id: dict[str, Reservation] = field(default_factory=dict)
    blocked_by_id: dict[str, BlockedInterval] = field(default_factory=dict)
    days: dict[date, tuple[list[Reservation], list[BlockedInterval]]] = field(default_factory=dict)

    def events(self, settings: OperatingSettings | None = None) -> list[CalendarEvent]:
        """Blocked intervals first so they render behind reservations."""
        blocks = [
            CalendarEvent(
                event_id=f"block:{b.blocked_id}",
                kind="block",
                start=b.start_at,
                end=b.end_at,
                reason=b.reason or "",
            )
            for b in self.blocked_by_id.values()
        ]
        bookings = []
        for r in self.reservations_by_id.values():
            window = effective_window(r, settings)
            bookings.append(
                CalendarEvent(
                    event_id=r.reservation_id,
                    kind="reservation",
                    start=window.start,
                    end=window.end,
                    title=f"{r.service_name} · {r.full_name or '-'}",
                    status=r.status,
                )
            )
        return blocks + bookings

    def stats(self) -> MonthStats:
        # per-day counts, same as the month header in the admin calendar
        per_day = list(self.days.values())
        return MonthStats(
            total_reservations=sum(len(rs) for rs, _ in per_day),
            total_blocked=sum(len(bs) for _, bs in per_day),
            busy_days=sum(1 for rs, _ in per_day if rs),
            completed=sum(sum(1 for r in rs if r.status == "completed") for rs, _ in per_day),
        )


def month_days(year: int, month: int) -> list[date]:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12, got {month}")
    last = calendar.monthrange(year, month)[1]
    return [date(year, month, d) for d in range(1, last + 1)]


def backend_day_fetcher(backend: ShopBackendPort) -> DayFetcher:
    async def fetch(day: date) -> tuple[list[Reservation], list[BlockedInterval]]:
        reservations, blocked = await asyncio.gather(
            backend.list_reservations_by_date(day),
            backend.list_blocked_by_date(day),
        )
        return list(reservations), list(blocked)

    return fetch


async def aggregate_month(year: int, month: int, fetch_day: DayFetcher) -> MonthAggregate:
    """
    Fetch every day of the month concurrently and merge the results.

    Day queries include anything overlapping the day, so a record spanning
    midnight comes back more than once; the merged maps keep the first copy.
    """
    days = month_days(year, month)
    results = await asyncio.gather(*(fetch_day(d) for d in days))

    aggregate = MonthAggregate(year=year, month=month)
    for day, (reservations, blocked) in zip(days, results):
        aggregate.days[day] = (list(reservations), list(blocked))
        for r in reservations:
            aggregate.reservations_by_id.setdefault(r.reservation_id, r)
        for b in blocked:
            aggregate.blocked_by_id.setdefault(b.blocked_id, b)
    return aggregate
