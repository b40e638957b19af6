from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable

from shopdesk.application.use_cases.day_window import effective_window
from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import Reservation
from shopdesk.domain.entities.slot_row import SlotRow
from shopdesk.domain.entities.time_window import TimeWindow, at_local

logger = logging.getLogger(__name__)


def business_hours(day: date, settings: OperatingSettings) -> TimeWindow:
    tz = settings.tzinfo
    return TimeWindow(start=at_local(day, settings.open_time, tz), end=at_local(day, settings.close_time, tz))


def build_slot_grid(
    day: date,
    settings: OperatingSettings,
    blocked: Iterable[BlockedInterval],
    reservations: Iterable[Reservation],
) -> list[SlotRow]:
    """
    Fixed-width rows covering [open, close) on the given day.

    A trailing partial slot is dropped. Misconfigured hours or granularity
    produce an empty grid, which callers show as "no slots".
    """
    hours = business_hours(day, settings)
    step = settings.slot_minutes
    if step <= 0 or hours.end <= hours.start:
        logger.warning(
            "Degenerate operating settings, empty grid",
            extra={"date": day.isoformat(), "reason": f"open={settings.open_time} close={settings.close_time} slot={step}"},
        )
        return []

    blocked_list = list(blocked)
    windows = [(r, effective_window(r, settings)) for r in reservations]

    rows: list[SlotRow] = []
    current = hours.start
    while current + timedelta(minutes=step) <= hours.end:
        row_window = TimeWindow.starting_at(current, step)
        hit = next((b for b in blocked_list if b.window.overlaps(row_window)), None)
        overlapping = tuple(r for r, w in windows if w.overlaps(row_window))
        rows.append(SlotRow(window=row_window, blocked=hit, reservations=overlapping))
        current = row_window.end

    return rows


def filter_assigned_to(reservations: Iterable[Reservation], admin_id: str | None) -> list[Reservation]:
    """The "only mine" view. No admin id means no filtering."""
    if not admin_id:
        return list(reservations)
    return [r for r in reservations if r.assigned_admin_id == admin_id]
