from __future__ import annotations

from datetime import timedelta

from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import Reservation
from shopdesk.domain.entities.time_window import TimeWindow, at_local, local_date


def resolve_day_based_window(reservation: Reservation, settings: OperatingSettings) -> TimeWindow:
    """
    Window of a multi-day (workdays) reservation.

    Starts at opening time on the shop-local date of scheduled_at and ends at
    closing time N days later. Blocked-day skipping is decided remotely and is
    not reflected here.
    """
    if not reservation.is_day_based:
        raise ValueError(
            f"reservation {reservation.reservation_id} is not day-based "
            f"({reservation.duration_minutes} minutes)"
        )
    tz = settings.tzinfo
    base = local_date(reservation.scheduled_at, tz)
    end_day = base + timedelta(days=reservation.day_count)
    return TimeWindow(
        start=at_local(base, settings.open_time, tz),
        end=at_local(end_day, settings.close_time, tz),
    )


def effective_window(reservation: Reservation, settings: OperatingSettings | None) -> TimeWindow:
    if reservation.is_day_based and settings is not None:
        return resolve_day_based_window(reservation, settings)
    return reservation.literal_window
