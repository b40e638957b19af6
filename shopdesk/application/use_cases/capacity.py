from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable

from shopdesk.application.use_cases.day_window import effective_window
from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import Reservation
from shopdesk.domain.entities.time_window import TimeWindow


@dataclass(frozen=True)
class CapacityResult:
    allowed: bool
    max_concurrent: int


def _slices(window: TimeWindow, slot_minutes: int) -> list[TimeWindow]:
    if slot_minutes <= 0:
        return [window] if window.end > window.start else []
    step = timedelta(minutes=slot_minutes)
    out: list[TimeWindow] = []
    current = window.start
    while current < window.end:
        out.append(TimeWindow(start=current, end=min(current + step, window.end)))
        current += step
    return out


def evaluate_capacity(
    candidate: TimeWindow,
    reservations: Iterable[Reservation],
    lift_capacity: int,
    exclude_reservation_id: str | None = None,
    *,
    slot_minutes: int = 30,
    settings: OperatingSettings | None = None,
) -> CapacityResult:
    """
    Worst-case concurrent load of other reservations inside the candidate window.

    The window is cut into slot-sized slices (the last one may be shorter) and
    the overlap count is taken per slice, so reservations that never coexist
    are not summed together. Only capacity-consuming statuses count. The
    placement is rejected when the maximum reaches the lift capacity.
    """
    others = [
        effective_window(r, settings)
        for r in reservations
        if r.consumes_capacity and r.reservation_id != exclude_reservation_id
    ]
    others = [w for w in others if w.overlaps(candidate)]

    max_concurrent = 0
    if others:
        for piece in _slices(candidate, slot_minutes):
            count = sum(1 for w in others if w.overlaps(piece))
            if count > max_concurrent:
                max_concurrent = count

    return CapacityResult(allowed=max_concurrent < lift_capacity, max_concurrent=max_concurrent)
