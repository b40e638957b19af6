from __future__ import annotations

from dataclasses import dataclass, field

from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.reservation import Reservation
from shopdesk.domain.entities.time_window import TimeWindow


@dataclass(frozen=True)
class SlotRow:
    window: TimeWindow
    blocked: BlockedInterval | None = None
    reservations: tuple[Reservation, ...] = field(default_factory=tuple)

    @property
    def is_blocked(self) -> bool:
        return self.blocked is not None
