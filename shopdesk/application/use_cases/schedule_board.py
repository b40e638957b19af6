from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date

from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.application.use_cases.slot_grid import build_slot_grid, filter_assigned_to
from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import Reservation
from shopdesk.domain.entities.slot_row import SlotRow


@dataclass(frozen=True)
class ScheduleSnapshot:
    day: date
    generation: int
    settings: OperatingSettings
    reservations: tuple[Reservation, ...]
    blocked: tuple[BlockedInterval, ...]

    def find(self, reservation_id: str) -> Reservation | None:
        return next((r for r in self.reservations if r.reservation_id == reservation_id), None)


@dataclass(frozen=True)
class DayStats:
    total: int
    completed: int
    pending: int
    confirmed: int
    blocked: int


class ScheduleBoard:
    """
    Read-only view of one day of the remote schedule.

    Every refresh takes a new generation number; a fetch that finishes after a
    newer one has started is dropped, so the board always shows the latest
    request rather than the latest response.
    """

    def __init__(self, backend: ShopBackendPort) -> None:
        self._backend = backend
        self._generation = 0
        self._snapshot: ScheduleSnapshot | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def snapshot(self) -> ScheduleSnapshot | None:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._generation

    async def fetch(self, day: date, generation: int = 0) -> ScheduleSnapshot:
        """Fetch a snapshot without installing it."""
        settings, reservations, blocked = await asyncio.gather(
            self._backend.get_operating_settings(),
            self._backend.list_reservations_by_date(day),
            self._backend.list_blocked_by_date(day),
        )
        return ScheduleSnapshot(
            day=day,
            generation=generation,
            settings=settings,
            reservations=tuple(reservations),
            blocked=tuple(blocked),
        )

    async def refresh(self, day: date) -> ScheduleSnapshot | None:
        self._generation += 1
        generation = self._generation
        snapshot = await self.fetch(day, generation)

        if generation != self._generation:
            self._logger.debug(
                "Discarding stale schedule snapshot",
                extra={"date": day.isoformat(), "generation": generation},
            )
            return None

        self._snapshot = snapshot
        return snapshot

    async def reload(self) -> ScheduleSnapshot | None:
        if self._snapshot is None:
            return None
        return await self.refresh(self._snapshot.day)

    def grid(self, only_admin_id: str | None = None) -> list[SlotRow]:
        if self._snapshot is None:
            return []
        snap = self._snapshot
        visible = filter_assigned_to(snap.reservations, only_admin_id)
        return build_slot_grid(snap.day, snap.settings, snap.blocked, visible)

    def stats(self, only_admin_id: str | None = None) -> DayStats:
        if self._snapshot is None:
            return DayStats(total=0, completed=0, pending=0, confirmed=0, blocked=0)
        visible = filter_assigned_to(self._snapshot.reservations, only_admin_id)
        return DayStats(
            total=len(visible),
            completed=sum(1 for r in visible if r.status == "completed"),
            pending=sum(1 for r in visible if r.status == "pending"),
            confirmed=sum(1 for r in visible if r.status == "confirmed"),
            blocked=len(self._snapshot.blocked),
        )
