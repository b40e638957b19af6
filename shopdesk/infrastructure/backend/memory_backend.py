from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Iterable

from shopdesk.application.exceptions import RemoteFailure
from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.application.use_cases.capacity import evaluate_capacity
from shopdesk.application.use_cases.day_window import effective_window
from shopdesk.application.use_cases.slot_grid import build_slot_grid
from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import RESERVATION_STATUSES, Reservation
from shopdesk.domain.entities.time_window import TimeWindow, at_local, local_date


class InMemoryShopBackend(ShopBackendPort):
    """
    Dict-backed stand-in for the remote backend, used in dev and tests.

    It applies mutations blindly (no server-side re-validation) so callers'
    local checks are what is being exercised. `fail(rpc, message)` makes the
    next call to that operation raise RemoteFailure.
    """

    def __init__(
        self,
        operating_settings: OperatingSettings | None = None,
        reservations: Iterable[Reservation] = (),
        blocked: Iterable[BlockedInterval] = (),
        staff: Iterable[dict[str, str]] = (),
        service_durations: dict[str, int] | None = None,
    ) -> None:
        self.operating_settings = operating_settings or OperatingSettings(
            open_time=time(9, 0),
            close_time=time(18, 0),
            slot_minutes=30,
            capacity=1,
            timezone="Asia/Seoul",
            max_batch_qty=1,
        )
        self.reservations: dict[str, Reservation] = {r.reservation_id: r for r in reservations}
        self.blocked: dict[str, BlockedInterval] = {b.blocked_id: b for b in blocked}
        self.staff = list(staff)
        self.service_durations = dict(service_durations or {})
        self.calls: list[tuple[str, tuple]] = []
        self._failures: dict[str, str] = {}
        self._shifted: dict[str, dict[str, datetime]] = {}
        self._logger = logging.getLogger(__name__)

    def fail(self, rpc: str, message: str) -> None:
        self._failures[rpc] = message

    def _enter(self, rpc: str, *args) -> None:
        self.calls.append((rpc, args))
        message = self._failures.pop(rpc, None)
        if message is not None:
            raise RemoteFailure(message, rpc=rpc)

    def calls_to(self, rpc: str) -> list[tuple]:
        return [args for name, args in self.calls if name == rpc]

    def _day_window(self, day: date) -> TimeWindow:
        tz = self.operating_settings.tzinfo
        start = at_local(day, time(0, 0), tz)
        return TimeWindow(start=start, end=at_local(day + timedelta(days=1), time(0, 0), tz))

    def _require(self, reservation_id: str) -> Reservation:
        reservation = self.reservations.get(reservation_id)
        if reservation is None:
            raise RemoteFailure(f"Reservation {reservation_id} not found.")
        return reservation

    async def get_operating_settings(self) -> OperatingSettings:
        self._enter("get_operating_settings")
        return self.operating_settings

    async def list_reservations_by_date(self, day: date) -> list[Reservation]:
        self._enter("list_reservations_by_date", day)
        window = self._day_window(day)
        hits = [
            r for r in self.reservations.values()
            if effective_window(r, self.operating_settings).overlaps(window)
        ]
        return sorted(hits, key=lambda r: r.scheduled_at)

    async def list_reservations_by_range(self, start: date, end: date) -> list[Reservation]:
        self._enter("list_reservations_by_range", start, end)
        window = TimeWindow(start=self._day_window(start).start, end=self._day_window(end).end)
        hits = [r for r in self.reservations.values() if window.start <= r.scheduled_at < window.end]
        return sorted(hits, key=lambda r: r.scheduled_at)

    async def list_blocked_by_date(self, day: date) -> list[BlockedInterval]:
        self._enter("list_blocked_by_date", day)
        window = self._day_window(day)
        hits = [b for b in self.blocked.values() if b.window.overlaps(window)]
        return sorted(hits, key=lambda b: b.start_at)

    async def list_staff(self) -> list[dict[str, str]]:
        self._enter("list_staff")
        return list(self.staff)

    async def list_available_slots(self, day: date, service_item_id: str, quantity: int = 1) -> list[str]:
        self._enter("list_available_slots", day, service_item_id, quantity)
        return [start.isoformat() for start in self._open_slots(day, self._duration_of(service_item_id), quantity)]

    def _duration_of(self, service_item_id: str) -> int:
        duration = self.service_durations.get(service_item_id)
        if duration is None:
            raise RemoteFailure(f"Service item {service_item_id} not found.")
        return duration

    def _open_slots(self, day: date, duration: int, quantity: int) -> list[datetime]:
        settings = self.operating_settings
        day_reservations = [
            r for r in self.reservations.values()
            if effective_window(r, settings).overlaps(self._day_window(day))
        ]
        grid = build_slot_grid(day, settings, self.blocked.values(), day_reservations)
        close = at_local(day, settings.close_time, settings.tzinfo)

        slots: list[datetime] = []
        for row in grid:
            candidate = TimeWindow.starting_at(row.window.start, duration)
            if candidate.end > close:
                continue
            if any(b.window.overlaps(candidate) for b in self.blocked.values()):
                continue
            load = evaluate_capacity(
                candidate,
                day_reservations,
                settings.lift_capacity,
                slot_minutes=settings.slot_minutes,
                settings=settings,
            )
            if load.max_concurrent + quantity <= settings.lift_capacity:
                slots.append(candidate.start)
        return slots

    async def reschedule_reservation(self, reservation_id: str, new_start: datetime) -> bool:
        self._enter("reschedule_reservation", reservation_id, new_start)
        reservation = self._require(reservation_id)
        self.reservations[reservation_id] = replace(reservation, scheduled_at=new_start)
        return True

    async def set_reservation_status(self, reservation_id: str, status: str) -> bool:
        self._enter("set_reservation_status", reservation_id, status)
        if status not in RESERVATION_STATUSES:
            raise RemoteFailure(f"invalid status: {status}")
        reservation = self._require(reservation_id)
        self.reservations[reservation_id] = replace(reservation, status=status)
        return True

    async def assign_reservation(self, reservation_id: str, admin_id: str) -> bool:
        self._enter("assign_reservation", reservation_id, admin_id)
        reservation = self._require(reservation_id)
        label = next((s["label"] for s in self.staff if s["user_id"] == admin_id), admin_id)
        self.reservations[reservation_id] = replace(
            reservation, assigned_admin_id=admin_id, assigned_admin_label=label
        )
        return True

    async def unassign_reservation(self, reservation_id: str) -> bool:
        self._enter("unassign_reservation", reservation_id)
        reservation = self._require(reservation_id)
        self.reservations[reservation_id] = replace(reservation, assigned_admin_id=None, assigned_admin_label=None)
        return True

    async def mark_reservation_completed(self, reservation_id: str) -> bool:
        self._enter("mark_reservation_completed", reservation_id)
        reservation = self._require(reservation_id)
        self.reservations[reservation_id] = replace(
            reservation,
            status="completed",
            completed_at=datetime.now(self.operating_settings.tzinfo),
        )
        return True

    async def delete_reservation(self, reservation_id: str) -> bool:
        self._enter("delete_reservation", reservation_id)
        return self.reservations.pop(reservation_id, None) is not None

    async def create_blocked_interval(self, start_at: datetime, end_at: datetime, reason: str | None = None) -> str:
        self._enter("create_blocked_interval", start_at, end_at, reason)
        blocked_id = str(uuid.uuid4())
        self.blocked[blocked_id] = BlockedInterval(blocked_id=blocked_id, start_at=start_at, end_at=end_at, reason=reason)
        return blocked_id

    async def delete_blocked_interval(self, blocked_id: str) -> bool:
        self._enter("delete_blocked_interval", blocked_id)
        return self.blocked.pop(blocked_id, None) is not None

    async def create_blocked_interval_with_shift(
        self,
        start_at: datetime,
        end_at: datetime,
        reason: str | None = None,
    ) -> tuple[str, int]:
        self._enter("create_blocked_interval_with_shift", start_at, end_at, reason)
        blocked_id = str(uuid.uuid4())
        block = BlockedInterval(blocked_id=blocked_id, start_at=start_at, end_at=end_at, reason=reason)
        self.blocked[blocked_id] = block

        # naive shift: overlapping minute-based jobs start when the block ends
        moved: dict[str, datetime] = {}
        for r in list(self.reservations.values()):
            if r.is_day_based or not r.consumes_capacity:
                continue
            if r.literal_window.overlaps(block.window):
                moved[r.reservation_id] = r.scheduled_at
                self.reservations[r.reservation_id] = replace(r, scheduled_at=end_at)
        self._shifted[blocked_id] = moved
        return blocked_id, len(moved)

    async def restore_reservations_for_block(self, blocked_id: str) -> tuple[int, int]:
        self._enter("restore_reservations_for_block", blocked_id)
        restored = skipped = 0
        for reservation_id, original in self._shifted.pop(blocked_id, {}).items():
            reservation = self.reservations.get(reservation_id)
            if reservation is None:
                skipped += 1
                continue
            self.reservations[reservation_id] = replace(reservation, scheduled_at=original)
            restored += 1
        return restored, skipped

    async def move_reservation(self, reservation_id: str, new_start: datetime) -> bool:
        self._enter("move_reservation", reservation_id, new_start)
        reservation = self._require(reservation_id)
        self.reservations[reservation_id] = replace(reservation, scheduled_at=new_start)
        return True

    async def block_day(self, day: date, reason: str | None = None) -> str:
        self._enter("block_day", day, reason)
        window = self._day_window(day)
        blocked_id = str(uuid.uuid4())
        self.blocked[blocked_id] = BlockedInterval(blocked_id=blocked_id, start_at=window.start, end_at=window.end, reason=reason)
        return blocked_id

    async def block_range(self, start_at: datetime, end_at: datetime, reason: str | None = None) -> str:
        self._enter("block_range", start_at, end_at, reason)
        blocked_id = str(uuid.uuid4())
        self.blocked[blocked_id] = BlockedInterval(blocked_id=blocked_id, start_at=start_at, end_at=end_at, reason=reason)
        return blocked_id

    async def create_reservation(
        self,
        slot_start: datetime,
        service_item_id: str,
        problem: str,
        insurance: bool = False,
        user_note: str | None = None,
        quantity: int = 1,
    ) -> str:
        self._enter("create_reservation", slot_start, service_item_id, quantity)
        duration = self._duration_of(service_item_id)
        day = local_date(slot_start, self.operating_settings.tzinfo)
        if slot_start not in self._open_slots(day, duration, quantity):
            raise RemoteFailure("The selected slot is no longer available.", rpc="create_reservation")

        reservation_id = str(uuid.uuid4())
        self.reservations[reservation_id] = Reservation(
            reservation_id=reservation_id,
            scheduled_at=slot_start,
            duration_minutes=duration,
            status="pending",
            service_name=service_item_id,
            quantity=quantity,
            created_at=datetime.now(self.operating_settings.tzinfo),
        )
        return reservation_id

    async def cancel_my_reservation(self, reservation_id: str) -> bool:
        self._enter("cancel_my_reservation", reservation_id)
        reservation = self.reservations.get(reservation_id)
        if reservation is None or reservation.status not in ("pending", "confirmed"):
            return False
        self.reservations[reservation_id] = replace(reservation, status="canceled")
        return True
