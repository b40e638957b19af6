from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Awaitable

from shopdesk.application.exceptions import RemoteFailure
from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.application.use_cases.schedule_board import ScheduleBoard, ScheduleSnapshot
from shopdesk.domain.entities.reservation import RESERVATION_STATUSES


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: str = ""
    value: Any = None
    snapshot: ScheduleSnapshot | None = None


class ReservationActionsUseCase:
    """Staff mutations. One remote call each, followed by a schedule refresh."""

    def __init__(self, backend: ShopBackendPort, board: ScheduleBoard) -> None:
        self._backend = backend
        self._board = board
        self._logger = logging.getLogger(__name__)

    async def set_status(self, reservation_id: str, status: str) -> ActionResult:
        if status not in RESERVATION_STATUSES:
            return ActionResult(ok=False, message=f"Unknown status: {status}")
        return await self._run("set_status", reservation_id, self._backend.set_reservation_status(reservation_id, status))

    async def assign(self, reservation_id: str, admin_id: str) -> ActionResult:
        if not admin_id:
            return await self.unassign(reservation_id)
        return await self._run("assign", reservation_id, self._backend.assign_reservation(reservation_id, admin_id))

    async def unassign(self, reservation_id: str) -> ActionResult:
        return await self._run("unassign", reservation_id, self._backend.unassign_reservation(reservation_id))

    async def mark_completed(self, reservation_id: str) -> ActionResult:
        return await self._run("mark_completed", reservation_id, self._backend.mark_reservation_completed(reservation_id))

    async def delete(self, reservation_id: str) -> ActionResult:
        return await self._run("delete", reservation_id, self._backend.delete_reservation(reservation_id))

    async def create_blocked_interval(
        self,
        start_at: datetime,
        end_at: datetime,
        reason: str | None = None,
        shift_reservations: bool = False,
    ) -> ActionResult:
        if end_at <= start_at:
            return ActionResult(ok=False, message="Blocked time must end after it starts.")
        if shift_reservations:
            call = self._backend.create_blocked_interval_with_shift(start_at, end_at, reason)
        else:
            call = self._backend.create_blocked_interval(start_at, end_at, reason)
        return await self._run("create_blocked", None, call)

    async def block_day(self, day: date, reason: str | None = None) -> ActionResult:
        return await self._run("block_day", None, self._backend.block_day(day, reason))

    async def block_range(self, start_at: datetime, end_at: datetime, reason: str | None = None) -> ActionResult:
        if end_at <= start_at:
            return ActionResult(ok=False, message="Blocked range must end after it starts.")
        return await self._run("block_range", None, self._backend.block_range(start_at, end_at, reason))

    async def delete_blocked_interval(self, blocked_id: str) -> ActionResult:
        return await self._run("delete_blocked", None, self._backend.delete_blocked_interval(blocked_id))

    async def restore_reservations_for_block(self, blocked_id: str) -> ActionResult:
        return await self._run("restore_for_block", None, self._backend.restore_reservations_for_block(blocked_id))

    async def _run(self, action: str, reservation_id: str | None, call: Awaitable[Any]) -> ActionResult:
        try:
            value = await call
        except RemoteFailure as e:
            self._logger.warning(
                "Remote action failed",
                extra={"rpc": action, "reservation_id": reservation_id, "error": e.message},
            )
            return ActionResult(ok=False, message=e.message)

        if value is False:
            return ActionResult(ok=False, message=f"{action} was not applied.")

        self._logger.info("Remote action applied", extra={"rpc": action, "reservation_id": reservation_id})
        snapshot = None
        try:
            snapshot = await self._board.reload()
        except RemoteFailure as e:
            self._logger.warning("Refresh after action failed", extra={"rpc": action, "error": e.message})
        return ActionResult(ok=True, value=value, snapshot=snapshot)
