from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum

from shopdesk.application.exceptions import RemoteFailure
from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.application.use_cases.capacity import evaluate_capacity
from shopdesk.application.use_cases.schedule_board import ScheduleBoard, ScheduleSnapshot
from shopdesk.application.use_cases.slot_grid import business_hours
from shopdesk.domain.entities.reservation import Reservation
from shopdesk.domain.entities.time_window import TimeWindow, at_local


SCHEDULE_SOURCE = "schedule"
CALENDAR_SOURCE = "calendar"  # month view date-to-date moves use their own remote function


class RescheduleState(str, Enum):
    DRAGGING = "dragging"
    VALIDATING = "validating"
    ACCEPTED = "accepted"
    REJECTED_BUSINESS_HOURS = "rejected_business_hours"
    REJECTED_BLOCKED = "rejected_blocked"
    REJECTED_CAPACITY = "rejected_capacity"
    REJECTED_NOT_FOUND = "rejected_not_found"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class RescheduleResult:
    state: RescheduleState
    reason: str
    message: str
    candidate: TimeWindow | None = None
    max_concurrent: int | None = None
    snapshot: ScheduleSnapshot | None = None

    @property
    def ok(self) -> bool:
        return self.state in (RescheduleState.ACCEPTED, RescheduleState.COMMITTED)


@dataclass(frozen=True)
class MoveProposal:
    reservation_id: str
    target_date: date
    target_time: time | None = None  # None keeps the reservation's current time of day
    source: str = SCHEDULE_SOURCE


class RescheduleUseCase:
    def __init__(self, backend: ShopBackendPort, board: ScheduleBoard) -> None:
        self._backend = backend
        self._board = board
        self._logger = logging.getLogger(__name__)

    def validate(
        self,
        reservation: Reservation,
        candidate_start: datetime,
        context: ScheduleSnapshot,
    ) -> RescheduleResult:
        """Local checks only. Nothing here is authoritative; the remote side re-validates."""
        settings = context.settings
        tz = settings.tzinfo
        if candidate_start.tzinfo is None:
            candidate_start = candidate_start.replace(tzinfo=tz)
        local_start = candidate_start.astimezone(tz)

        if reservation.is_day_based:
            return self._reject(
                reservation,
                RescheduleState.REJECTED_BUSINESS_HOURS,
                "multi_day_not_movable",
                "Multi-day reservations cannot be moved from the schedule view.",
            )

        if reservation.duration_minutes == settings.business_day_minutes and local_start.time() != settings.open_time:
            return self._reject(
                reservation,
                RescheduleState.REJECTED_BUSINESS_HOURS,
                "workday_must_start_at_open",
                f"Full business-day jobs can only start at {settings.open_time.strftime('%H:%M')}.",
            )

        candidate = TimeWindow.starting_at(local_start, reservation.duration_minutes)
        hours = business_hours(local_start.date(), settings)
        if not hours.contains(candidate):
            return self._reject(
                reservation,
                RescheduleState.REJECTED_BUSINESS_HOURS,
                "outside_business_hours",
                f"Outside business hours ({settings.open_time.strftime('%H:%M')}"
                f"~{settings.close_time.strftime('%H:%M')}).",
                candidate=candidate,
            )

        if any(b.window.overlaps(candidate) for b in context.blocked):
            return self._reject(
                reservation,
                RescheduleState.REJECTED_BLOCKED,
                "blocked",
                "The new time overlaps a blocked time.",
                candidate=candidate,
            )

        capacity = evaluate_capacity(
            candidate,
            context.reservations,
            settings.lift_capacity,
            reservation.reservation_id,
            slot_minutes=settings.slot_minutes,
            settings=settings,
        )
        if not capacity.allowed:
            return self._reject(
                reservation,
                RescheduleState.REJECTED_CAPACITY,
                "capacity",
                f"All {settings.lift_capacity} lift(s) are busy at that time "
                f"({capacity.max_concurrent} overlapping).",
                candidate=candidate,
                max_concurrent=capacity.max_concurrent,
            )

        return RescheduleResult(
            state=RescheduleState.ACCEPTED,
            reason="",
            message="",
            candidate=candidate,
            max_concurrent=capacity.max_concurrent,
        )

    async def validate_and_reschedule(
        self,
        reservation: Reservation,
        candidate_start: datetime,
        context: ScheduleSnapshot | None = None,
        source: str = SCHEDULE_SOURCE,
    ) -> RescheduleResult:
        context = context or self._board.snapshot
        if context is None:
            return RescheduleResult(
                state=RescheduleState.REJECTED_NOT_FOUND,
                reason="schedule_not_loaded",
                message="Load the schedule before moving reservations.",
            )

        verdict = self.validate(reservation, candidate_start, context)
        if verdict.state != RescheduleState.ACCEPTED:
            return verdict

        new_start = verdict.candidate.start
        try:
            if source == CALENDAR_SOURCE:
                applied = await self._backend.move_reservation(reservation.reservation_id, new_start)
            else:
                applied = await self._backend.reschedule_reservation(reservation.reservation_id, new_start)
            if not applied:
                raise RemoteFailure("Reschedule was not applied.")
        except RemoteFailure as e:
            self._logger.warning(
                "Reschedule failed remotely",
                extra={"reservation_id": reservation.reservation_id, "error": e.message},
            )
            return RescheduleResult(
                state=RescheduleState.FAILED,
                reason="remote_error",
                message=e.message,
                candidate=verdict.candidate,
                max_concurrent=verdict.max_concurrent,
            )

        self._logger.info(
            "Reservation rescheduled",
            extra={"reservation_id": reservation.reservation_id, "date": new_start.isoformat()},
        )

        snapshot = None
        try:
            snapshot = await self._board.reload()
        except RemoteFailure as e:
            # committed already; the stale view stays until the next manual refresh
            self._logger.warning("Refresh after reschedule failed", extra={"error": e.message})

        return RescheduleResult(
            state=RescheduleState.COMMITTED,
            reason="",
            message="",
            candidate=verdict.candidate,
            max_concurrent=verdict.max_concurrent,
            snapshot=snapshot,
        )

    async def propose_move(self, proposal: MoveProposal) -> RescheduleResult:
        """Move a reservation to another slot, or to another day keeping its time."""
        current = self._board.snapshot
        if current is not None and current.day == proposal.target_date:
            context = current
        else:
            context = await self._board.fetch(proposal.target_date)

        reservation = None
        if current is not None:
            reservation = current.find(proposal.reservation_id)
        if reservation is None:
            reservation = context.find(proposal.reservation_id)
        if reservation is None:
            return RescheduleResult(
                state=RescheduleState.REJECTED_NOT_FOUND,
                reason="not_found",
                message="The dragged reservation could not be found.",
            )

        tz = context.settings.tzinfo
        target_time = proposal.target_time or reservation.scheduled_at.astimezone(tz).time()
        candidate_start = at_local(proposal.target_date, target_time, tz)
        return await self.validate_and_reschedule(reservation, candidate_start, context, source=proposal.source)

    def _reject(
        self,
        reservation: Reservation,
        state: RescheduleState,
        reason: str,
        message: str,
        candidate: TimeWindow | None = None,
        max_concurrent: int | None = None,
    ) -> RescheduleResult:
        self._logger.info(
            "Reschedule rejected",
            extra={"reservation_id": reservation.reservation_id, "reason": reason},
        )
        return RescheduleResult(
            state=state,
            reason=reason,
            message=message,
            candidate=candidate,
            max_concurrent=max_concurrent,
        )
