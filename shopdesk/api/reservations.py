from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from shopdesk.api.schedule import remote_error
from shopdesk.api.schemas import (
    ActionResponseSchema,
    AssignRequestSchema,
    BlockDaySchema,
    BlockedCreateSchema,
    BlockRangeSchema,
    StaffSchema,
    StatusRequestSchema,
)
from shopdesk.application.exceptions import ConfigurationError, RemoteFailure
from shopdesk.application.use_cases.reservation_actions import ActionResult, ReservationActionsUseCase
from shopdesk.application.use_cases.schedule_board import ScheduleBoard
from shopdesk.application.use_cases.staff_directory import StaffDirectoryUseCase
from shopdesk.wiring.dependencies import (
    get_reservation_actions_use_case,
    get_schedule_board,
    get_staff_directory_use_case,
)

router = APIRouter()


async def load_view(board: ScheduleBoard, view_date: date | None) -> None:
    """
    Load the day the caller is looking at, so the action's follow-up refresh
    has a snapshot to reload. Without a view_date the caller re-fetches itself.
    """
    if view_date is None:
        return
    try:
        await board.refresh(view_date)
    except (RemoteFailure, ConfigurationError) as e:
        raise remote_error(e)


def _respond(result: ActionResult) -> ActionResponseSchema:
    # rejected actions are a normal outcome; the message tells staff which rule or remote error applied
    return ActionResponseSchema(
        ok=result.ok,
        message=result.message,
        value=result.value,
        generation=result.snapshot.generation if result.snapshot else None,
    )


@router.get("/staff", response_model=list[StaffSchema])
async def list_staff(uc: StaffDirectoryUseCase = Depends(get_staff_directory_use_case)):
    try:
        staff = await uc.execute()
    except RemoteFailure as e:
        raise remote_error(e)
    return [StaffSchema(**s) for s in staff]


@router.post("/reservations/{reservation_id}/status", response_model=ActionResponseSchema)
async def set_status(
    reservation_id: str,
    req: StatusRequestSchema,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.set_status(reservation_id, req.status))


@router.post("/reservations/{reservation_id}/assign", response_model=ActionResponseSchema)
async def assign(
    reservation_id: str,
    req: AssignRequestSchema,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.assign(reservation_id, req.admin_id))


@router.post("/reservations/{reservation_id}/unassign", response_model=ActionResponseSchema)
async def unassign(
    reservation_id: str,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.unassign(reservation_id))


@router.post("/reservations/{reservation_id}/complete", response_model=ActionResponseSchema)
async def mark_completed(
    reservation_id: str,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.mark_completed(reservation_id))


@router.delete("/reservations/{reservation_id}", response_model=ActionResponseSchema)
async def delete_reservation(
    reservation_id: str,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.delete(reservation_id))


@router.post("/blocked", response_model=ActionResponseSchema)
async def create_blocked(
    req: BlockedCreateSchema,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(
        await uc.create_blocked_interval(req.start_at, req.end_at, req.reason, shift_reservations=req.shift_reservations)
    )


@router.post("/blocked/day", response_model=ActionResponseSchema)
async def block_day(
    req: BlockDaySchema,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.block_day(req.day, req.reason))


@router.post("/blocked/range", response_model=ActionResponseSchema)
async def block_range(
    req: BlockRangeSchema,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.block_range(req.start_at, req.end_at, req.reason))


@router.delete("/blocked/{blocked_id}", response_model=ActionResponseSchema)
async def delete_blocked(
    blocked_id: str,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.delete_blocked_interval(blocked_id))


@router.post("/blocked/{blocked_id}/restore", response_model=ActionResponseSchema)
async def restore_for_block(
    blocked_id: str,
    view_date: date | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: ReservationActionsUseCase = Depends(get_reservation_actions_use_case),
):
    await load_view(board, view_date)
    return _respond(await uc.restore_reservations_for_block(blocked_id))
