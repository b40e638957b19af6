from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from shopdesk.api.schemas import (
    BlockedIntervalSchema,
    CalendarEventSchema,
    CalendarMonthSchema,
    DayStatsSchema,
    MonthStatsSchema,
    MoveRequestSchema,
    MoveResponseSchema,
    ReservationSchema,
    ScheduleDaySchema,
    SlotRowSchema,
    WorkSchema,
)
from shopdesk.application.exceptions import ConfigurationError, RemoteFailure
from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.application.use_cases.available_slots import AvailableSlotsUseCase
from shopdesk.application.use_cases.calendar_month import aggregate_month, backend_day_fetcher
from shopdesk.application.use_cases.reschedule import MoveProposal, RescheduleUseCase
from shopdesk.application.use_cases.schedule_board import ScheduleBoard
from shopdesk.application.use_cases.slot_grid import filter_assigned_to
from shopdesk.application.use_cases.work_grouping import group_to_works
from shopdesk.wiring.dependencies import (
    get_available_slots_use_case,
    get_backend,
    get_reschedule_use_case,
    get_schedule_board,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def remote_error(e: Exception) -> HTTPException:
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, RemoteFailure):
        return HTTPException(status_code=502, detail=e.message)
    return HTTPException(status_code=400, detail=str(e))


@router.get("/schedule/{day}", response_model=ScheduleDaySchema)
async def schedule_day(
    day: date,
    only_admin_id: str | None = None,
    board: ScheduleBoard = Depends(get_schedule_board),
):
    try:
        snapshot = await board.refresh(day)
    except (RemoteFailure, ConfigurationError) as e:
        raise remote_error(e)
    if snapshot is None:
        raise HTTPException(status_code=409, detail="Schedule changed while loading, retry.")

    stats = board.stats(only_admin_id)
    return ScheduleDaySchema(
        day=snapshot.day,
        generation=snapshot.generation,
        slots=[
            SlotRowSchema(
                start=row.window.start,
                end=row.window.end,
                blocked=BlockedIntervalSchema.from_entity(row.blocked) if row.blocked else None,
                reservation_ids=[r.reservation_id for r in row.reservations],
            )
            for row in board.grid(only_admin_id)
        ],
        reservations=[
            ReservationSchema.from_entity(r) for r in filter_assigned_to(snapshot.reservations, only_admin_id)
        ],
        stats=DayStatsSchema(**asdict(stats)),
    )


@router.post("/schedule/moves", response_model=MoveResponseSchema)
async def propose_move(
    req: MoveRequestSchema,
    board: ScheduleBoard = Depends(get_schedule_board),
    uc: RescheduleUseCase = Depends(get_reschedule_use_case),
):
    try:
        await board.refresh(req.view_date or req.target_date)
        result = await uc.propose_move(
            MoveProposal(
                reservation_id=req.reservation_id,
                target_date=req.target_date,
                target_time=req.target_time,
                source=req.source,
            )
        )
    except (RemoteFailure, ConfigurationError) as e:
        raise remote_error(e)

    return MoveResponseSchema(
        state=result.state.value,
        ok=result.ok,
        reason=result.reason,
        message=result.message,
        max_concurrent=result.max_concurrent,
        new_start=result.candidate.start if result.candidate else None,
    )


@router.get("/calendar/{year}/{month}", response_model=CalendarMonthSchema)
async def calendar_month(
    year: int,
    month: int,
    backend: ShopBackendPort = Depends(get_backend),
):
    try:
        operating = await backend.get_operating_settings()
        aggregate = await aggregate_month(year, month, backend_day_fetcher(backend))
    except (RemoteFailure, ConfigurationError, ValueError) as e:
        raise remote_error(e)

    return CalendarMonthSchema(
        year=year,
        month=month,
        events=[
            CalendarEventSchema(
                id=e.event_id,
                kind=e.kind,
                start=e.start,
                end=e.end,
                title=e.title,
                status=e.status,
                reason=e.reason,
            )
            for e in aggregate.events(operating)
        ],
        stats=MonthStatsSchema(**asdict(aggregate.stats())),
    )


@router.get("/works", response_model=list[WorkSchema])
async def list_works(
    start: date,
    end: date,
    allow_heuristic: bool = True,
    backend: ShopBackendPort = Depends(get_backend),
):
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    try:
        operating, rows = await asyncio.gather(
            backend.get_operating_settings(),
            backend.list_reservations_by_range(start, end),
        )
    except (RemoteFailure, ConfigurationError) as e:
        raise remote_error(e)
    works = group_to_works(rows, allow_heuristic=allow_heuristic, tz=operating.tzinfo)
    return [WorkSchema.from_entity(w) for w in works]


@router.get("/slots")
async def available_slots(
    day: date,
    service_item_id: str,
    quantity: int = Query(1, ge=1),
    uc: AvailableSlotsUseCase = Depends(get_available_slots_use_case),
):
    try:
        slots = await uc.execute(day, service_item_id, quantity)
    except (RemoteFailure, ConfigurationError) as e:
        raise remote_error(e)
    return {"day": day.isoformat(), "slots": [s.isoformat() for s in slots]}
