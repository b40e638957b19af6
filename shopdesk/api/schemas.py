from datetime import date, datetime, time
from typing import Any, Literal

from pydantic import BaseModel, Field

from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.reservation import Reservation
from shopdesk.domain.entities.work import Work


class ReservationSchema(BaseModel):
    reservation_id: str
    scheduled_at: datetime
    duration_minutes: int
    status: str
    service_name: str
    quantity: int = 1
    root_reservation_id: str | None = None
    full_name: str | None = None
    car_model: str | None = None
    assigned_admin_id: str | None = None
    assigned_admin_label: str | None = None
    completed_at: datetime | None = None

    @staticmethod
    def from_entity(r: Reservation) -> "ReservationSchema":
        return ReservationSchema(
            reservation_id=r.reservation_id,
            scheduled_at=r.scheduled_at,
            duration_minutes=r.duration_minutes,
            status=r.status,
            service_name=r.service_name,
            quantity=r.quantity,
            root_reservation_id=r.root_reservation_id,
            full_name=r.full_name,
            car_model=r.car_model,
            assigned_admin_id=r.assigned_admin_id,
            assigned_admin_label=r.assigned_admin_label,
            completed_at=r.completed_at,
        )


class BlockedIntervalSchema(BaseModel):
    blocked_id: str
    start_at: datetime
    end_at: datetime
    reason: str | None = None

    @staticmethod
    def from_entity(b: BlockedInterval) -> "BlockedIntervalSchema":
        return BlockedIntervalSchema(blocked_id=b.blocked_id, start_at=b.start_at, end_at=b.end_at, reason=b.reason)


class SlotRowSchema(BaseModel):
    start: datetime
    end: datetime
    blocked: BlockedIntervalSchema | None = None
    reservation_ids: list[str] = Field(default_factory=list)


class DayStatsSchema(BaseModel):
    total: int
    completed: int
    pending: int
    confirmed: int
    blocked: int


class ScheduleDaySchema(BaseModel):
    day: date
    generation: int
    slots: list[SlotRowSchema]
    reservations: list[ReservationSchema]
    stats: DayStatsSchema


class MoveRequestSchema(BaseModel):
    reservation_id: str
    target_date: date
    target_time: time | None = None
    view_date: date | None = None  # day currently shown; defaults to target_date
    source: Literal["schedule", "calendar"] = "schedule"


class MoveResponseSchema(BaseModel):
    state: str
    ok: bool
    reason: str = ""
    message: str = ""
    max_concurrent: int | None = None
    new_start: datetime | None = None


class CalendarEventSchema(BaseModel):
    id: str
    kind: str
    start: datetime
    end: datetime
    title: str = ""
    status: str | None = None
    reason: str | None = None


class MonthStatsSchema(BaseModel):
    total_reservations: int
    total_blocked: int
    busy_days: int
    completed: int


class CalendarMonthSchema(BaseModel):
    year: int
    month: int
    events: list[CalendarEventSchema]
    stats: MonthStatsSchema


class WorkSchema(BaseModel):
    work_id: str
    start_at: datetime
    end_at: datetime
    status: str
    service_name: str
    service_names: list[str]
    children: int
    quantity: int
    assigned_admin_label: str | None = None
    completed_at: datetime | None = None
    approximate: bool = False

    @staticmethod
    def from_entity(w: Work) -> "WorkSchema":
        return WorkSchema(
            work_id=w.work_id,
            start_at=w.start_at,
            end_at=w.end_at,
            status=w.status,
            service_name=w.service_name,
            service_names=list(w.service_names),
            children=w.child_count,
            quantity=w.quantity,
            assigned_admin_label=w.assigned_admin_label,
            completed_at=w.completed_at,
            approximate=w.approximate,
        )


class StatusRequestSchema(BaseModel):
    status: str


class AssignRequestSchema(BaseModel):
    admin_id: str


class BlockedCreateSchema(BaseModel):
    start_at: datetime
    end_at: datetime
    reason: str | None = None
    shift_reservations: bool = False


class ActionResponseSchema(BaseModel):
    ok: bool
    message: str = ""
    value: Any = None
    generation: int | None = None  # schedule snapshot refreshed after the action, when a view_date was given


class BlockDaySchema(BaseModel):
    day: date
    reason: str | None = None


class BlockRangeSchema(BaseModel):
    start_at: datetime
    end_at: datetime
    reason: str | None = None


class StaffSchema(BaseModel):
    user_id: str
    label: str


class BookingCreateSchema(BaseModel):
    slot_start: datetime
    service_item_id: str
    problem: str
    insurance: bool = False
    user_note: str | None = None
    quantity: int = Field(1, ge=1)


class BookingResponseSchema(BaseModel):
    ok: bool
    message: str = ""
    reservation_id: str | None = None
