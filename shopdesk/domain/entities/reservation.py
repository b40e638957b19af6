from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from shopdesk.domain.entities.time_window import TimeWindow, parse_timestamp

MINUTES_PER_DAY = 1440

RESERVATION_STATUSES = ("pending", "confirmed", "completed", "canceled", "no_show")
CAPACITY_CONSUMING_STATUSES = frozenset({"pending", "confirmed", "completed"})


def is_day_based(duration_minutes: int) -> bool:
    return duration_minutes >= MINUTES_PER_DAY and duration_minutes % MINUTES_PER_DAY == 0


@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    scheduled_at: datetime
    duration_minutes: int
    status: str = "pending"  # one of RESERVATION_STATUSES
    service_name: str = ""
    quantity: int = 1
    root_reservation_id: str | None = None  # groups the day-chunks of one work
    user_id: str | None = None
    full_name: str | None = None
    phone: str | None = None
    car_model: str | None = None
    assigned_admin_id: str | None = None
    assigned_admin_label: str | None = None
    completed_admin_id: str | None = None
    completed_admin_label: str | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_day_based(self) -> bool:
        return is_day_based(self.duration_minutes)

    @property
    def day_count(self) -> int:
        return self.duration_minutes // MINUTES_PER_DAY if self.is_day_based else 0

    @property
    def consumes_capacity(self) -> bool:
        return self.status in CAPACITY_CONSUMING_STATUSES

    @property
    def literal_window(self) -> TimeWindow:
        return TimeWindow.starting_at(self.scheduled_at, self.duration_minutes)

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Reservation":
        # v1 RPC rows lack assignment/quantity columns; v2 rows carry them
        reservation_id = row.get("reservation_id") or row.get("id")
        if not reservation_id:
            raise ValueError("reservation row without an identifier")
        scheduled_at = parse_timestamp(row.get("scheduled_at"))
        if scheduled_at is None:
            raise ValueError(f"reservation {reservation_id} has no scheduled_at")

        try:
            quantity = int(row.get("quantity") or 1)
        except (TypeError, ValueError):
            quantity = 1

        return Reservation(
            reservation_id=str(reservation_id),
            scheduled_at=scheduled_at,
            duration_minutes=int(row.get("duration_minutes") or 0),
            status=str(row.get("status") or "pending"),
            service_name=str(row.get("service_name") or ""),
            quantity=max(1, quantity),
            root_reservation_id=_optional_str(row.get("root_reservation_id")),
            user_id=_optional_str(row.get("user_id")),
            full_name=row.get("full_name"),
            phone=row.get("phone"),
            car_model=row.get("car_model"),
            assigned_admin_id=_optional_str(row.get("assigned_admin_id")),
            assigned_admin_label=row.get("assigned_admin_label"),
            completed_admin_id=_optional_str(row.get("completed_admin_id")),
            completed_admin_label=row.get("completed_admin_label"),
            completed_at=parse_timestamp(row.get("completed_at")),
            created_at=parse_timestamp(row.get("created_at")),
        )


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
