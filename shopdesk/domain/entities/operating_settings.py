from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Any
from zoneinfo import ZoneInfo


def parse_time_of_day(value: str | time) -> time:
    """Parse "HH:MM" or "HH:MM:SS" as stored in the settings row."""
    if isinstance(value, time):
        return value
    text = str(value or "").strip()
    parts = text.split(":")
    if len(parts) < 2:
        raise ValueError(f"invalid time of day: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(float(parts[2])) if len(parts) > 2 else 0
    return time(hour=hour, minute=minute, second=second)


@dataclass(frozen=True)
class OperatingSettings:
    open_time: time
    close_time: time
    slot_minutes: int = 30
    capacity: int = 1  # lift count
    timezone: str = "Asia/Seoul"
    max_batch_qty: int = 1
    open_dow: tuple[bool, ...] | None = None  # Sunday first, as stored remotely

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def business_day_minutes(self) -> int:
        anchor = datetime(2000, 1, 1)
        delta = datetime.combine(anchor, self.close_time) - datetime.combine(anchor, self.open_time)
        return int(delta.total_seconds() // 60)

    @property
    def lift_capacity(self) -> int:
        return max(1, self.capacity)

    def clamp_quantity(self, quantity: int) -> int:
        upper = max(1, self.max_batch_qty)
        return min(upper, max(1, int(quantity)))

    @staticmethod
    def from_row(row: dict[str, Any], default_timezone: str = "Asia/Seoul") -> "OperatingSettings":
        open_dow = row.get("open_dow")
        return OperatingSettings(
            open_time=parse_time_of_day(row.get("open_time") or "09:00"),
            close_time=parse_time_of_day(row.get("close_time") or "18:00"),
            slot_minutes=int(row.get("slot_minutes") or 30),
            capacity=int(row.get("capacity") or 1),
            timezone=str(row.get("tz") or row.get("timezone") or default_timezone),
            max_batch_qty=int(row.get("max_batch_qty") or 1),
            open_dow=tuple(bool(x) for x in open_dow) if open_dow else None,
        )
