from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from shopdesk.domain.entities.time_window import TimeWindow, parse_timestamp


@dataclass(frozen=True)
class BlockedInterval:
    blocked_id: str
    start_at: datetime
    end_at: datetime
    reason: str | None = None
    created_by: str | None = None

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(start=self.start_at, end=self.end_at)

    @staticmethod
    def from_row(row: dict[str, Any]) -> "BlockedInterval":
        start_at = parse_timestamp(row.get("start_at"))
        end_at = parse_timestamp(row.get("end_at"))
        if start_at is None or end_at is None:
            raise ValueError(f"blocked time {row.get('id')} is missing start_at/end_at")
        return BlockedInterval(
            blocked_id=str(row["id"]),
            start_at=start_at,
            end_at=end_at,
            reason=row.get("reason"),
            created_by=row.get("created_by"),
        )
