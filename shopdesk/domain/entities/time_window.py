from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime  # exclusive

    def overlaps(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeWindow") -> bool:
        return self.start <= other.start and other.end <= self.end

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    @staticmethod
    def starting_at(start: datetime, minutes: int) -> "TimeWindow":
        return TimeWindow(start=start, end=start + timedelta(minutes=minutes))


def normalize_iso_like(value: str) -> str:
    """
    Normalize Postgres-style timestamps into something fromisoformat accepts.

    "2026-01-05 04:46:04.969548+00" -> "2026-01-05T04:46:04.969548+00:00"
    """
    text = (value or "").strip()
    if not text:
        return text
    if " " in text and "T" not in text:
        text = text.replace(" ", "T", 1)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = re.sub(r"([+-]\d{2})$", r"\1:00", text)
    text = re.sub(r"([+-]\d{2})(\d{2})$", r"\1:\2", text)
    return text


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        normalized = normalize_iso_like(str(value))
        if not normalized:
            return None
        parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        # remote timestamptz columns are UTC when the offset is missing
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def at_local(day: date, at: time, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, at, tzinfo=tz)


def local_date(instant: datetime, tz: ZoneInfo) -> date:
    return instant.astimezone(tz).date()
