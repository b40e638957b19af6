from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from shopdesk.domain.entities.reservation import Reservation


@dataclass(frozen=True)
class Work:
    work_id: str
    start_at: datetime
    end_at: datetime
    status: str
    service_name: str
    service_names: tuple[str, ...]
    children: tuple[Reservation, ...]
    quantity: int = 1
    assigned_admin_id: str | None = None
    assigned_admin_label: str | None = None
    completed_at: datetime | None = None
    completed_admin_id: str | None = None
    completed_admin_label: str | None = None
    approximate: bool = False  # grouped by the legacy heuristic, not a root id

    @property
    def child_count(self) -> int:
        return len(self.children)
