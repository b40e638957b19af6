from __future__ import annotations

from datetime import date, timedelta, tzinfo
from typing import Iterable

from shopdesk.domain.entities.reservation import Reservation
from shopdesk.domain.entities.time_window import local_date
from shopdesk.domain.entities.work import Work

STATUS_PRIORITY = ("completed", "confirmed", "pending", "no_show", "canceled")

# legacy grouping guards
HEURISTIC_MIN_GROUP = 2
HEURISTIC_MAX_SPAN = timedelta(days=31)
HEURISTIC_MAX_GAP = timedelta(days=1)


def choose_work_status(children: Iterable[Reservation]) -> str:
    present = {r.status for r in children}
    for status in STATUS_PRIORITY:
        if status in present:
            return status
    return "pending"


def build_work(work_id: str, children: list[Reservation], approximate: bool = False) -> Work:
    ordered = sorted(children, key=lambda r: r.scheduled_at)
    first, last = ordered[0], ordered[-1]

    names: list[str] = []
    for r in ordered:
        name = r.service_name.strip()
        if name and name not in names:
            names.append(name)
    if len(names) <= 1:
        service_name = names[0] if names else (first.service_name or "Service")
    else:
        service_name = f"{names[0]} +{len(names) - 1}"

    assigned = next((r for r in reversed(ordered) if r.assigned_admin_id or r.assigned_admin_label), first)
    completed = [r for r in ordered if r.completed_at is not None]
    latest_done = max(completed, key=lambda r: r.completed_at) if completed else first

    return Work(
        work_id=work_id,
        start_at=first.scheduled_at,
        end_at=last.scheduled_at,
        status=choose_work_status(ordered),
        service_name=service_name,
        service_names=tuple(names),
        children=tuple(ordered),
        quantity=max([1] + [r.quantity for r in ordered]),
        assigned_admin_id=assigned.assigned_admin_id,
        assigned_admin_label=assigned.assigned_admin_label,
        completed_at=latest_done.completed_at,
        completed_admin_id=latest_done.completed_admin_id,
        completed_admin_label=latest_done.completed_admin_label,
        approximate=approximate,
    )


def _heuristic_runs(rows: list[Reservation], tz: tzinfo | None = None) -> list[list[Reservation]]:
    """
    Best-effort grouping for rows written before root ids existed.

    Same customer, car and service on consecutive days is treated as one job.
    This is approximate and can merge unrelated repeat visits. Days are
    counted in `tz` (the shop timezone) when given.
    """

    def day_of(r: Reservation) -> date:
        return local_date(r.scheduled_at, tz) if tz is not None else r.scheduled_at.date()

    buckets: dict[tuple, list[Reservation]] = {}
    for r in rows:
        key = (r.user_id, (r.car_model or "").strip().lower(), r.service_name.strip().lower())
        buckets.setdefault(key, []).append(r)

    runs: list[list[Reservation]] = []
    for key, bucket in buckets.items():
        if key[0] is None:
            runs.extend([r] for r in bucket)
            continue
        bucket.sort(key=lambda r: r.scheduled_at)
        current = [bucket[0]]
        for r in bucket[1:]:
            gap = day_of(r) - day_of(current[-1])
            span = r.scheduled_at - current[0].scheduled_at
            if gap <= HEURISTIC_MAX_GAP and span <= HEURISTIC_MAX_SPAN:
                current.append(r)
            else:
                runs.append(current)
                current = [r]
        runs.append(current)
    return runs


def group_to_works(
    rows: Iterable[Reservation],
    allow_heuristic: bool = True,
    tz: tzinfo | None = None,
) -> list[Work]:
    """Group day-chunks into works, newest work first."""
    by_root: dict[str, list[Reservation]] = {}
    orphans: list[Reservation] = []
    for r in rows:
        if r.root_reservation_id:
            by_root.setdefault(r.root_reservation_id, []).append(r)
        else:
            orphans.append(r)

    works = [build_work(work_id, children) for work_id, children in by_root.items()]

    if allow_heuristic:
        for run in _heuristic_runs(orphans, tz):
            if len(run) >= HEURISTIC_MIN_GROUP:
                works.append(build_work(run[0].reservation_id, run, approximate=True))
            else:
                works.extend(build_work(r.reservation_id, [r]) for r in run)
    else:
        works.extend(build_work(r.reservation_id, [r]) for r in orphans)

    works.sort(key=lambda w: w.end_at, reverse=True)
    return works
