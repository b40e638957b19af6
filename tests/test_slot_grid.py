"""
Tests for the admin day grid.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import time, timedelta

from shopdesk.application.use_cases.slot_grid import build_slot_grid, filter_assigned_to


def test_grid_covers_business_hours_without_gaps(day, shop_settings):
    """09:00-18:00 in 30-minute steps gives 18 contiguous rows."""
    rows = build_slot_grid(day, shop_settings, [], [])

    assert len(rows) == 18
    assert rows[0].window.start.time() == time(9, 0)
    assert rows[-1].window.end.time() == time(18, 0)
    for row in rows:
        assert row.window.end - row.window.start == timedelta(minutes=30)
    for prev, nxt in zip(rows, rows[1:]):
        assert prev.window.end == nxt.window.start


def test_partial_trailing_slot_is_dropped(day, shop_settings):
    settings = replace(shop_settings, close_time=time(17, 45))
    rows = build_slot_grid(day, settings, [], [])

    assert len(rows) == 17
    assert rows[-1].window.end.time() == time(17, 30)


def test_misconfigured_hours_give_empty_grid(day, shop_settings):
    assert build_slot_grid(day, replace(shop_settings, close_time=time(9, 0)), [], []) == []
    assert build_slot_grid(day, replace(shop_settings, close_time=time(8, 0)), [], []) == []
    assert build_slot_grid(day, replace(shop_settings, slot_minutes=0), [], []) == []


def test_reservation_attached_to_overlapping_rows_only(day, shop_settings, at, make_reservation):
    """A 10:00-11:00 job fills the 10:00 and 10:30 rows; 11:00 is free (half-open)."""
    job = make_reservation(at(10), 60)
    rows = {row.window.start.time(): row for row in build_slot_grid(day, shop_settings, [], [job])}

    assert rows[time(10, 0)].reservations == (job,)
    assert rows[time(10, 30)].reservations == (job,)
    assert rows[time(11, 0)].reservations == ()
    assert rows[time(9, 30)].reservations == ()


def test_first_overlapping_block_wins(day, shop_settings, at, make_block):
    lunch = make_block(at(12), at(13), "lunch")
    inspection = make_block(at(12, 30), at(14), "inspection")
    rows = {row.window.start.time(): row for row in build_slot_grid(day, shop_settings, [lunch, inspection], [])}

    assert rows[time(12, 0)].blocked == lunch
    assert rows[time(12, 30)].blocked == lunch
    assert rows[time(13, 0)].blocked == inspection
    assert rows[time(14, 0)].blocked is None


def test_day_based_reservation_fills_every_row(day, shop_settings, at, make_reservation):
    """A two-day job booked at midnight still occupies the whole business day."""
    job = make_reservation(at(0), 2880)
    rows = build_slot_grid(day, shop_settings, [], [job])

    assert all(row.reservations == (job,) for row in rows)

    next_day_rows = build_slot_grid(day + timedelta(days=1), shop_settings, [], [job])
    assert all(row.reservations == (job,) for row in next_day_rows)


def test_only_mine_filter(at, make_reservation):
    mine = make_reservation(at(9), assigned_admin_id="staff-1")
    other = make_reservation(at(10), assigned_admin_id="staff-2")
    unassigned = make_reservation(at(11))

    assert filter_assigned_to([mine, other, unassigned], "staff-1") == [mine]
    assert filter_assigned_to([mine, other, unassigned], None) == [mine, other, unassigned]
