"""
Tests for multi-day (workdays) reservation windows.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from shopdesk.application.use_cases.day_window import effective_window, resolve_day_based_window


def test_three_day_job_spans_open_to_close(at, day, shop_settings, make_reservation):
    job = make_reservation(at(9), 3 * 1440)
    window = resolve_day_based_window(job, shop_settings)

    assert window.start == at(9)
    assert window.end == at(18, on=day + timedelta(days=3))


def test_base_date_uses_shop_timezone(shop_settings, make_reservation, at):
    """20:00 UTC on the 9th is 05:00 on the 10th in Seoul."""
    job = make_reservation(datetime(2026, 3, 9, 20, 0, tzinfo=timezone.utc), 1440)
    window = resolve_day_based_window(job, shop_settings)

    assert window.start == at(9)


def test_minute_based_reservation_is_refused(shop_settings, make_reservation, at):
    with pytest.raises(ValueError):
        resolve_day_based_window(make_reservation(at(10), 90), shop_settings)


def test_effective_window_gates_on_day_based(shop_settings, make_reservation, at):
    short = make_reservation(at(10), 90)
    long = make_reservation(at(10), 2880)

    assert effective_window(short, shop_settings).end == at(11, 30)
    assert effective_window(long, shop_settings).start == at(9)
    assert effective_window(long, None).start == at(10)


def test_day_based_predicate():
    from shopdesk.domain.entities.reservation import is_day_based

    assert is_day_based(1440)
    assert is_day_based(4320)
    assert not is_day_based(0)
    assert not is_day_based(540)
    assert not is_day_based(1500)
