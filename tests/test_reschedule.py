"""
Tests for conflict-aware rescheduling from the admin schedule view.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import time, timedelta

import pytest

from shopdesk.application.use_cases.reschedule import CALENDAR_SOURCE, MoveProposal, RescheduleState, RescheduleUseCase
from shopdesk.application.use_cases.schedule_board import ScheduleBoard
from shopdesk.infrastructure.backend.memory_backend import InMemoryShopBackend


async def _setup(shop_settings, reservations=(), blocked=(), day=None):
    backend = InMemoryShopBackend(operating_settings=shop_settings, reservations=reservations, blocked=blocked)
    board = ScheduleBoard(backend)
    await board.refresh(day or reservations[0].scheduled_at.date())
    return backend, board, RescheduleUseCase(backend, board)


@pytest.mark.asyncio
async def test_capacity_example(shop_settings, at, make_reservation):
    """One lift busy 10:00-11:00: a 30-minute job can't drop at 10:30 but can at 11:00."""
    existing = make_reservation(at(10), 60, reservation_id="existing")
    moving = make_reservation(at(14), 30, reservation_id="moving")
    backend, board, uc = await _setup(shop_settings, [existing, moving])

    rejected = await uc.validate_and_reschedule(moving, at(10, 30))
    assert rejected.state == RescheduleState.REJECTED_CAPACITY
    assert rejected.max_concurrent == 1
    assert backend.calls_to("reschedule_reservation") == []

    accepted = await uc.validate_and_reschedule(moving, at(11))
    assert accepted.state == RescheduleState.COMMITTED
    assert backend.calls_to("reschedule_reservation") == [("moving", at(11))]


@pytest.mark.asyncio
async def test_outside_business_hours_is_rejected(shop_settings, at, make_reservation):
    job = make_reservation(at(10), 60)
    backend, board, uc = await _setup(shop_settings, [job])

    late = await uc.validate_and_reschedule(job, at(17, 30))
    early = await uc.validate_and_reschedule(job, at(8, 30))

    assert late.state == RescheduleState.REJECTED_BUSINESS_HOURS
    assert late.reason == "outside_business_hours"
    assert early.state == RescheduleState.REJECTED_BUSINESS_HOURS
    assert backend.calls_to("reschedule_reservation") == []


@pytest.mark.asyncio
async def test_partial_block_overlap_is_rejected(shop_settings, at, make_reservation, make_block):
    job = make_reservation(at(9), 60)
    block = make_block(at(13, 45), at(14, 15), "parts delivery")
    backend, board, uc = await _setup(shop_settings, [job], [block])

    result = await uc.validate_and_reschedule(job, at(13))

    assert result.state == RescheduleState.REJECTED_BLOCKED
    assert "blocked" in result.message
    assert backend.calls_to("reschedule_reservation") == []


@pytest.mark.asyncio
async def test_multi_day_jobs_are_not_movable(shop_settings, at, make_reservation):
    job = make_reservation(at(9), 2880)
    backend, board, uc = await _setup(shop_settings, [job])

    result = await uc.validate_and_reschedule(job, at(9, on=at(9).date() + timedelta(days=1)))

    assert result.state == RescheduleState.REJECTED_BUSINESS_HOURS
    assert result.reason == "multi_day_not_movable"
    assert backend.calls_to("reschedule_reservation") == []


@pytest.mark.asyncio
async def test_full_workday_job_must_start_at_opening(shop_settings, at, make_reservation):
    job = make_reservation(at(9), 540)
    other_day = at(9).date() + timedelta(days=1)
    backend, board, uc = await _setup(shop_settings, [job])

    shifted = await uc.validate_and_reschedule(job, at(9, 30, on=other_day))
    assert shifted.reason == "workday_must_start_at_open"

    moved = await uc.validate_and_reschedule(job, at(9, on=other_day))
    assert moved.state == RescheduleState.COMMITTED


@pytest.mark.asyncio
async def test_remote_failure_is_reported_verbatim(shop_settings, at, make_reservation):
    job = make_reservation(at(10), 60)
    backend, board, uc = await _setup(shop_settings, [job])
    backend.fail("reschedule_reservation", "slot is full (server check)")

    result = await uc.validate_and_reschedule(job, at(15))

    assert result.state == RescheduleState.FAILED
    assert result.message == "slot is full (server check)"
    assert len(backend.calls_to("reschedule_reservation")) == 1
    assert board.snapshot.find(job.reservation_id).scheduled_at == at(10)


@pytest.mark.asyncio
async def test_commit_refreshes_the_snapshot(shop_settings, at, make_reservation):
    job = make_reservation(at(10), 60)
    backend, board, uc = await _setup(shop_settings, [job])
    generation = board.generation

    result = await uc.validate_and_reschedule(job, at(15))

    assert result.snapshot is not None
    assert board.generation == generation + 1
    assert board.snapshot.find(job.reservation_id).scheduled_at == at(15)


@pytest.mark.asyncio
async def test_second_lift_allows_overlap(shop_settings, at, make_reservation):
    existing = make_reservation(at(10), 60)
    moving = make_reservation(at(15), 60)
    backend, board, uc = await _setup(replace(shop_settings, capacity=2), [existing, moving])

    result = await uc.validate_and_reschedule(moving, at(10, 30))

    assert result.state == RescheduleState.COMMITTED
    assert result.max_concurrent == 1


@pytest.mark.asyncio
async def test_propose_move_to_another_day_keeps_time(shop_settings, at, make_reservation):
    job = make_reservation(at(11), 60, reservation_id="job")
    target = at(11).date() + timedelta(days=2)
    backend, board, uc = await _setup(shop_settings, [job])

    result = await uc.propose_move(MoveProposal(reservation_id="job", target_date=target))

    assert result.state == RescheduleState.COMMITTED
    assert backend.reservations["job"].scheduled_at == at(11, on=target)


@pytest.mark.asyncio
async def test_propose_move_with_explicit_slot(shop_settings, at, make_reservation):
    job = make_reservation(at(11), 60, reservation_id="job")
    backend, board, uc = await _setup(shop_settings, [job])

    result = await uc.propose_move(MoveProposal("job", at(11).date(), time(16, 0)))

    assert result.ok
    assert backend.reservations["job"].scheduled_at == at(16)


@pytest.mark.asyncio
async def test_propose_move_unknown_reservation(shop_settings, at, make_reservation):
    backend, board, uc = await _setup(shop_settings, [make_reservation(at(11), 60)])

    result = await uc.propose_move(MoveProposal("missing", at(11).date(), time(12, 0)))

    assert result.state == RescheduleState.REJECTED_NOT_FOUND
    assert backend.calls_to("reschedule_reservation") == []


@pytest.mark.asyncio
async def test_naive_candidate_is_read_as_shop_time(shop_settings, at, make_reservation):
    job = make_reservation(at(10), 60)
    backend, board, uc = await _setup(shop_settings, [job])

    result = uc.validate(job, at(15).replace(tzinfo=None), board.snapshot)

    assert result.state == RescheduleState.ACCEPTED
    assert result.candidate.start == at(15)


@pytest.mark.asyncio
async def test_calendar_move_uses_the_move_function(shop_settings, at, make_reservation):
    """Month-view date-to-date moves go through the calendar move call, not the day reschedule."""
    job = make_reservation(at(11), 60, reservation_id="job")
    target = at(11).date() + timedelta(days=1)
    backend, board, uc = await _setup(shop_settings, [job])

    result = await uc.propose_move(MoveProposal("job", target, source=CALENDAR_SOURCE))

    assert result.state == RescheduleState.COMMITTED
    assert backend.calls_to("move_reservation") == [("job", at(11, on=target))]
    assert backend.calls_to("reschedule_reservation") == []


@pytest.mark.asyncio
async def test_calendar_move_is_still_validated(shop_settings, at, make_reservation, make_block):
    job = make_reservation(at(11), 60, reservation_id="job")
    target = at(11).date() + timedelta(days=1)
    block = make_block(at(10, on=target), at(12, on=target), "holiday prep")
    backend, board, uc = await _setup(shop_settings, [job], [block])

    result = await uc.propose_move(MoveProposal("job", target, source=CALENDAR_SOURCE))

    assert result.state == RescheduleState.REJECTED_BLOCKED
    assert backend.calls_to("move_reservation") == []
