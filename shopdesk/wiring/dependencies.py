from functools import lru_cache
import logging

from fastapi import Depends

from shopdesk.core.config import settings
from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.application.use_cases.available_slots import AvailableSlotsUseCase
from shopdesk.application.use_cases.booking import BookingUseCase
from shopdesk.application.use_cases.reschedule import RescheduleUseCase
from shopdesk.application.use_cases.reservation_actions import ReservationActionsUseCase
from shopdesk.application.use_cases.schedule_board import ScheduleBoard
from shopdesk.application.use_cases.staff_directory import StaffDirectoryUseCase
from shopdesk.infrastructure.backend.memory_backend import InMemoryShopBackend
from shopdesk.infrastructure.backend.supabase_backend import SupabaseBackend


def _backend_provider() -> str:
    if settings.BACKEND_PROVIDER:
        return settings.BACKEND_PROVIDER.lower()
    if settings.SUPABASE_URL and settings.SUPABASE_ANON_KEY and settings.ENV.lower() not in {"dev", "local"}:
        return "supabase"
    return "memory"


@lru_cache
def get_backend() -> ShopBackendPort:
    """Built once per process; main.py closes it on shutdown."""
    logger = logging.getLogger(__name__)
    provider = _backend_provider()
    logger.info("Using %s backend (ENV=%s)", provider, settings.ENV)
    if provider == "supabase":
        return SupabaseBackend()
    return InMemoryShopBackend()


# A board lives for one request, so the use cases below share it through
# FastAPI's per-request dependency cache.
def get_schedule_board(backend: ShopBackendPort = Depends(get_backend)) -> ScheduleBoard:
    return ScheduleBoard(backend=backend)


def get_reschedule_use_case(
    backend: ShopBackendPort = Depends(get_backend),
    board: ScheduleBoard = Depends(get_schedule_board),
) -> RescheduleUseCase:
    return RescheduleUseCase(backend=backend, board=board)


def get_reservation_actions_use_case(
    backend: ShopBackendPort = Depends(get_backend),
    board: ScheduleBoard = Depends(get_schedule_board),
) -> ReservationActionsUseCase:
    return ReservationActionsUseCase(backend=backend, board=board)


def get_available_slots_use_case(backend: ShopBackendPort = Depends(get_backend)) -> AvailableSlotsUseCase:
    return AvailableSlotsUseCase(backend=backend)


def get_booking_use_case(backend: ShopBackendPort = Depends(get_backend)) -> BookingUseCase:
    return BookingUseCase(backend=backend)


def get_staff_directory_use_case(backend: ShopBackendPort = Depends(get_backend)) -> StaffDirectoryUseCase:
    return StaffDirectoryUseCase(backend=backend)
