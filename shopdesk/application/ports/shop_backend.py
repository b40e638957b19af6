from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime

from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import Reservation


class ShopBackendPort(ABC):
    """Remote backend owning reservations, blocked times and operating settings."""

    @abstractmethod
    async def get_operating_settings(self) -> OperatingSettings:
        raise NotImplementedError

    @abstractmethod
    async def list_reservations_by_date(self, day: date) -> list[Reservation]:
        """Reservations overlapping the given shop-local date."""
        raise NotImplementedError

    @abstractmethod
    async def list_reservations_by_range(self, start: date, end: date) -> list[Reservation]:
        raise NotImplementedError

    @abstractmethod
    async def list_blocked_by_date(self, day: date) -> list[BlockedInterval]:
        raise NotImplementedError

    @abstractmethod
    async def list_staff(self) -> list[dict[str, str]]:
        """Assignable staff as {"user_id", "label"} rows."""
        raise NotImplementedError

    @abstractmethod
    async def list_available_slots(self, day: date, service_item_id: str, quantity: int = 1) -> list[str]:
        """Raw slot start strings as returned by the remote slot function."""
        raise NotImplementedError

    @abstractmethod
    async def reschedule_reservation(self, reservation_id: str, new_start: datetime) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def set_reservation_status(self, reservation_id: str, status: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def assign_reservation(self, reservation_id: str, admin_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def unassign_reservation(self, reservation_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def mark_reservation_completed(self, reservation_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete_reservation(self, reservation_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def create_blocked_interval(self, start_at: datetime, end_at: datetime, reason: str | None = None) -> str:
        """Returns the new blocked interval id."""
        raise NotImplementedError

    @abstractmethod
    async def delete_blocked_interval(self, blocked_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def create_blocked_interval_with_shift(
        self,
        start_at: datetime,
        end_at: datetime,
        reason: str | None = None,
    ) -> tuple[str, int]:
        """Block a window and let the remote side push overlapping reservations. Returns (id, shifted)."""
        raise NotImplementedError

    @abstractmethod
    async def restore_reservations_for_block(self, blocked_id: str) -> tuple[int, int]:
        """Undo a shifting block. Returns (restored, skipped)."""
        raise NotImplementedError

    @abstractmethod
    async def move_reservation(self, reservation_id: str, new_start: datetime) -> bool:
        """Date-to-date move from the month calendar."""
        raise NotImplementedError

    @abstractmethod
    async def block_day(self, day: date, reason: str | None = None) -> str:
        """Block a whole shop-local date. Returns the new blocked interval id."""
        raise NotImplementedError

    @abstractmethod
    async def block_range(self, start_at: datetime, end_at: datetime, reason: str | None = None) -> str:
        raise NotImplementedError

    @abstractmethod
    async def create_reservation(
        self,
        slot_start: datetime,
        service_item_id: str,
        problem: str,
        insurance: bool = False,
        user_note: str | None = None,
        quantity: int = 1,
    ) -> str:
        """Customer booking of an offered slot. Returns the new reservation id."""
        raise NotImplementedError

    @abstractmethod
    async def cancel_my_reservation(self, reservation_id: str) -> bool:
        raise NotImplementedError
