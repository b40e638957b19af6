from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from shopdesk.application.exceptions import RemoteFailure
from shopdesk.application.ports.shop_backend import ShopBackendPort


@dataclass(frozen=True)
class BookingRequest:
    slot_start: datetime
    service_item_id: str
    problem: str
    insurance: bool = False
    user_note: str | None = None
    quantity: int = 1


@dataclass(frozen=True)
class BookingResult:
    ok: bool
    message: str = ""
    reservation_id: str | None = None


class BookingUseCase:
    """Customer side: book an offered slot or cancel one's own reservation."""

    def __init__(self, backend: ShopBackendPort) -> None:
        self._backend = backend
        self._logger = logging.getLogger(__name__)

    async def book(self, request: BookingRequest) -> BookingResult:
        if not request.problem.strip():
            return BookingResult(ok=False, message="Describe the problem before booking.")

        settings = await self._backend.get_operating_settings()
        slot_start = request.slot_start
        if slot_start.tzinfo is None:
            slot_start = slot_start.replace(tzinfo=settings.tzinfo)
        quantity = settings.clamp_quantity(request.quantity)

        try:
            reservation_id = await self._backend.create_reservation(
                slot_start,
                request.service_item_id,
                request.problem.strip(),
                insurance=request.insurance,
                user_note=request.user_note or None,
                quantity=quantity,
            )
        except RemoteFailure as e:
            self._logger.warning(
                "Booking failed remotely",
                extra={"date": slot_start.isoformat(), "error": e.message},
            )
            return BookingResult(ok=False, message=e.message)

        self._logger.info(
            "Reservation booked",
            extra={"reservation_id": reservation_id, "date": slot_start.isoformat()},
        )
        return BookingResult(ok=True, reservation_id=reservation_id)

    async def cancel(self, reservation_id: str) -> BookingResult:
        try:
            cancelled = await self._backend.cancel_my_reservation(reservation_id)
        except RemoteFailure as e:
            self._logger.warning("Cancel failed remotely", extra={"reservation_id": reservation_id, "error": e.message})
            return BookingResult(ok=False, message=e.message, reservation_id=reservation_id)
        if not cancelled:
            return BookingResult(ok=False, message="Reservation could not be cancelled.", reservation_id=reservation_id)
        self._logger.info("Reservation cancelled", extra={"reservation_id": reservation_id})
        return BookingResult(ok=True, reservation_id=reservation_id)
