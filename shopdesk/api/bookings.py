from __future__ import annotations

from fastapi import APIRouter, Depends

from shopdesk.api.schedule import remote_error
from shopdesk.api.schemas import BookingCreateSchema, BookingResponseSchema
from shopdesk.application.exceptions import ConfigurationError, RemoteFailure
from shopdesk.application.use_cases.booking import BookingRequest, BookingResult, BookingUseCase
from shopdesk.wiring.dependencies import get_booking_use_case

router = APIRouter()


def _respond(result: BookingResult) -> BookingResponseSchema:
    return BookingResponseSchema(ok=result.ok, message=result.message, reservation_id=result.reservation_id)


@router.post("/bookings", response_model=BookingResponseSchema)
async def create_booking(
    req: BookingCreateSchema,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        result = await uc.book(
            BookingRequest(
                slot_start=req.slot_start,
                service_item_id=req.service_item_id,
                problem=req.problem,
                insurance=req.insurance,
                user_note=req.user_note,
                quantity=req.quantity,
            )
        )
    except (RemoteFailure, ConfigurationError) as e:
        raise remote_error(e)
    return _respond(result)


@router.post("/bookings/{reservation_id}/cancel", response_model=BookingResponseSchema)
async def cancel_booking(
    reservation_id: str,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    return _respond(await uc.cancel(reservation_id))
