from __future__ import annotations

import logging
from datetime import date, datetime

from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.domain.entities.time_window import parse_timestamp


class AvailableSlotsUseCase:
    def __init__(self, backend: ShopBackendPort) -> None:
        self._backend = backend
        self._logger = logging.getLogger(__name__)

    async def execute(self, day: date, service_item_id: str, quantity: int = 1) -> list[datetime]:
        settings = await self._backend.get_operating_settings()
        qty = settings.clamp_quantity(quantity)
        raw = await self._backend.list_available_slots(day, service_item_id, qty)

        slots: list[datetime] = []
        for value in raw:
            try:
                slot = parse_timestamp(value)
            except ValueError:
                self._logger.warning("Skipping unparseable slot", extra={"date": day.isoformat(), "reason": value})
                continue
            if slot is not None and slot not in slots:
                slots.append(slot)
        return slots
