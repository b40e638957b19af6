from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, TypeVar

import httpx

from shopdesk.application.exceptions import ConfigurationError, RemoteFailure
from shopdesk.application.ports.shop_backend import ShopBackendPort
from shopdesk.core.config import settings
from shopdesk.domain.entities.blocked_interval import BlockedInterval
from shopdesk.domain.entities.operating_settings import OperatingSettings
from shopdesk.domain.entities.reservation import Reservation

SETTINGS_TABLES = ("ops_settings", "business_settings")

T = TypeVar("T")


def _applied(data: Any) -> bool:
    # mutation functions that return void still succeeded
    return data if isinstance(data, bool) else True


class SupabaseBackend(ShopBackendPort):
    """PostgREST adapter: RPC functions under /rest/v1/rpc, tables under /rest/v1."""

    def __init__(
        self,
        base_url: str | None = None,
        anon_key: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        default_timezone: str | None = None,
    ) -> None:
        self._base_url = (base_url or settings.SUPABASE_URL or "").rstrip("/")
        self._anon_key = anon_key or settings.SUPABASE_ANON_KEY
        self._access_token = access_token or settings.SUPABASE_ACCESS_TOKEN
        self._default_timezone = default_timezone or settings.SHOP_TIMEZONE
        self._logger = logging.getLogger(__name__)

        if not self._base_url or not self._anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required for the Supabase backend")

        self._client = client or httpx.AsyncClient(timeout=timeout or settings.REMOTE_TIMEOUT_SECONDS)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._anon_key or "",
            "Authorization": f"Bearer {self._access_token or self._anon_key}",
            "Content-Type": "application/json",
        }

    async def _rpc(self, fn: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_url}/rest/v1/rpc/{fn}"
        try:
            response = await self._client.post(url, json=payload or {}, headers=self._headers())
        except httpx.HTTPError as e:
            self._logger.error("RPC transport error", extra={"rpc": fn, "error": str(e)})
            raise RemoteFailure(str(e) or "network error", rpc=fn) from e

        if response.status_code >= 400:
            message = self._error_message(response)
            self._logger.warning("RPC error", extra={"rpc": fn, "error": message})
            raise RemoteFailure(message, rpc=fn, status_code=response.status_code)

        if not response.content:
            return None
        return self._decode(response, fn)

    async def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        url = f"{self._base_url}/rest/v1/{table}"
        try:
            response = await self._client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            raise RemoteFailure(str(e) or "network error", rpc=table) from e
        if response.status_code >= 400:
            raise RemoteFailure(self._error_message(response), rpc=table, status_code=response.status_code)
        rows = self._decode(response, table)
        if rows is not None and not isinstance(rows, list):
            raise RemoteFailure(f"Unexpected response from {table}.", rpc=table)
        return rows or []

    def _decode(self, response: httpx.Response, fn: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            self._logger.warning("Unreadable response body", extra={"rpc": fn, "error": str(e)})
            raise RemoteFailure(f"Unreadable response from {fn}.", rpc=fn, status_code=response.status_code) from e

    def _parse_rows(self, data: Any, fn: str, parse: Callable[[dict[str, Any]], T]) -> list[T]:
        """Parse list results row by row; malformed rows are logged and skipped."""
        if data is None:
            return []
        if not isinstance(data, list):
            raise RemoteFailure(f"Unexpected response from {fn}.", rpc=fn)
        out: list[T] = []
        for row in data:
            try:
                out.append(parse(row))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                self._logger.warning("Skipping malformed row", extra={"rpc": fn, "error": str(e)})
        return out

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or body.get("hint") or body)
        return str(body)

    async def _rpc_with_fallback(self, primary: str, legacy: str, payload: dict[str, Any]) -> Any:
        try:
            return await self._rpc(primary, payload)
        except RemoteFailure:
            self._logger.info("Falling back to legacy RPC", extra={"rpc": legacy})
            return await self._rpc(legacy, payload)

    async def get_operating_settings(self) -> OperatingSettings:
        for table in SETTINGS_TABLES:
            try:
                rows = await self._select(table, {"select": "*", "id": "eq.1"})
            except RemoteFailure as e:
                self._logger.info("Settings table unavailable", extra={"rpc": table, "error": e.message})
                continue
            if rows:
                try:
                    return OperatingSettings.from_row(rows[0], default_timezone=self._default_timezone)
                except (AttributeError, TypeError, ValueError) as e:
                    raise ConfigurationError(f"Unreadable operating settings in {table}: {e}") from e
        raise ConfigurationError("Operating settings not found (ops_settings / business_settings, id=1).")

    async def list_reservations_by_date(self, day: date) -> list[Reservation]:
        data = await self._rpc_with_fallback(
            "admin_list_reservations_by_date_v2",
            "admin_list_reservations_by_date",
            {"slot_date": day.isoformat()},
        )
        return self._parse_rows(data, "admin_list_reservations_by_date", Reservation.from_row)

    async def list_reservations_by_range(self, start: date, end: date) -> list[Reservation]:
        data = await self._rpc_with_fallback(
            "admin_list_reservations_by_range_v2",
            "admin_list_reservations_by_range",
            {"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
        return self._parse_rows(data, "admin_list_reservations_by_range", Reservation.from_row)

    async def list_blocked_by_date(self, day: date) -> list[BlockedInterval]:
        data = await self._rpc("admin_list_blocked_times_by_date", {"slot_date": day.isoformat()})
        return self._parse_rows(data, "admin_list_blocked_times_by_date", BlockedInterval.from_row)

    async def list_staff(self) -> list[dict[str, str]]:
        data = await self._rpc("admin_list_admins")
        return self._parse_rows(
            data,
            "admin_list_admins",
            lambda row: {"user_id": str(row["user_id"]), "label": str(row.get("label") or row["user_id"])},
        )

    async def list_available_slots(self, day: date, service_item_id: str, quantity: int = 1) -> list[str]:
        payload: dict[str, Any] = {"slot_date": day.isoformat(), "service_item_id": service_item_id, "quantity": quantity}
        try:
            data = await self._rpc("get_available_slots", payload)
        except RemoteFailure as e:
            # older deployments name the argument req_qty
            if e.status_code != 404 and "not found" not in e.message.lower():
                raise
            payload.pop("quantity")
            payload["req_qty"] = quantity
            data = await self._rpc("get_available_slots", payload)

        out: list[str] = []
        for item in data or []:
            if isinstance(item, str):
                value = item
            elif isinstance(item, dict):
                value = item.get("slot_start") or item.get("start_at") or item.get("slotStart") or item.get("startAt")
            else:
                value = None
            if isinstance(value, str) and value.strip():
                out.append(value)
        return out

    async def reschedule_reservation(self, reservation_id: str, new_start: datetime) -> bool:
        data = await self._rpc(
            "admin_reschedule_reservation",
            {"res_id": reservation_id, "new_start": new_start.isoformat()},
        )
        if not data:
            raise RemoteFailure("Reschedule was not applied.", rpc="admin_reschedule_reservation")
        return True

    async def set_reservation_status(self, reservation_id: str, status: str) -> bool:
        data = await self._rpc("admin_set_reservation_status", {"res_id": reservation_id, "new_status": status})
        return _applied(data)

    async def assign_reservation(self, reservation_id: str, admin_id: str) -> bool:
        data = await self._rpc("admin_assign_reservation", {"res_id": reservation_id, "assignee_id": admin_id})
        return _applied(data)

    async def unassign_reservation(self, reservation_id: str) -> bool:
        data = await self._rpc("admin_unassign_reservation", {"res_id": reservation_id})
        return _applied(data)

    async def mark_reservation_completed(self, reservation_id: str) -> bool:
        try:
            data = await self._rpc("admin_mark_reservation_completed", {"res_id": reservation_id})
        except RemoteFailure:
            return await self.set_reservation_status(reservation_id, "completed")
        return _applied(data)

    async def delete_reservation(self, reservation_id: str) -> bool:
        data = await self._rpc("admin_delete_reservation", {"res_id": reservation_id})
        return _applied(data)

    async def create_blocked_interval(self, start_at: datetime, end_at: datetime, reason: str | None = None) -> str:
        data = await self._rpc(
            "admin_create_blocked_time",
            {"start_at": start_at.isoformat(), "end_at": end_at.isoformat(), "reason": reason},
        )
        return str(data)

    async def delete_blocked_interval(self, blocked_id: str) -> bool:
        data = await self._rpc("admin_delete_blocked_time", {"block_id": blocked_id})
        return bool(data)

    async def create_blocked_interval_with_shift(
        self,
        start_at: datetime,
        end_at: datetime,
        reason: str | None = None,
    ) -> tuple[str, int]:
        data = await self._rpc(
            "admin_create_blocked_time_with_shift",
            {"start_at": start_at.isoformat(), "end_at": end_at.isoformat(), "reason": reason},
        )
        data = data or {}
        return str(data.get("blocked_id")), int(data.get("shifted") or 0)

    async def restore_reservations_for_block(self, blocked_id: str) -> tuple[int, int]:
        data = await self._rpc("admin_restore_reservations_for_block", {"block_id": blocked_id})
        data = data or {}
        return int(data.get("restored") or 0), int(data.get("skipped") or 0)

    async def move_reservation(self, reservation_id: str, new_start: datetime) -> bool:
        data = await self._rpc(
            "admin_move_reservation",
            {"res_id": reservation_id, "new_start": new_start.isoformat()},
        )
        if not data:
            raise RemoteFailure("Move was not applied.", rpc="admin_move_reservation")
        return True

    async def block_day(self, day: date, reason: str | None = None) -> str:
        data = await self._rpc("block_day", {"slot_date": day.isoformat(), "reason": reason})
        return str(data)

    async def block_range(self, start_at: datetime, end_at: datetime, reason: str | None = None) -> str:
        data = await self._rpc(
            "block_range",
            {"start_at": start_at.isoformat(), "end_at": end_at.isoformat(), "reason": reason},
        )
        return str(data)

    async def create_reservation(
        self,
        slot_start: datetime,
        service_item_id: str,
        problem: str,
        insurance: bool = False,
        user_note: str | None = None,
        quantity: int = 1,
    ) -> str:
        data = await self._rpc(
            "create_reservation",
            {
                "slot_start": slot_start.isoformat(),
                "service_item_id": service_item_id,
                "problem": problem,
                "insurance": insurance,
                "user_note": user_note,
                "quantity": quantity,
            },
        )
        if not data:
            raise RemoteFailure("Reservation was not created.", rpc="create_reservation")
        return str(data)

    async def cancel_my_reservation(self, reservation_id: str) -> bool:
        data = await self._rpc("cancel_my_reservation", {"res_id": reservation_id})
        return bool(data)
