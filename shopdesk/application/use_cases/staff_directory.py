from __future__ import annotations

from shopdesk.application.ports.shop_backend import ShopBackendPort


class StaffDirectoryUseCase:
    """Assignable staff for the assignee picker, ordered by label."""

    def __init__(self, backend: ShopBackendPort) -> None:
        self._backend = backend

    async def execute(self) -> list[dict[str, str]]:
        staff = await self._backend.list_staff()
        return sorted(staff, key=lambda s: (s["label"].lower(), s["user_id"]))
