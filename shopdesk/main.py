import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from shopdesk.api.bookings import router as bookings_router
from shopdesk.api.reservations import router as reservations_router
from shopdesk.api.schedule import router as schedule_router
from shopdesk.core.config import settings
from shopdesk.infrastructure.backend.supabase_backend import SupabaseBackend
from shopdesk.wiring.dependencies import get_backend

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("reservation_id", "date", "rpc", "generation", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if get_backend.cache_info().currsize:
        backend = get_backend()
        if isinstance(backend, SupabaseBackend):
            await backend.aclose()


app = FastAPI(title="Shop Schedule Desk", version="1.0.0", lifespan=lifespan)

app.include_router(schedule_router, tags=["schedule"])
app.include_router(reservations_router, tags=["reservations"])
app.include_router(bookings_router, tags=["bookings"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
