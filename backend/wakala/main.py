import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from redis import Redis

from .config import settings
from .redis_client import get_redis
from .routers import (
    blocked_dates,
    bookings,
    day_specific_hours,
    services,
    slots,
    working_hours,
)
from .services.slots import (
    AlreadyClaimed,
    Blocked,
    ClosedDay,
    InvalidSelection,
    NotFound,
    PartialFailure,
    SlotError,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Wakala Booking API")

# ===== Routers =====
app.include_router(services.router)
app.include_router(working_hours.router)
app.include_router(day_specific_hours.router)
app.include_router(blocked_dates.router)
app.include_router(slots.router)
app.include_router(bookings.router)


# ===== Slot engine errors =====
ERROR_STATUS = {
    NotFound: 404,
    AlreadyClaimed: 409,
    Blocked: 409,
    ClosedDay: 409,
    InvalidSelection: 400,
    PartialFailure: 500,
}


@app.exception_handler(SlotError)
async def slot_error_handler(request: Request, exc: SlotError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/health")
def health(redis: Redis = Depends(get_redis)):
    return {"redis": redis.ping()}
