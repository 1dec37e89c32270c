import logging
from contextlib import asynccontextmanager
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from salon_booking.core.config import Settings
from salon_booking.core.errors import BookingError
from salon_booking.database import Database
from salon_booking.routers import booking, booking_settings, business_hours, services
from salon_booking.services.notifications import EmailNotifier

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # menos ruído de bibliotecas de terceiros
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    database = Database(
        settings.database_url,
        slow_query_threshold=settings.db_slow_query_threshold,
        pool_recycle=settings.db_pool_recycle,
    )
    timezone = ZoneInfo(settings.business_timezone)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting up...")
        database.create_db_and_tables()
        yield
        logger.info("Application shutting down...")
        database.dispose()

    app = FastAPI(title="Salon Booking API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.timezone = timezone
    app.state.notifier = EmailNotifier(
        api_key=settings.resend_api_key,
        sender_email=settings.site_email,
        tz=timezone,
    )

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.kind}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "internal"})

    app.include_router(services.router)
    app.include_router(booking.router)
    app.include_router(business_hours.router)
    app.include_router(booking_settings.router)

    @app.get("/")
    def root():
        return {"message": "Salon Booking API"}

    return app


app = create_app()
