import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, configure_logging, load_settings
from database import close_db, create_engine, create_session_factory, get_session, init_db
from errors import BookingError
from schemas import ApiResponse, ErrorResponse, ViolationOut, violations_from
from service import BookingService
from store import SQLBookingStore

logger = logging.getLogger("bookings.http")


def get_booking_service(session: AsyncSession = Depends(get_session)) -> BookingService:
    return BookingService(SQLBookingStore(session))


def error_response(request: Request, status_code: int, message: str, errors=None) -> JSONResponse:
    request.state.error_message = message
    body = ErrorResponse(
        error=message,
        errors=[ViolationOut(field=v.field, message=v.message) for v in errors] if errors else None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Connect once at startup, close gracefully on shutdown
        engine = create_engine(settings.database_url, echo=settings.sql_echo)
        await init_db(engine)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        try:
            yield
        finally:
            await close_db(engine)

    app = FastAPI(title="Restaurant Booking API", lifespan=lifespan)
    app.state.settings = settings

    # --- Request logging ---
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        if logger.isEnabledFor(logging.DEBUG):
            body = await request.body()
            logger.debug("%s %s body: %s", request.method, request.url.path, body.decode("utf-8", "replace"))
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        error_message = getattr(request.state, "error_message", "")
        logger.info(
            "%s %s %s %.1f ms%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            f" - {error_message}" if error_message else "",
        )
        return response

    # --- Error envelopes ---
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        return error_response(request, exc.status_code, exc.message, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        violations = violations_from(exc)
        return error_response(request, status.HTTP_400_BAD_REQUEST, "Invalid request data.", violations)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "404 Not Found" if exc.status_code == 404 else str(exc.detail)
        return error_response(request, exc.status_code, message)

    # --- Endpoint: GET /bookings ---
    @app.get("/bookings", response_model=ApiResponse, response_model_exclude_none=True)
    async def list_bookings(service: BookingService = Depends(get_booking_service)):
        bookings = await service.list_bookings()
        return ApiResponse(
            message=None if bookings else "No bookings found.",
            count=len(bookings),
            data=[booking.model_dump() for booking in bookings],
        )

    # --- Endpoint: GET /bookings/{id} ---
    @app.get("/bookings/{booking_id}", response_model=ApiResponse, response_model_exclude_none=True)
    async def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
        booking = await service.get_booking(booking_id)
        return ApiResponse(data=booking.model_dump())

    # --- Endpoint: POST /bookings ---
    @app.post(
        "/bookings",
        status_code=status.HTTP_201_CREATED,
        response_model=ApiResponse,
        response_model_exclude_none=True,
    )
    async def create_booking(
        payload: Any = Body(default=None),
        service: BookingService = Depends(get_booking_service),
    ):
        booking = await service.create_booking(payload)
        return ApiResponse(message="Booking created successfully.", data=booking.model_dump())

    # --- Endpoint: PATCH /bookings/{id} ---
    @app.patch("/bookings/{booking_id}", response_model=ApiResponse, response_model_exclude_none=True)
    async def update_booking(
        booking_id: str,
        payload: Any = Body(default=None),
        service: BookingService = Depends(get_booking_service),
    ):
        booking = await service.update_booking(booking_id, payload)
        return ApiResponse(message="Booking updated successfully.", data=booking.model_dump())

    # --- Endpoint: DELETE /bookings/{id} ---
    @app.delete("/bookings/{booking_id}", response_model=ApiResponse, response_model_exclude_none=True)
    async def delete_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
        await service.delete_booking(booking_id)
        return ApiResponse(message="Booking deleted successfully.")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host=app.state.settings.host, port=app.state.settings.port)
