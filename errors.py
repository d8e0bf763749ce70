"""
Booking errors and the handlers that report them over HTTP.

Every failure leaves the API as {"ok": false, "error": <message>, "code": <name>}
so the client can branch on a single boolean.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for every failure the booking core reports."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)

    def to_body(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message, "code": self.code}


class ValidationError(BookingError):
    """A field has the wrong format."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class LessonNotFound(NotFound):
    def __init__(self, lesson_id: str) -> None:
        super().__init__(f"Lesson {lesson_id} not found")
        self.lesson_id = lesson_id


class OrderNotFound(NotFound):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class LessonUnavailable(BookingError):
    """Add-to-cart refused: lesson missing or not enough spaces."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, lesson_id: str) -> None:
        super().__init__("Lesson not available or insufficient spaces")
        self.lesson_id = lesson_id


class InsufficientSpaces(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, lesson_id: str, available: int, requested: int) -> None:
        super().__init__(f"Not enough spaces for lesson {lesson_id}: have={available}, need={requested}")
        self.lesson_id = lesson_id
        self.available = available
        self.requested = requested


class Unauthorized(BookingError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Conflict(BookingError):
    status_code = status.HTTP_409_CONFLICT


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
        message = "Invalid request: " + ", ".join(f for f in fields if f) if any(fields) else "Invalid request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"ok": False, "error": message, "code": "ValidationError"},
        )
