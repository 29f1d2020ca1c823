# gym_scheduler/errors.py
# Rules raise an AppError subclass where the violation is found; the handlers
# below turn those, and anything else escaping a route, into the envelope.
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that carry their own HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.data = data


class InvalidInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Overlapping time ranges. Reported as 400 like every other rule violation."""

    status_code = status.HTTP_400_BAD_REQUEST


class CapacityExceededError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


def error_response(status_code: int, message: str, data: Any = None, headers=None) -> JSONResponse:
    body = {"success": False, "statusCode": status_code, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def app_error_handler(request: Request, exc: AppError):
    return error_response(exc.status_code, exc.message, exc.data)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid data provided", fields)


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.info("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return error_response(status.HTTP_400_BAD_REQUEST, "A record with this value already exists")


async def no_result_handler(request: Request, exc: NoResultFound):
    return error_response(status.HTTP_404_NOT_FOUND, "Record not found")


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(NoResultFound, no_result_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
