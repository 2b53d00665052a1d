"""
Application error taxonomy and the handlers that render it.

``ApiError`` subclasses are expected outcomes and are rendered as
``{"message": ...}`` with their own status code.  Anything raised by the
database or the session store is a store failure: it is logged with its
traceback and returned as a 500.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from technews.config import settings

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "No user found with this id"
UNKNOWN_EMAIL = "No user with that email address! "
INCORRECT_PASSWORD = "Incorrect Password!"


class ApiError(Exception):
    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFound(ApiError):
    status_code = 404


class InvalidCredentials(ApiError):
    status_code = 400


def store_error_payload(exc: Exception) -> dict:
    """Return the 500 body for a store failure, honouring EXPOSE_STORE_ERRORS."""
    if not settings.EXPOSE_STORE_ERRORS:
        return {"message": "Internal server error"}
    # DBAPIError wraps the driver exception in ``orig``.
    original = getattr(exc, "orig", None) or exc
    return {"name": type(exc).__name__, "message": str(original)}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=store_error_payload(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(RedisError, store_error_handler)
