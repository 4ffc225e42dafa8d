from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Type

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class FinHubError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(FinHubError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidInput(FinHubError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidAmount(InvalidInput):
    pass


class InternalFailure(FinHubError):
    pass


@contextmanager
def store_errors(message: str, error: Type[FinHubError] = InternalFailure) -> Iterator[None]:
    """
    Re-raise database errors from the wrapped block as ``error(message)``.

    Reads keep the default 500; writes pass ``InvalidInput`` to answer 400.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.warning("%s: %s", message, exc)
        raise error(message) from exc


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(item) for item in err.get("loc", ()) if item != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FinHubError)
    async def handle_finhub_error(request: Request, exc: FinHubError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _describe_validation_error(exc))

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
