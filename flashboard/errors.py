from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class FlashboardError(Exception):
    """Base error carrying the HTTP status and the message shown to callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FlashboardError):
    status_code = 400


class NotFoundOrDenied(FlashboardError):
    """The entity does not exist or belongs to another device.

    Both cases share one error so callers cannot probe for other devices' ids.
    """

    status_code = 404


class StoreError(FlashboardError):
    status_code = 500

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message)


def json_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _field_name(loc: tuple) -> str:
    # loc looks like ("body", "title") or ("header", "x-device-id")
    names = [str(part) for part in loc if part not in ("body", "query", "path", "header")]
    return names[0] if names else "body"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FlashboardError)
    async def _flashboard_error(request: Request, exc: FlashboardError) -> JSONResponse:
        return json_error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        field = _field_name(tuple(errors[0].get("loc", ()))) if errors else "body"
        return json_error(400, f"Missing or invalid {field}")

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("store error on %s %s", request.method, request.url.path)
        return json_error(500, StoreError().message)
