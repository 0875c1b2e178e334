"""
errors.py
=========
One error shape for the whole API: ``{"error", "detail", "timestamp"}``.

Routers raise ``ServiceError``; FastAPI's own ``HTTPException`` (404 for an
unknown route, 405, …) is rendered the same way.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.schemas.response import ErrorResponse


class ServiceError(Exception):
    def __init__(self, status_code: int, error: str, detail: Optional[str] = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.detail = detail


def _render(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return _render(exc.status_code, exc.error, exc.detail)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _render(exc.status_code, str(exc.detail))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return _render(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid request", problems)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
