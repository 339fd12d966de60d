from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException


class ConfigurationError(RuntimeError):
    """Required credentials or settings are missing."""


class ProviderError(RuntimeError):
    """The summarization provider failed or returned something unusable."""


class MailNotConfiguredError(RuntimeError):
    pass


class MailDeliveryError(RuntimeError):
    pass


class ApiError(Exception):
    def __init__(
        self,
        status_code: int,
        error: str,
        message: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.details = details


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: Optional[str] = None
    details: Optional[Any] = None


def _render(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _validation_details(exc: RequestValidationError) -> List[Dict[str, str]]:
    details: List[Dict[str, str]] = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        details.append({"field": ".".join(loc), "message": str(err.get("msg", ""))})
    return details


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _handle_api_error(request: Request, exc: ApiError):  # type: ignore[unused-variable]
        return _render(
            exc.status_code,
            ErrorResponse(error=exc.error, message=exc.message, details=exc.details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_exception(request: Request, exc: StarletteHTTPException):  # type: ignore[unused-variable]
        return _render(exc.status_code, ErrorResponse(error=str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def _handle_validation(request: Request, exc: RequestValidationError):  # type: ignore[unused-variable]
        return _render(400, ErrorResponse(error="Validation failed", details=_validation_details(exc)))

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):  # type: ignore[unused-variable]
        logging.getLogger("app").exception("unhandled error on %s", request.url.path)
        return _render(500, ErrorResponse(error="internal error"))
