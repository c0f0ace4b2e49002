"""
Error envelope handlers.

Every failure renders as ``{"success": false, "error": {"code", "message",
"details"}}`` with the HTTP status of the error kind.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException, RepositoryException

logger = logging.getLogger(__name__)


def _code_from_status(status_code: int) -> str:
    mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "UNAUTHORIZED",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "BAD_REQUEST",
        502: "PROVIDER_ERROR",
        504: "PROVIDER_TIMEOUT",
    }
    return mapping.get(status_code, "INTERNAL")


def error_envelope(
    code: str, message: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": jsonable_encoder(details or {}),
        },
    }


def _parse_detail(detail: Any, status_code: int) -> Dict[str, Any]:
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message") or detail.get("detail")
        details = detail.get("details") if isinstance(detail.get("details"), dict) else {}
        return error_envelope(
            code or _code_from_status(status_code),
            message if isinstance(message, str) else "Request failed",
            details,
        )
    message = detail if isinstance(detail, str) and detail else "Request failed"
    return error_envelope(_code_from_status(status_code), message)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            error_envelope(exc.code, exc.message, exc.details), status_code=exc.status_code
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            _parse_detail(exc.detail, exc.status_code),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            error_envelope(
                "BAD_REQUEST",
                "Request validation failed",
                {"errors": [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]},
            ),
            status_code=400,
        )

    @app.exception_handler(RepositoryException)
    async def repository_exception_handler(
        request: Request, exc: RepositoryException
    ) -> JSONResponse:
        logger.error(f"Repository error on {request.url.path}: {exc}")
        return JSONResponse(
            error_envelope("INTERNAL", "An error occurred processing your request"),
            status_code=500,
        )
