"""
API Error Envelope - Unified error response format

Every error response has the same structure:
{
    "ok": false,
    "error_code": "VALIDATION_ERROR",
    "message": "Validation failed: name is required",
    "details": {...},
    "timestamp": "2026-01-31T12:34:56.789012Z"
}

Store errors are translated by store_error_to_api_error(), which covers the
whole MethodStoreError hierarchy. 500 responses never carry internal detail.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from methoddocs.core.methods.errors import (
    DuplicateKey,
    MalformedId,
    MethodStoreError,
    NotFound,
    ValidationFailed,
)
from methoddocs.core.time import iso_z, utc_now
from methoddocs.webui.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server error"


def _format_timestamp() -> str:
    return iso_z(utc_now())


class ErrorEnvelope:
    """Unified error response envelope"""

    @staticmethod
    def format_error(
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Format an error response with consistent structure

        Args:
            error_code: Machine-readable error code (e.g., "VALIDATION_ERROR", "NOT_FOUND")
            message: Human-readable error message
            details: Additional error details (optional)

        Returns:
            Standardized error response dictionary
        """
        return {
            "ok": False,
            "error_code": error_code,
            "message": message,
            "details": details or {},
            "timestamp": _format_timestamp(),
        }


class APIError:
    """
    Client-visible error: envelope fields plus HTTP status

    Example:
        return APIError(
            error_code="NOT_FOUND",
            message="Method not found",
            details={"id": "01J..."},
            status_code=404
        )
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400
    ):
        self.error_code = error_code
        self.message = message
        self.details = details
        self.status_code = status_code

    def to_response(self) -> JSONResponse:
        """Convert to JSONResponse"""
        return JSONResponse(
            status_code=self.status_code,
            content=ErrorEnvelope.format_error(
                error_code=self.error_code,
                message=self.message,
                details=self.details,
            )
        )


def store_error_to_api_error(exc: MethodStoreError) -> APIError:
    """
    Map a gateway failure to its client-visible error

    ValidationFailed, DuplicateKey -> 400
    NotFound, MalformedId -> 404
    Unavailable and anything else -> 500 (generic message)
    """
    if isinstance(exc, ValidationFailed):
        return APIError(
            "VALIDATION_ERROR",
            str(exc),
            {"errors": [e.to_dict() for e in exc.errors]},
            status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, DuplicateKey):
        return APIError(
            "DUPLICATE_KEY",
            "A method with this name already exists",
            {"field": "name", "name": exc.name},
            status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, MalformedId):
        return APIError(
            "INVALID_ID",
            "Invalid method id",
            {"id": exc.method_id, "hint": "Method ids are 26-character ULIDs"},
            status.HTTP_404_NOT_FOUND,
        )
    if isinstance(exc, NotFound):
        return APIError(
            "NOT_FOUND",
            "Method not found",
            {"id": exc.method_id},
            status.HTTP_404_NOT_FOUND,
        )
    # Unavailable and unknown subclasses look the same to clients
    return APIError("INTERNAL_ERROR", GENERIC_SERVER_ERROR, None, status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_error_handlers(app: FastAPI) -> None:
    """
    Register global error handlers for consistent error responses

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(MethodStoreError)
    async def store_error_handler(request: Request, exc: MethodStoreError):
        api_error = store_error_to_api_error(exc)
        if api_error.status_code >= 500:
            logger.error(
                f"[{get_request_id(request)}] Store failure on {request.method} {request.url.path}: {exc}",
                exc_info=exc
            )
        else:
            logger.warning(
                f"[{get_request_id(request)}] {type(exc).__name__} on {request.method} {request.url.path}: {exc}"
            )
        return api_error.to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed request shapes are validation failures (400), same as store-side ones"""
        formatted_errors = []
        for error in exc.errors():
            formatted_errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "rule": "type",
                "message": error["msg"],
            })

        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {formatted_errors}"
        )

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorEnvelope.format_error(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                details={"errors": formatted_errors},
            )
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unmatched routes (404), wrong verbs (405) and explicit HTTPExceptions"""
        error_code_map = {
            400: "BAD_REQUEST",
            404: "NOT_FOUND",
            405: "METHOD_NOT_ALLOWED",
            500: "INTERNAL_ERROR",
            503: "SERVICE_UNAVAILABLE",
        }
        error_code = error_code_map.get(exc.status_code, "HTTP_ERROR")

        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route not found: {request.method} {request.url.path}"
        else:
            message = str(exc.detail) if exc.detail else "An error occurred"

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorEnvelope.format_error(error_code=error_code, message=message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all boundary: log everything, reveal nothing"""
        logger.error(
            f"[{get_request_id(request)}] Unhandled exception on {request.method} {request.url.path}",
            exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorEnvelope.format_error(
                error_code="INTERNAL_ERROR",
                message=GENERIC_SERVER_ERROR,
            )
        )

    logger.info("Registered unified error handlers")
