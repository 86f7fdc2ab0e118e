"""
JSON Validation Middleware

Requests with a JSON content type and an unparseable body (including NaN,
Infinity, bad UTF-8) are rejected with 400 before they reach a route, so
they never surface as a 500.
"""

import json
import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from methoddocs.webui.api.error_envelope import ErrorEnvelope

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


class JSONValidationMiddleware(BaseHTTPMiddleware):
    """Validate JSON payloads in POST/PUT/PATCH requests"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method in BODY_METHODS:
            content_type = request.headers.get("content-type", "")

            if "application/json" in content_type.lower():
                body = await request.body()

                if body:
                    try:
                        json.loads(body.decode("utf-8"), parse_constant=_reject_constant)
                    except UnicodeDecodeError:
                        logger.warning(f"Invalid UTF-8 encoding in {request.method} {request.url.path}")
                        return JSONResponse(
                            status_code=400,
                            content=ErrorEnvelope.format_error(
                                error_code="INVALID_ENCODING",
                                message="Invalid UTF-8 encoding in request body",
                                details={"hint": "Request body must be valid UTF-8 encoded text"},
                            )
                        )
                    except json.JSONDecodeError as e:
                        logger.warning(f"Invalid JSON in {request.method} {request.url.path}: {e}")
                        return JSONResponse(
                            status_code=400,
                            content=ErrorEnvelope.format_error(
                                error_code="INVALID_JSON",
                                message="Invalid JSON in request body",
                                details={
                                    "hint": f"JSON parsing error at line {e.lineno}, column {e.colno}: {e.msg}",
                                    "line": e.lineno,
                                    "column": e.colno,
                                },
                            )
                        )
                    except ValueError as e:
                        logger.warning(f"Invalid JSON in {request.method} {request.url.path}: {e}")
                        return JSONResponse(
                            status_code=400,
                            content=ErrorEnvelope.format_error(
                                error_code="INVALID_JSON",
                                message="Invalid JSON in request body",
                                details={"hint": str(e)},
                            )
                        )

        return await call_next(request)


def add_json_validation_middleware(app: FastAPI) -> None:
    """
    Add JSON validation middleware to the FastAPI application

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(JSONValidationMiddleware)
    logger.info("JSON validation middleware enabled")
