"""
Request ID Middleware - request tracing

Every response carries X-Request-ID: the client's value when supplied,
otherwise a generated one. Handlers read it from request.state.request_id.
"""

import logging
import uuid

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Inject X-Request-ID into request state and response headers"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        logger.debug(
            f"[{request_id}] {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.debug(f"[{request_id}] Response: {response.status_code}")
        return response


def add_request_id_middleware(app: FastAPI) -> None:
    """Register RequestIDMiddleware with FastAPI app"""
    app.add_middleware(RequestIDMiddleware)


def get_request_id(request: Request) -> str:
    """Request ID from request state, or "unknown" if not set"""
    return getattr(request.state, "request_id", "unknown")
