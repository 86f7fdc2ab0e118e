"""
FastAPI Application - methoddocs API

create_app() assembles the service around one explicitly constructed
gateway. The gateway is opened in the lifespan (an unreachable store aborts
startup) and closed at shutdown. Handlers reach it through app.state.store.

Run with:
    methoddocs serve
    uvicorn --factory methoddocs.webui.app:create_app
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from methoddocs import __version__
from methoddocs.config import Settings, load_settings
from methoddocs.store import MethodStore, build_store
from methoddocs.webui.api import health, methods
from methoddocs.webui.api.error_envelope import register_error_handlers
from methoddocs.webui.middleware.json_validation import add_json_validation_middleware
from methoddocs.webui.middleware.request_id import add_request_id_middleware

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MethodStore] = None,
) -> FastAPI:
    """
    Build the API application

    Args:
        settings: Loaded settings (read from file/environment when omitted)
        store: Gateway to serve; built from settings when omitted

    Returns:
        FastAPI application
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        gateway = store if store is not None else build_store(settings)
        gateway.open()
        app.state.store = gateway
        logger.info(f"methoddocs API ready ({type(gateway).__name__})")
        try:
            yield
        finally:
            gateway.close()
            logger.info("methoddocs API stopped")

    app = FastAPI(
        title="methoddocs",
        description="Documentation catalog for JavaScript built-in methods",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware runs in reverse registration order; CORS is outermost
    add_json_validation_middleware(app)
    add_request_id_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_error_handlers(app)

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(methods.router, prefix="/api/methods", tags=["methods"])

    return app
