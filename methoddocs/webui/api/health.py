"""
Health API - service health status

GET /api/health - Get service health
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from methoddocs import __version__
from methoddocs.core.time import iso_z, utc_now
from methoddocs.store import MethodStore
from methoddocs.webui.api.methods import get_store

router = APIRouter()

_start_time = utc_now()


class HealthStatus(BaseModel):
    """Health status response"""
    status: str  # "ok" | "down"
    version: str
    timestamp: str
    uptime_seconds: float
    store: str


@router.get("/health")
def get_health(store: MethodStore = Depends(get_store)):
    """Report store reachability; 503 when the store is down"""
    now = utc_now()
    healthy = store.ping()
    body = HealthStatus(
        status="ok" if healthy else "down",
        version=__version__,
        timestamp=iso_z(now),
        uptime_seconds=(now - _start_time).total_seconds(),
        store=type(store).__name__,
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
