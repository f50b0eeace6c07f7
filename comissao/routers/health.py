"""Health check endpoint.

Returns service status including database connectivity and scheduler state.
"""

import logging
from typing import Any

from fastapi import APIRouter
from starlette.responses import JSONResponse

from comissao.db.supabase import get_supabase
from comissao.scheduler.jobs import is_scheduler_running
from comissao.scheduler.lock import is_recompute_running

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> Any:
    """Return health status with a real Supabase connectivity test.

    Returns 200 OK when healthy, 503 when the database is down.
    """
    db_status = "disconnected"

    try:
        client = get_supabase()
        result = client.table("candidates").select("id").limit(1).execute()
        if result is not None:
            db_status = "connected"
    except Exception:
        logger.warning("Health check: Supabase connection failed", exc_info=True)

    payload: dict[str, Any] = {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "scheduler": "running" if is_scheduler_running() else "stopped",
        "order_recompute_running": is_recompute_running(),
    }

    if db_status != "connected":
        return JSONResponse(status_code=503, content=payload)

    return payload
