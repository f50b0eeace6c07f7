"""FastAPI application entry point.

Configures CORS, structured logging, lifespan events (including APScheduler),
the domain error handler and router registration.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from comissao.core.config import settings
from comissao.core.errors import ComissaoError
from comissao.core.logging import setup_logging
from comissao.routers import aprovados, comissao, health, listas
from comissao.scheduler.jobs import shutdown_scheduler, start_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: starts APScheduler on startup, stops it on exit."""
    setup_logging()
    logger.info("Application starting up")
    start_scheduler()
    yield
    shutdown_scheduler()
    logger.info("Application shutting down")


app = FastAPI(
    title="Comissão de Aprovados API",
    description="Ordem de nomeação por cotas e moderação de TDs e outras aprovações",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ComissaoError)
async def comissao_error_handler(request: Request, exc: ComissaoError) -> JSONResponse:
    logger.info(
        "request_rejected",
        extra={
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error_message": exc.message,
        },
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ---------------------------------------------------------------------------
# CORS Configuration
# ---------------------------------------------------------------------------
_raw_origins = settings.ALLOWED_ORIGINS.strip()
if _raw_origins == "*":
    _allowed_origins: list[str] = ["*"]
else:
    _allowed_origins = [o.strip() for o in _raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Router Registration
# ---------------------------------------------------------------------------
app.include_router(health.router, tags=["Health"])
app.include_router(listas.router, prefix="/api/v1/listas", tags=["Listas"])
app.include_router(comissao.router, prefix="/api/v1/comissao", tags=["Comissao"])
app.include_router(aprovados.router, prefix="/api/v1/aprovados", tags=["Aprovados"])
