"""Candidate list endpoints.

GET  /            -- per-pool lists, overall order and counters.
GET  /ordem       -- the computed nomination order only.
POST /candidatos  -- register an approved candidate.
POST /ordem/recalcular -- recompute and persist positions (409 if running).
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from fastapi import APIRouter, HTTPException

from comissao.core.errors import ComissaoError
from comissao.models.candidate import Candidate, CandidateCreate
from comissao.models.listas import ListasResponse
from comissao.models.ordering import NominationOrder
from comissao.scheduler.lock import get_current_trigger, is_recompute_running
from comissao.services.nomination import (
    build_listas,
    create_candidate,
    get_nomination_order,
    recompute_nomination_order,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ListasResponse)
async def listas() -> ListasResponse:
    try:
        return build_listas()
    except ComissaoError:
        raise
    except Exception as exc:
        logger.error("load_listas_failed", extra={"error_message": str(exc)})
        raise HTTPException(
            status_code=500, detail=f"Failed to load candidate lists: {exc}"
        ) from exc


@router.get("/ordem", response_model=NominationOrder)
async def nomination_order() -> NominationOrder:
    try:
        return get_nomination_order()
    except ComissaoError:
        raise
    except Exception as exc:
        logger.error("load_order_failed", extra={"error_message": str(exc)})
        raise HTTPException(
            status_code=500, detail=f"Failed to compute nomination order: {exc}"
        ) from exc


@router.post("/candidatos", response_model=Candidate, status_code=201)
async def register_candidate(body: CandidateCreate) -> Candidate:
    return create_candidate(body)


@router.post("/ordem/recalcular", status_code=202)
async def trigger_recompute() -> dict[str, Any]:
    """Recompute positions in a background thread; 409 while one is running."""
    if is_recompute_running():
        raise HTTPException(
            status_code=409,
            detail="Order recomputation already in progress",
            headers={"X-Current-Trigger": get_current_trigger() or "unknown"},
        )

    def _run() -> None:
        try:
            recompute_nomination_order(trigger="manual")
        except Exception as exc:
            logger.error("manual_recompute_failed", extra={"error_message": str(exc)})

    thread = threading.Thread(target=_run, daemon=True)
    thread.start()

    return {"status": "started", "message": "Nomination order recomputation initiated"}
