"""Nomination order service.

Reads the candidate pools, runs the order engine and persists the derived
``ordem_nomeacao_base`` column; also builds the per-pool listings shown on
``/listas`` and registers candidates and nomination acts.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from uuid import UUID

from comissao.core.constants import DEFAULT_RESERVATION_PATTERN, NOTIFICATION_KIND_NOMINATION
from comissao.core.errors import CandidateNotFound, PoolRankError
from comissao.db.stores import (
    CandidateStore,
    NotificationQueue,
    SupabaseCandidateStore,
)
from comissao.models.candidate import Candidate, CandidateCreate, NominationCreate
from comissao.models.enums import NominationState, Pool, WaiverStatus
from comissao.models.listas import ListasResponse, ListasTotals, PoolTotals
from comissao.models.notification import NotificationCreate
from comissao.models.ordering import NominationOrder, PoolSnapshot, ReservationPattern
from comissao.scheduler.lock import acquire_order_lock, release_order_lock
from comissao.services.ordering import compute_order, validate_snapshot

logger = logging.getLogger(__name__)


def load_snapshot(store: CandidateStore | None = None) -> PoolSnapshot:
    """Read every candidate and validate the ranks before ordering."""
    store = store or SupabaseCandidateStore()
    snapshot = PoolSnapshot.from_candidates(store.list_all())
    validate_snapshot(snapshot)
    return snapshot


def get_nomination_order(
    store: CandidateStore | None = None,
    pattern: ReservationPattern = DEFAULT_RESERVATION_PATTERN,
) -> NominationOrder:
    return compute_order(load_snapshot(store), pattern)


def _pool_totals(members: list[Candidate]) -> PoolTotals:
    return PoolTotals(
        approved=len(members),
        nominated=sum(1 for c in members if c.nomination_state == NominationState.nominated),
        waivers_confirmed=sum(1 for c in members if c.waiver_status == WaiverStatus.confirmed),
    )


def build_listas(store: CandidateStore | None = None) -> ListasResponse:
    """Overall order plus one ranked list and counters per pool."""
    snapshot = load_snapshot(store)
    order = compute_order(snapshot)
    everyone = [c for members in snapshot.pools.values() for c in members]

    return ListasResponse(
        order=order.entries,
        open=snapshot.members(Pool.open),
        disability=snapshot.members(Pool.disability),
        race_reserved=snapshot.members(Pool.race_reserved),
        indigenous=snapshot.members(Pool.indigenous),
        totals=ListasTotals(
            overall=_pool_totals(everyone),
            open=_pool_totals(snapshot.members(Pool.open)),
            disability=_pool_totals(snapshot.members(Pool.disability)),
            race_reserved=_pool_totals(snapshot.members(Pool.race_reserved)),
            indigenous=_pool_totals(snapshot.members(Pool.indigenous)),
        ),
    )


def persist_order(store: CandidateStore, snapshot: PoolSnapshot, order: NominationOrder) -> int:
    """Write positions that differ from the stored ones; return how many changed."""
    positions = order.positions()
    changed = 0
    for members in snapshot.pools.values():
        for candidate in members:
            position = positions.get(candidate.id)
            if candidate.nomination_position == position:
                continue
            store.update_nomination_position(candidate.id, position)
            changed += 1
    return changed


def recompute_nomination_order(
    trigger: str = "scheduler",
    store: CandidateStore | None = None,
) -> dict[str, Any]:
    """Recompute and persist the order unless a recomputation is running."""
    if not acquire_order_lock(trigger):
        logger.warning(
            "Order recomputation already running, skipping",
            extra={"trigger": trigger},
        )
        return {"status": "skipped", "reason": "recompute_already_running"}

    start_time = time.time()
    try:
        store = store or SupabaseCandidateStore()
        snapshot = load_snapshot(store)
        order = compute_order(snapshot)
        changed = persist_order(store, snapshot, order)
        duration = round(time.time() - start_time, 2)

        logger.info(
            "nomination_order_recomputed",
            extra={
                "trigger": trigger,
                "candidates": len(order),
                "changed": changed,
                "duration_seconds": duration,
            },
        )
        return {
            "status": "success",
            "candidates": len(order),
            "changed": changed,
            "duration_seconds": duration,
        }
    finally:
        release_order_lock()


def create_candidate(
    payload: CandidateCreate, store: CandidateStore | None = None
) -> Candidate:
    """Register an approved candidate; (pool, rank) must be free."""
    store = store or SupabaseCandidateStore()
    taken = {c.pool_rank for c in store.list_by_pool(payload.pool)}
    if payload.pool_rank in taken:
        raise PoolRankError(
            f"Já existe aprovado na classificação {payload.pool_rank} em {payload.pool.value}."
        )
    candidate = store.insert(payload)
    logger.info(
        "candidate_created",
        extra={
            "candidate_id": str(candidate.id),
            "pool": payload.pool.value,
            "pool_rank": payload.pool_rank,
        },
    )
    return candidate


def register_nomination(
    payload: NominationCreate,
    moderator_id: UUID,
    store: CandidateStore | None = None,
    queue: NotificationQueue | None = None,
) -> UUID:
    """Publish a nomination act for one candidate and flag them as nominated."""
    store = store or SupabaseCandidateStore()
    if store.get(payload.candidate_id) is None:
        raise CandidateNotFound(f"Aprovado {payload.candidate_id} não encontrado.")

    nomination_id = store.record_nomination(payload, moderator_id)
    logger.info(
        "nomination_registered",
        extra={
            "nomination_id": str(nomination_id),
            "candidate_id": str(payload.candidate_id),
            "moderator_id": str(moderator_id),
        },
    )

    if payload.notify and queue is not None:
        try:
            queue.enqueue(
                NotificationCreate(
                    title="Nova nomeação publicada",
                    body="Atualizamos a lista de nomeados.",
                    kind=NOTIFICATION_KIND_NOMINATION,
                    metadata={
                        "nomeacaoId": str(nomination_id),
                        "candidateId": str(payload.candidate_id),
                    },
                )
            )
        except Exception as exc:
            logger.warning(
                "notification_enqueue_failed",
                extra={"kind": NOTIFICATION_KIND_NOMINATION, "error_message": str(exc)},
            )

    return nomination_id
