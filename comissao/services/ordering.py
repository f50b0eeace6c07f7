"""Quota-interleaved nomination order engine.

``compute_order`` is a pure function: given a snapshot of the four pools and a
reservation pattern it returns the single canonical nomination sequence.  For
each position the pattern names a preferred pool; the next candidate (by
rank) is drawn from it, or from the first non-empty pool in that pool's
fallback list once it is exhausted.

``validate_snapshot`` is the ingestion check that must pass before the engine
runs; the engine itself never fails.
"""

from __future__ import annotations

import logging
from collections import deque

from comissao.core.constants import DEFAULT_RESERVATION_PATTERN
from comissao.core.errors import PoolRankError
from comissao.models.candidate import Candidate
from comissao.models.enums import Pool
from comissao.models.ordering import (
    NominationOrder,
    OrderEntry,
    PoolSnapshot,
    ReservationPattern,
    rank_sort_key,
)

logger = logging.getLogger(__name__)


def validate_snapshot(snapshot: PoolSnapshot) -> None:
    """Reject ranks the engine cannot order meaningfully.

    Raises ``PoolRankError`` for a non-positive rank, a rank used twice within
    one pool, or a candidate listed under a pool other than its own.
    """
    for pool, members in snapshot.pools.items():
        seen: dict[int, Candidate] = {}
        for candidate in members:
            if candidate.pool != pool:
                raise PoolRankError(
                    f"Candidato {candidate.id} ({candidate.pool.value}) "
                    f"listado em {pool.value}"
                )
            rank = candidate.pool_rank
            if rank is None:
                continue
            if rank <= 0:
                raise PoolRankError(
                    f"Classificação inválida ({rank}) para {candidate.id} em {pool.value}"
                )
            if rank in seen:
                raise PoolRankError(
                    f"Classificação {rank} repetida em {pool.value}: "
                    f"{seen[rank].id} e {candidate.id}"
                )
            seen[rank] = candidate


def compute_order(
    snapshot: PoolSnapshot,
    pattern: ReservationPattern = DEFAULT_RESERVATION_PATTERN,
) -> NominationOrder:
    """Interleave the pools into one nomination order.

    Positions run from 1 to the total number of candidates, so every
    candidate is drawn exactly once.
    """
    queues: dict[Pool, deque[Candidate]] = {
        pool: deque(sorted(snapshot.members(pool), key=rank_sort_key))
        for pool in Pool
    }
    total = sum(len(queue) for queue in queues.values())

    entries: list[OrderEntry] = []
    for position in range(1, total + 1):
        preferred = pattern.preferred_pool(position)
        source = next(
            (pool for pool in pattern.fallback_order(preferred) if queues[pool]),
            None,
        )
        if source is None:
            # unreachable while total equals the sum of pool sizes, unless the
            # fallback table leaves a pool out
            logger.error(
                "nomination_position_unassigned",
                extra={"position": position, "preferred_pool": preferred.value},
            )
            if __debug__:
                raise AssertionError(
                    f"no candidate available for nomination position {position}"
                )
            continue

        candidate = queues[source].popleft()
        entries.append(
            OrderEntry(
                position=position,
                candidate_id=candidate.id,
                name=candidate.name,
                pool=candidate.pool,
                pool_rank=candidate.pool_rank,
                preferred_pool=preferred,
            )
        )

    return NominationOrder(entries=entries)


def preferred_pools(
    count: int, pattern: ReservationPattern = DEFAULT_RESERVATION_PATTERN
) -> list[Pool]:
    """Preferred pool of positions ``1..count``, ignoring pool sizes."""
    return [pattern.preferred_pool(position) for position in range(1, count + 1)]
