"""Models for the nomination-order engine.

``ReservationPattern`` is the injectable description of a quota law: which
positions are reserved for which pool, and where a position goes when its
preferred pool has nobody left.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from comissao.models.candidate import Candidate
from comissao.models.enums import Pool


class ReservationRule(BaseModel):
    """Reserve ``anchors`` and every ``step``-th position after the last anchor.

    ``ReservationRule(pool=Pool.race_reserved, anchors=(3, 8), step=5)`` matches
    3, 8, 13, 18, ...
    """
    model_config = ConfigDict(frozen=True)

    pool: Pool
    anchors: tuple[int, ...] = Field(min_length=1)
    step: int = Field(gt=0)

    def matches(self, position: int) -> bool:
        if position in self.anchors:
            return True
        last = max(self.anchors)
        return position > last and (position - last) % self.step == 0


class ReservationPattern(BaseModel):
    """Rules evaluated in priority order; the first match wins."""
    model_config = ConfigDict(frozen=True)

    rules: tuple[ReservationRule, ...]
    default_pool: Pool = Pool.open
    fallbacks: dict[Pool, tuple[Pool, ...]]

    def preferred_pool(self, position: int) -> Pool:
        for rule in self.rules:
            if rule.matches(position):
                return rule.pool
        return self.default_pool

    def fallback_order(self, preferred: Pool) -> tuple[Pool, ...]:
        return self.fallbacks.get(preferred, (preferred,))


class PoolSnapshot(BaseModel):
    """Read-only view of every pool, each ordered by rank ascending."""
    pools: dict[Pool, list[Candidate]] = {}

    @classmethod
    def from_candidates(cls, candidates: list[Candidate]) -> PoolSnapshot:
        """Group candidates by pool, keeping insertion order for equal ranks."""
        pools: dict[Pool, list[Candidate]] = {pool: [] for pool in Pool}
        for candidate in candidates:
            pools[candidate.pool].append(candidate)
        for pool, members in pools.items():
            pools[pool] = sorted(members, key=rank_sort_key)
        return cls(pools=pools)

    def members(self, pool: Pool) -> list[Candidate]:
        return self.pools.get(pool, [])

    @property
    def total(self) -> int:
        return sum(len(members) for members in self.pools.values())


def rank_sort_key(candidate: Candidate) -> tuple[int, int]:
    """Ascending rank, candidates without a rank last."""
    if candidate.pool_rank is None:
        return (1, 0)
    return (0, candidate.pool_rank)


class OrderEntry(BaseModel):
    position: int
    candidate_id: UUID
    name: str
    pool: Pool
    pool_rank: int | None = None
    preferred_pool: Pool  # pool the position was reserved for

    @property
    def is_fallback(self) -> bool:
        return self.pool != self.preferred_pool


class NominationOrder(BaseModel):
    """Canonical nomination sequence; positions are 1-based and gapless."""
    entries: list[OrderEntry] = []

    def positions(self) -> dict[UUID, int]:
        return {entry.candidate_id: entry.position for entry in self.entries}

    def __len__(self) -> int:
        return len(self.entries)
