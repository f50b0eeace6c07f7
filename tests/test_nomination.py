"""Unit tests for the nomination order service and the recompute lock."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from comissao.core.errors import CandidateNotFound, PoolRankError
from comissao.models.candidate import CandidateCreate, NominationCreate
from comissao.models.enums import NominationState, Pool, WaiverStatus
from comissao.scheduler.lock import (
    acquire_order_lock,
    get_current_trigger,
    is_recompute_running,
    release_order_lock,
)
from comissao.services.nomination import (
    build_listas,
    create_candidate,
    get_nomination_order,
    recompute_nomination_order,
    register_nomination,
)

from conftest import InMemoryCandidateStore, InMemoryNotificationQueue, make_candidate


@pytest.fixture()
def populated_store() -> InMemoryCandidateStore:
    store = InMemoryCandidateStore()
    for rank in (1, 2, 3, 4):
        store.add(make_candidate(Pool.open, rank))
    store.add(make_candidate(Pool.race_reserved, 1))
    store.add(
        make_candidate(
            Pool.disability,
            1,
            nomination_state=NominationState.nominated,
            waiver_status=WaiverStatus.confirmed,
        )
    )
    return store


class TestListas:
    def test_order_and_pools(self, populated_store) -> None:
        listas = build_listas(populated_store)

        assert len(listas.order) == 6
        assert [c.pool_rank for c in listas.open] == [1, 2, 3, 4]
        assert listas.order[2].pool == Pool.race_reserved
        assert listas.order[4].pool == Pool.disability
        assert listas.indigenous == []

    def test_totals(self, populated_store) -> None:
        totals = build_listas(populated_store).totals

        assert totals.overall.approved == 6
        assert totals.overall.nominated == 1
        assert totals.disability.waivers_confirmed == 1
        assert totals.open.nominated == 0

    def test_duplicate_rank_blocks_ordering(self) -> None:
        store = InMemoryCandidateStore(
            [make_candidate(Pool.open, 1), make_candidate(Pool.open, 1)]
        )

        with pytest.raises(PoolRankError):
            get_nomination_order(store)


class TestRecompute:
    def test_persists_only_changed_positions(self, populated_store) -> None:
        first = recompute_nomination_order(trigger="manual", store=populated_store)
        writes_after_first = populated_store.position_writes
        second = recompute_nomination_order(trigger="manual", store=populated_store)

        assert first["status"] == "success"
        assert first["changed"] == 6
        assert second["changed"] == 0
        assert populated_store.position_writes == writes_after_first
        positions = sorted(c.nomination_position for c in populated_store.list_all())
        assert positions == [1, 2, 3, 4, 5, 6]

    def test_skipped_while_another_run_holds_the_lock(self, populated_store) -> None:
        try:
            assert acquire_order_lock("scheduler") is True
            result = recompute_nomination_order(trigger="manual", store=populated_store)
        finally:
            release_order_lock()

        assert result == {"status": "skipped", "reason": "recompute_already_running"}
        assert populated_store.position_writes == 0

    def test_lock_released_after_failure(self) -> None:
        store = InMemoryCandidateStore(
            [make_candidate(Pool.open, 2), make_candidate(Pool.open, 2)]
        )

        with pytest.raises(PoolRankError):
            recompute_nomination_order(store=store)

        assert is_recompute_running() is False


class TestOrderLock:
    def test_acquire_and_release(self) -> None:
        assert acquire_order_lock("manual") is True
        assert is_recompute_running() is True
        assert get_current_trigger() == "manual"

        release_order_lock()
        assert is_recompute_running() is False
        assert get_current_trigger() is None

    def test_second_acquire_fails(self) -> None:
        try:
            assert acquire_order_lock("scheduler") is True
            assert acquire_order_lock("manual") is False
            assert get_current_trigger() == "scheduler"
        finally:
            release_order_lock()

    def test_release_when_not_held_is_safe(self) -> None:
        release_order_lock()
        release_order_lock()

        assert is_recompute_running() is False


class TestCreateCandidate:
    def test_creates_with_unique_code(self, candidate_store) -> None:
        candidate = create_candidate(
            CandidateCreate(name="Rita", pool=Pool.indigenous, pool_rank=3), candidate_store
        )

        assert candidate.unique_code == "IND3"
        assert candidate_store.get(candidate.id) is not None

    def test_taken_rank_rejected(self, candidate_store) -> None:
        candidate_store.add(make_candidate(Pool.open, 5))

        with pytest.raises(PoolRankError):
            create_candidate(
                CandidateCreate(name="Rita", pool=Pool.open, pool_rank=5), candidate_store
            )


class TestRegisterNomination:
    def _payload(self, candidate_id, notify: bool = False) -> NominationCreate:
        return NominationCreate(
            candidate_id=candidate_id,
            nominated_on=datetime(2025, 6, 2, tzinfo=timezone.utc),
            act_number="Portaria 123/2025",
            notify=notify,
        )

    def test_flags_candidate_as_nominated(self, candidate_store, candidate) -> None:
        nomination_id = register_nomination(
            self._payload(candidate.id), uuid4(), store=candidate_store
        )

        assert candidate_store.get(candidate.id).nomination_state == NominationState.nominated
        assert candidate_store.nominations[0][0] == nomination_id

    def test_notification_failure_is_swallowed(self, candidate_store, candidate) -> None:
        queue = InMemoryNotificationQueue()
        queue.fail = True

        register_nomination(
            self._payload(candidate.id, notify=True), uuid4(), store=candidate_store, queue=queue
        )

        assert candidate_store.get(candidate.id).nomination_state == NominationState.nominated

    def test_notification_enqueued(self, candidate_store, candidate) -> None:
        queue = InMemoryNotificationQueue()

        register_nomination(
            self._payload(candidate.id, notify=True), uuid4(), store=candidate_store, queue=queue
        )

        [entry] = queue.entries.values()
        assert entry.kind == "NOMEACAO"

    def test_unknown_candidate(self, candidate_store) -> None:
        with pytest.raises(CandidateNotFound):
            register_nomination(self._payload(uuid4()), uuid4(), store=candidate_store)
