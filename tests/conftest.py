"""Shared test fixtures.

Provides in-memory implementations of the store protocols, a FastAPI
``test_client`` and Supabase mock fixtures for use across all test modules.
"""

import os

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("ORDER_RECOMPUTE_INTERVAL_MINUTES", "0")

from collections.abc import Generator  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402
from unittest.mock import MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from comissao.core.errors import DuplicatePendingError, InvalidStateError  # noqa: E402
from comissao.models.candidate import Candidate, CandidateCreate, NominationCreate  # noqa: E402
from comissao.models.enums import (  # noqa: E402
    NominationState,
    NotificationStatus,
    Pool,
    SubmissionStatus,
    SubmissionVariant,
    WaiverStatus,
)
from comissao.models.notification import Notification, NotificationCreate  # noqa: E402
from comissao.models.submission import MutationResult, SecondaryApproval, WaiverIntent  # noqa: E402
from comissao.services.moderation import ModerationWorkflow  # noqa: E402
from comissao.services.normalization import build_unique_code  # noqa: E402
from comissao.services.submissions import SubmissionService  # noqa: E402


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_candidate(
    pool: Pool,
    rank: int | None,
    name: str | None = None,
    **overrides,
) -> Candidate:
    data = {
        "id": uuid4(),
        "name": name or f"{pool.value}-{rank}",
        "pool": pool,
        "pool_rank": rank,
    }
    data.update(overrides)
    return Candidate(**data)


def chainable_table_mock() -> MagicMock:
    """Return a mock that supports fluent chaining."""
    m = MagicMock()
    for method in (
        "select", "insert", "upsert", "update", "delete", "eq", "limit",
        "in_", "gt", "lt", "is_", "order",
    ):
        getattr(m, method).return_value = m
    m.count = None
    return m


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------

class InMemoryCandidateStore:
    def __init__(self, candidates: list[Candidate] | None = None) -> None:
        self.rows: dict[UUID, Candidate] = {}
        self.nominations: list[tuple[UUID, NominationCreate]] = []
        self.position_writes = 0
        for candidate in candidates or []:
            self.rows[candidate.id] = candidate

    def add(self, candidate: Candidate) -> Candidate:
        self.rows[candidate.id] = candidate
        return candidate

    def list_all(self) -> list[Candidate]:
        return list(self.rows.values())

    def list_by_pool(self, pool: Pool) -> list[Candidate]:
        return [c for c in self.rows.values() if c.pool == pool]

    def get(self, candidate_id: UUID) -> Candidate | None:
        return self.rows.get(candidate_id)

    def insert(self, payload: CandidateCreate) -> Candidate:
        return self.add(
            Candidate(
                id=uuid4(),
                name=payload.name,
                pool=payload.pool,
                pool_rank=payload.pool_rank,
                unique_code=build_unique_code(payload.pool, payload.pool_rank),
            )
        )

    def update_waiver_status(
        self,
        candidate_id: UUID,
        status: WaiverStatus,
        note: str | None,
        expected: WaiverStatus | None = None,
    ) -> bool:
        current = self.rows.get(candidate_id)
        if current is None:
            return False
        if expected is not None and current.waiver_status != expected:
            return False
        self.rows[candidate_id] = current.model_copy(
            update={"waiver_status": status, "waiver_note": note}
        )
        return True

    def update_nomination_position(self, candidate_id: UUID, position: int | None) -> None:
        self.position_writes += 1
        current = self.rows[candidate_id]
        self.rows[candidate_id] = current.model_copy(update={"nomination_position": position})

    def record_nomination(self, payload: NominationCreate, moderator_id: UUID) -> UUID:
        nomination_id = uuid4()
        self.nominations.append((nomination_id, payload))
        current = self.rows[payload.candidate_id]
        self.rows[payload.candidate_id] = current.model_copy(
            update={"nomination_state": NominationState.nominated}
        )
        return nomination_id


class InMemorySubmissionStore:
    """Commits apply record and candidate writes together, or not at all."""

    def __init__(self, candidates: InMemoryCandidateStore) -> None:
        self.candidates = candidates
        self.records: dict[UUID, SecondaryApproval | WaiverIntent] = {}
        self.fail_commit = False
        self.commits = 0

    def get(self, variant: SubmissionVariant, record_id: UUID):
        record = self.records.get(record_id)
        if record is None or record.variant != variant:
            return None
        return record

    def find_pending(self, candidate_id: UUID, variant: SubmissionVariant):
        for record in reversed(list(self.records.values())):
            if (
                record.candidate_id == candidate_id
                and record.variant == variant
                and record.status == SubmissionStatus.pending
            ):
                return record
        return None

    def list_pending(self, variant: SubmissionVariant):
        return [
            r for r in self.records.values()
            if r.variant == variant and r.status == SubmissionStatus.pending
        ]

    def for_candidate(self, candidate_id: UUID, variant: SubmissionVariant):
        return [
            r for r in self.records.values()
            if r.candidate_id == candidate_id and r.variant == variant
        ]

    def insert(self, record):
        if (
            record.variant == SubmissionVariant.waiver_intent
            and record.status == SubmissionStatus.pending
            and self.find_pending(record.candidate_id, record.variant) is not None
        ):
            raise DuplicatePendingError("pending TD already exists")
        self.records[record.id] = record
        return record

    def update(self, record):
        stored = self.records.get(record.id)
        if stored is None or stored.status != SubmissionStatus.pending:
            raise InvalidStateError("record already decided")
        self.records[record.id] = record
        return record

    def commit_moderation(self, result: MutationResult) -> bool:
        if self.fail_commit:
            raise ConnectionError("database unavailable")
        record = result.record
        if not result.created:
            stored = self.records.get(record.id)
            if stored is None or stored.status != SubmissionStatus.pending:
                raise InvalidStateError("record already decided")
        self.records[record.id] = record
        self.commits += 1

        mutation = result.waiver_mutation
        if mutation is None:
            return False
        return self.candidates.update_waiver_status(
            mutation.candidate_id,
            mutation.waiver_status,
            mutation.waiver_note,
            expected=mutation.expected_status,
        )


class InMemoryNotificationQueue:
    def __init__(self) -> None:
        self.entries: dict[UUID, Notification] = {}
        self.fail = False

    def enqueue(self, notification: NotificationCreate) -> UUID | None:
        if self.fail:
            raise RuntimeError("queue unavailable")
        notification_id = uuid4()
        self.entries[notification_id] = Notification(
            id=notification_id,
            title=notification.title,
            body=notification.body,
            kind=notification.kind,
            audience=notification.audience or "APROVADOS",
            metadata=notification.metadata,
        )
        return notification_id

    def set_status(self, notification_id: UUID, status: NotificationStatus) -> bool:
        entry = self.entries.get(notification_id)
        if entry is None:
            return False
        self.entries[notification_id] = entry.model_copy(update={"status": status})
        return True

    def list_recent(self, limit: int = 20) -> list[Notification]:
        return list(self.entries.values())[-limit:][::-1]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def candidate_store() -> InMemoryCandidateStore:
    return InMemoryCandidateStore()


@pytest.fixture()
def submission_store(candidate_store: InMemoryCandidateStore) -> InMemorySubmissionStore:
    return InMemorySubmissionStore(candidate_store)


@pytest.fixture()
def notification_queue() -> InMemoryNotificationQueue:
    return InMemoryNotificationQueue()


@pytest.fixture()
def workflow(
    candidate_store: InMemoryCandidateStore,
    submission_store: InMemorySubmissionStore,
    notification_queue: InMemoryNotificationQueue,
) -> ModerationWorkflow:
    return ModerationWorkflow(candidate_store, submission_store, notification_queue)


@pytest.fixture()
def submission_service(
    candidate_store: InMemoryCandidateStore,
    submission_store: InMemorySubmissionStore,
) -> SubmissionService:
    return SubmissionService(candidate_store, submission_store)


@pytest.fixture()
def candidate(candidate_store: InMemoryCandidateStore) -> Candidate:
    return candidate_store.add(make_candidate(Pool.open, 1, name="Maria Souza"))


@pytest.fixture()
def mock_supabase_module() -> Generator[MagicMock, None, None]:
    """Patch the Supabase client used by the health router."""
    mock_client = MagicMock()
    mock_client.table.return_value = chainable_table_mock()
    with patch("comissao.routers.health.get_supabase", return_value=mock_client):
        yield mock_client


@pytest.fixture()
def mock_supabase_disconnected() -> Generator[MagicMock, None, None]:
    """Patch ``get_supabase`` to simulate a disconnected database."""
    with patch(
        "comissao.routers.health.get_supabase",
        side_effect=Exception("Connection refused"),
    ):
        yield MagicMock()


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient."""
    from comissao.main import app

    with TestClient(app) as client:
        yield client
