"""Persistence collaborators for the ordering and moderation services.

The services depend on the three protocols below; the ``Supabase*`` classes
implement them on top of PostgREST.  Moderation commits go through the
``aplicar_moderacao`` Postgres function (``sql/001_moderacao.sql``) so the
record write and the candidate write share one transaction, and the guarded
waiver reset is a conditional ``UPDATE ... WHERE td_status = expected``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import UUID, uuid4

from postgrest.exceptions import APIError
from supabase import Client

from comissao.core.config import settings
from comissao.core.errors import (
    DuplicatePendingError,
    InvalidStateError,
    InvalidSubmissionError,
)
from comissao.db.supabase import get_supabase
from comissao.models.candidate import Candidate, CandidateCreate, NominationCreate
from comissao.models.enums import (
    NominationState,
    NotificationStatus,
    Pool,
    SubmissionStatus,
    SubmissionVariant,
    WaiverStatus,
)
from comissao.models.notification import Notification, NotificationCreate
from comissao.models.submission import MutationResult, SecondaryApproval, WaiverIntent
from comissao.services.normalization import (
    build_unique_code,
    candidate_from_row,
    notification_from_row,
    record_from_row,
    record_to_row,
    waiver_status_to_db,
)

logger = logging.getLogger(__name__)

Record = SecondaryApproval | WaiverIntent

CANDIDATE_COLUMNS = (
    "id, nome, sistema_concorrencia, classificacao_lista, id_unico, "
    "ordem_nomeacao_base, status_nomeacao, td_status, td_observacao, "
    "created_at, updated_at"
)

# Postgres unique_violation; raised by the one-pending-TD-per-candidate index
UNIQUE_VIOLATION = "23505"
# Raised by aplicar_moderacao when the record was decided concurrently
RECORD_NOT_PENDING = "PT409"


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

class CandidateStore(Protocol):
    def list_all(self) -> list[Candidate]: ...

    def list_by_pool(self, pool: Pool) -> list[Candidate]: ...

    def get(self, candidate_id: UUID) -> Candidate | None: ...

    def insert(self, payload: CandidateCreate) -> Candidate: ...

    def update_waiver_status(
        self,
        candidate_id: UUID,
        status: WaiverStatus,
        note: str | None,
        expected: WaiverStatus | None = None,
    ) -> bool: ...

    def update_nomination_position(self, candidate_id: UUID, position: int | None) -> None: ...

    def record_nomination(self, payload: NominationCreate, moderator_id: UUID) -> UUID: ...


class SubmissionStore(Protocol):
    def get(self, variant: SubmissionVariant, record_id: UUID) -> Record | None: ...

    def find_pending(self, candidate_id: UUID, variant: SubmissionVariant) -> Record | None: ...

    def list_pending(self, variant: SubmissionVariant) -> list[Record]: ...

    def insert(self, record: Record) -> Record: ...

    def update(self, record: Record) -> Record: ...

    def commit_moderation(self, result: MutationResult) -> bool: ...


class NotificationQueue(Protocol):
    def enqueue(self, notification: NotificationCreate) -> UUID | None: ...

    def set_status(self, notification_id: UUID, status: NotificationStatus) -> bool: ...

    def list_recent(self, limit: int = 20) -> list[Notification]: ...


# ---------------------------------------------------------------------------
# Supabase implementations
# ---------------------------------------------------------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseCandidateStore:
    """``candidates`` table plus the nomination tables."""

    def __init__(self, client: Client | None = None) -> None:
        self._client = client or get_supabase()

    def list_all(self) -> list[Candidate]:
        # created_at keeps insertion order as the final tiebreak for equal ranks
        result = (
            self._client.table("candidates")
            .select(CANDIDATE_COLUMNS)
            .order("created_at", desc=False)
            .execute()
        )
        return [candidate_from_row(row) for row in result.data or []]

    def list_by_pool(self, pool: Pool) -> list[Candidate]:
        return sorted(
            (c for c in self.list_all() if c.pool == pool),
            key=lambda c: (c.pool_rank is None, c.pool_rank or 0),
        )

    def get(self, candidate_id: UUID) -> Candidate | None:
        result = (
            self._client.table("candidates")
            .select(CANDIDATE_COLUMNS)
            .eq("id", str(candidate_id))
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return candidate_from_row(result.data[0])

    def insert(self, payload: CandidateCreate) -> Candidate:
        now = _now_iso()
        row = {
            "nome": payload.name.strip(),
            "sistema_concorrencia": payload.pool.value,
            "classificacao_lista": payload.pool_rank,
            "id_unico": build_unique_code(payload.pool, payload.pool_rank),
            "ordem_nomeacao_base": None,
            "status_nomeacao": None,
            "td_status": None,
            "td_observacao": None,
            "created_at": now,
            "updated_at": now,
        }
        result = self._client.table("candidates").insert(row).execute()
        return candidate_from_row(result.data[0])

    def update_waiver_status(
        self,
        candidate_id: UUID,
        status: WaiverStatus,
        note: str | None,
        expected: WaiverStatus | None = None,
    ) -> bool:
        """Write the waiver columns; with *expected*, only if it still matches."""
        query = (
            self._client.table("candidates")
            .update(
                {
                    "td_status": waiver_status_to_db(status),
                    "td_observacao": note,
                    "updated_at": _now_iso(),
                }
            )
            .eq("id", str(candidate_id))
        )
        if expected is not None:
            expected_db = waiver_status_to_db(expected)
            if expected_db is None:
                query = query.is_("td_status", "null")
            else:
                query = query.eq("td_status", expected_db)
        result = query.execute()
        return bool(result.data)

    def update_nomination_position(self, candidate_id: UUID, position: int | None) -> None:
        (
            self._client.table("candidates")
            .update({"ordem_nomeacao_base": position})
            .eq("id", str(candidate_id))
            .execute()
        )

    def record_nomination(self, payload: NominationCreate, moderator_id: UUID) -> UUID:
        """Insert the act, link the candidate and flag them as nominated."""
        now = _now_iso()
        result = (
            self._client.table("nomeacoes")
            .insert(
                {
                    "data_nomeacao": payload.nominated_on.isoformat(),
                    "numero_ato": (payload.act_number or "").strip() or None,
                    "fonte_url": (payload.source_url or "").strip() or None,
                    "observacao": (payload.note or "").strip() or None,
                    "tipo": "NOMEACAO",
                    "created_by": str(moderator_id),
                    "created_at": now,
                    "updated_at": now,
                }
            )
            .execute()
        )
        nomination_id = UUID(str(result.data[0]["id"]))

        self._client.table("nomeacoes_candidatos").insert(
            {
                "nomeacao_id": str(nomination_id),
                "candidate_id": str(payload.candidate_id),
                "status": "PUBLICADA",
                "observacao": payload.note,
                "created_at": now,
                "updated_at": now,
            }
        ).execute()

        self._client.table("candidates").update(
            {"status_nomeacao": NominationState.nominated.value, "updated_at": now}
        ).eq("id", str(payload.candidate_id)).execute()

        return nomination_id


class SupabaseSubmissionStore:
    """``outras_aprovacoes`` and ``td_requests`` tables."""

    def __init__(self, client: Client | None = None) -> None:
        self._client = client or get_supabase()

    def get(self, variant: SubmissionVariant, record_id: UUID) -> Record | None:
        result = (
            self._client.table(variant.value)
            .select("*")
            .eq("id", str(record_id))
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return record_from_row(variant, result.data[0])

    def find_pending(self, candidate_id: UUID, variant: SubmissionVariant) -> Record | None:
        result = (
            self._client.table(variant.value)
            .select("*")
            .eq("candidate_id", str(candidate_id))
            .eq("status", SubmissionStatus.pending.value)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return record_from_row(variant, result.data[0])

    def list_pending(self, variant: SubmissionVariant) -> list[Record]:
        result = (
            self._client.table(variant.value)
            .select("*")
            .eq("status", SubmissionStatus.pending.value)
            .order("created_at", desc=True)
            .execute()
        )
        records: list[Record] = []
        for row in result.data or []:
            try:
                records.append(record_from_row(variant, row))
            except InvalidSubmissionError as exc:
                # moderating this row still fails in get(); the queue stays readable
                logger.warning(
                    "pending_record_skipped",
                    extra={
                        "variant": variant.value,
                        "record_id": str(row.get("id")),
                        "error_message": exc.message,
                    },
                )
        return records

    def insert(self, record: Record) -> Record:
        try:
            result = (
                self._client.table(record.variant.value)
                .insert(record_to_row(record))
                .execute()
            )
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicatePendingError(
                    "Já existe uma solicitação pendente para este aprovado."
                ) from exc
            raise
        return record_from_row(record.variant, result.data[0])

    def update(self, record: Record) -> Record:
        """Overwrite a record that is still pending.

        Decisions only go through ``commit_moderation``; an edit that finds the
        row already decided raises ``InvalidStateError`` and writes nothing.
        """
        row = record_to_row(record)
        row.pop("id")
        row.pop("created_at", None)
        result = (
            self._client.table(record.variant.value)
            .update(row)
            .eq("id", str(record.id))
            .eq("status", SubmissionStatus.pending.value)
            .execute()
        )
        if not result.data:
            raise InvalidStateError(
                "Esse registro já foi analisado pela comissão e não pode ser alterado."
            )
        return record_from_row(record.variant, result.data[0])

    def commit_moderation(self, result: MutationResult) -> bool:
        """Apply record and candidate writes in one transaction.

        Returns whether the candidate row was changed (a guarded reset that
        finds a different status changes nothing).
        """
        mutation = result.waiver_mutation
        params: dict[str, Any] = {
            "p_tabela": result.record.variant.value,
            "p_registro": record_to_row(result.record),
            "p_inserir": result.created,
            "p_alterar_candidato": mutation is not None,
            "p_candidate_id": str(mutation.candidate_id) if mutation else None,
            "p_td_status": waiver_status_to_db(mutation.waiver_status) if mutation else None,
            "p_td_observacao": mutation.waiver_note if mutation else None,
            "p_condicional": bool(mutation and mutation.is_conditional),
            "p_status_esperado": (
                waiver_status_to_db(mutation.expected_status)
                if mutation and mutation.expected_status
                else None
            ),
        }
        try:
            response = self._client.rpc("aplicar_moderacao", params).execute()
        except APIError as exc:
            if exc.code == RECORD_NOT_PENDING:
                raise InvalidStateError(
                    "Esse registro já foi decidido por outro membro da comissão."
                ) from exc
            raise

        raw = response.data
        if isinstance(raw, list):
            raw = raw[0] if raw else False
        return bool(raw)


class SupabaseNotificationQueue:
    """``notifications_queue`` table; delivery happens elsewhere."""

    def __init__(self, client: Client | None = None) -> None:
        self._client = client or get_supabase()

    def enqueue(self, notification: NotificationCreate) -> UUID | None:
        result = (
            self._client.table("notifications_queue")
            .insert(
                {
                    "id": str(uuid4()),
                    "titulo": notification.title,
                    "corpo": notification.body,
                    "tipo": notification.kind,
                    "visivel_para": notification.audience or settings.NOTIFY_DEFAULT_AUDIENCE,
                    "metadata": notification.metadata,
                    "status": NotificationStatus.pending.value,
                }
            )
            .execute()
        )
        if not result.data:
            return None
        return UUID(str(result.data[0]["id"]))

    def set_status(self, notification_id: UUID, status: NotificationStatus) -> bool:
        update: dict[str, Any] = {"status": status.value, "error_message": None}
        if status == NotificationStatus.pending:
            update["sent_at"] = None
        result = (
            self._client.table("notifications_queue")
            .update(update)
            .eq("id", str(notification_id))
            .execute()
        )
        return bool(result.data)

    def list_recent(self, limit: int = 20) -> list[Notification]:
        result = (
            self._client.table("notifications_queue")
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [notification_from_row(row) for row in result.data or []]
