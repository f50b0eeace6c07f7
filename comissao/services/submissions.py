"""Candidate self-service submissions.

Candidates create waiver intents and secondary approvals, and may edit them
while they are still pending.  A candidate has at most one pending waiver
intent: submitting again updates that record in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from comissao.core.errors import (
    CandidateNotFound,
    DuplicatePendingError,
    InvalidStateError,
    RecordNotFound,
)
from comissao.db.stores import (
    CandidateStore,
    SubmissionStore,
    SupabaseCandidateStore,
    SupabaseSubmissionStore,
)
from comissao.models.enums import SubmissionStatus, SubmissionVariant
from comissao.models.submission import (
    SecondaryApproval,
    SecondaryApprovalSubmit,
    WaiverIntent,
    WaiverIntentSubmit,
)

logger = logging.getLogger(__name__)


class SubmissionService:
    def __init__(self, candidates: CandidateStore, submissions: SubmissionStore) -> None:
        self.candidates = candidates
        self.submissions = submissions

    def _require_candidate(self, candidate_id: UUID) -> None:
        if self.candidates.get(candidate_id) is None:
            raise CandidateNotFound(f"Aprovado {candidate_id} não encontrado.")

    def submit_waiver_intent(
        self,
        candidate_id: UUID,
        payload: WaiverIntentSubmit,
        *,
        submitted_by: UUID | None = None,
    ) -> WaiverIntent:
        """Create the candidate's pending waiver intent, or update the existing one."""
        self._require_candidate(candidate_id)
        now = datetime.now(timezone.utc)
        note = (payload.note or "").strip() or None

        pending = self.submissions.find_pending(candidate_id, SubmissionVariant.waiver_intent)
        if pending is None:
            draft = WaiverIntent(
                id=uuid4(),
                candidate_id=candidate_id,
                kind=payload.kind,
                note=note,
                created_at=now,
                updated_at=now,
                submitted_by=submitted_by or candidate_id,
            )
            try:
                record = self.submissions.insert(draft)
            except DuplicatePendingError:
                # lost a race with a concurrent submission; fold into it
                pending = self.submissions.find_pending(
                    candidate_id, SubmissionVariant.waiver_intent
                )
                if pending is None:
                    raise
            else:
                logger.info(
                    "waiver_intent_created",
                    extra={"candidate_id": str(candidate_id), "record_id": str(record.id)},
                )
                return record  # type: ignore[return-value]

        updated = pending.model_copy(
            update={"kind": payload.kind, "note": note, "updated_at": now}
        )
        record = self.submissions.update(updated)
        logger.info(
            "waiver_intent_updated",
            extra={"candidate_id": str(candidate_id), "record_id": str(record.id)},
        )
        return record  # type: ignore[return-value]

    def submit_secondary_approval(
        self, candidate_id: UUID, payload: SecondaryApprovalSubmit
    ) -> SecondaryApproval:
        """Register an approval in another examination (no uniqueness rule)."""
        self._require_candidate(candidate_id)
        now = datetime.now(timezone.utc)
        draft = SecondaryApproval(
            id=uuid4(),
            candidate_id=candidate_id,
            note=(payload.note or "").strip() or None,
            created_at=now,
            updated_at=now,
            orgao=payload.orgao.strip(),
            role=payload.role.strip(),
            pool=payload.pool,
            rank=payload.rank,
            intends_to_accept=payload.intends_to_accept,
            already_appointed=payload.already_appointed,
        )
        record = self.submissions.insert(draft)
        logger.info(
            "secondary_approval_created",
            extra={"candidate_id": str(candidate_id), "record_id": str(record.id)},
        )
        return record  # type: ignore[return-value]

    def edit_secondary_approval(
        self,
        candidate_id: UUID,
        record_id: UUID,
        payload: SecondaryApprovalSubmit,
    ) -> SecondaryApproval:
        """Edit a pending secondary approval owned by *candidate_id*."""
        record = self.submissions.get(SubmissionVariant.secondary_approval, record_id)
        if record is None or record.candidate_id != candidate_id:
            raise RecordNotFound(f"Aprovação {record_id} não encontrada.")
        if record.status != SubmissionStatus.pending:
            raise InvalidStateError(
                "Essa aprovação já foi analisada pela comissão e não pode ser editada."
            )

        updated = record.model_copy(
            update={
                "orgao": payload.orgao.strip(),
                "role": payload.role.strip(),
                "pool": payload.pool,
                "rank": payload.rank,
                "intends_to_accept": payload.intends_to_accept,
                "already_appointed": payload.already_appointed,
                "note": (payload.note or "").strip() or None,
                "status": SubmissionStatus.pending,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        return self.submissions.update(updated)  # type: ignore[return-value]


def get_submission_service() -> SubmissionService:
    return SubmissionService(
        candidates=SupabaseCandidateStore(),
        submissions=SupabaseSubmissionStore(),
    )
