"""Moderation of self-reported submissions.

``decide`` is the pure transition: it takes a pending record and a decision
and returns a ``MutationResult`` describing every write (record status,
candidate waiver columns, notifications) without touching the database.

``ModerationWorkflow`` wraps it with the reads and the single atomic commit:

* APPROVE always overwrites the candidate's waiver status, since an approval
  is the newest authoritative fact about the candidate;
* REJECT of a waiver intent resets the candidate to no waiver only while the
  stored status is still the one this request would have produced
  (compare-and-reset, enforced by the store);
* REJECT of a secondary approval never touches the candidate.

Notifications are dispatched after the commit and never fail the decision.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from comissao.core.constants import (
    DATE_FORMAT_PT,
    DEFAULT_ORGAO_LABEL,
    DEFAULT_ROLE_LABEL,
    NOTE_APPOINTED_ELSEWHERE,
    NOTE_INTENDS_TO_ACCEPT,
    NOTIFICATION_KIND_MANUAL_WAIVER,
    NOTIFICATION_KIND_SECONDARY,
    NOTIFICATION_KIND_WAIVER,
    WAIVER_NOTE_BY_KIND,
)
from comissao.core.errors import CandidateNotFound, InvalidStateError, RecordNotFound
from comissao.db.stores import (
    CandidateStore,
    NotificationQueue,
    SubmissionStore,
    SupabaseCandidateStore,
    SupabaseNotificationQueue,
    SupabaseSubmissionStore,
)
from comissao.models.candidate import Candidate
from comissao.models.enums import (
    AlreadyAppointed,
    Decision,
    IntendsToAccept,
    SubmissionStatus,
    SubmissionVariant,
    WaiverKind,
    WaiverStatus,
)
from comissao.models.notification import NotificationCreate
from comissao.models.submission import (
    MutationResult,
    PendingQueues,
    PendingSubmission,
    SecondaryApproval,
    WaiverIntent,
    WaiverMutation,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Derivation rules
# ---------------------------------------------------------------------------

def waiver_status_for_kind(kind: WaiverKind) -> WaiverStatus:
    return WaiverStatus.confirmed if kind == WaiverKind.sent else WaiverStatus.interested


def _format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT_PT)


def derive_waiver_mutation(
    record: SecondaryApproval | WaiverIntent,
    reference_date: datetime,
) -> WaiverMutation | None:
    """Waiver write implied by approving *record*, or None."""
    if isinstance(record, SecondaryApproval):
        if record.already_appointed == AlreadyAppointed.yes:
            status, template = WaiverStatus.confirmed, NOTE_APPOINTED_ELSEWHERE
        elif record.intends_to_accept == IntendsToAccept.yes:
            status, template = WaiverStatus.interested, NOTE_INTENDS_TO_ACCEPT
        else:
            return None
        note = template.format(
            orgao=record.orgao or DEFAULT_ORGAO_LABEL,
            role=record.role or DEFAULT_ROLE_LABEL,
            date=_format_date(reference_date),
        )
        return WaiverMutation(
            candidate_id=record.candidate_id, waiver_status=status, waiver_note=note
        )

    note = (record.note or "").strip() or WAIVER_NOTE_BY_KIND[record.kind].format(
        date=_format_date(reference_date)
    )
    return WaiverMutation(
        candidate_id=record.candidate_id,
        waiver_status=waiver_status_for_kind(record.kind),
        waiver_note=note,
    )


def _approval_notification(
    record: SecondaryApproval | WaiverIntent,
    candidate: Candidate | None,
) -> NotificationCreate:
    name = candidate.name if candidate and candidate.name else "aprovado"
    metadata = {
        "candidateId": str(record.candidate_id),
        "recordId": str(record.id),
        "variant": record.variant.value,
    }
    if isinstance(record, SecondaryApproval):
        return NotificationCreate(
            title="Nova aprovação em outro concurso",
            body=f"{name} informou aprovação em {record.orgao or DEFAULT_ORGAO_LABEL}.",
            kind=NOTIFICATION_KIND_SECONDARY,
            metadata=metadata,
        )
    metadata["tipoTd"] = record.kind.value
    return NotificationCreate(
        title="TD confirmado" if record.kind == WaiverKind.sent else "Atualização de interesse em TD",
        body=f"Registro realizado para {name}.",
        kind=NOTIFICATION_KIND_WAIVER,
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Pure transition
# ---------------------------------------------------------------------------

def decide(
    record: SecondaryApproval | WaiverIntent,
    decision: Decision,
    moderator_id: UUID,
    *,
    notify: bool = False,
    decided_at: datetime | None = None,
    candidate: Candidate | None = None,
) -> MutationResult:
    """Apply *decision* to a pending *record*.

    Raises ``InvalidStateError`` when the record was already decided.
    *candidate* is only used to word the notification.
    """
    if not record.is_pending:
        raise InvalidStateError(
            f"Registro {record.id} já está {record.status.value}; apenas pendentes podem ser decididos."
        )

    decided_at = decided_at or datetime.now(timezone.utc)
    approve = decision == Decision.approve
    decided = record.model_copy(
        update={
            "status": SubmissionStatus.approved if approve else SubmissionStatus.rejected,
            "decided_at": decided_at,
            "decided_by": moderator_id,
            "updated_at": decided_at,
        }
    )

    mutation: WaiverMutation | None = None
    if approve:
        mutation = derive_waiver_mutation(decided, decided_at)
    elif isinstance(decided, WaiverIntent):
        mutation = WaiverMutation(
            candidate_id=decided.candidate_id,
            waiver_status=WaiverStatus.none,
            waiver_note=None,
            expected_status=waiver_status_for_kind(decided.kind),
        )

    notifications: list[NotificationCreate] = []
    if approve and notify:
        notifications.append(_approval_notification(decided, candidate))

    return MutationResult(
        record=decided,
        decision=decision,
        waiver_mutation=mutation,
        notifications=notifications,
    )


# ---------------------------------------------------------------------------
# Persistence-backed workflow
# ---------------------------------------------------------------------------

class ModerationWorkflow:
    """Loads, decides, commits and then emits notifications."""

    def __init__(
        self,
        candidates: CandidateStore,
        submissions: SubmissionStore,
        notifications: NotificationQueue | None = None,
    ) -> None:
        self.candidates = candidates
        self.submissions = submissions
        self.notifications = notifications

    def moderate(
        self,
        variant: SubmissionVariant,
        record_id: UUID,
        decision: Decision,
        moderator_id: UUID,
        *,
        notify: bool = False,
    ) -> MutationResult:
        record = self.submissions.get(variant, record_id)
        if record is None:
            raise RecordNotFound(f"Registro {record_id} não encontrado em {variant.value}.")

        candidate = self.candidates.get(record.candidate_id)
        if candidate is None:
            raise CandidateNotFound(
                f"Aprovado {record.candidate_id} referenciado por {record_id} não existe."
            )

        result = decide(
            record, decision, moderator_id, notify=notify, candidate=candidate
        )
        result.candidate_updated = self.submissions.commit_moderation(result)

        logger.info(
            "submission_decided",
            extra={
                "variant": variant.value,
                "record_id": str(record_id),
                "candidate_id": str(record.candidate_id),
                "decision": decision.value,
                "moderator_id": str(moderator_id),
                "candidate_updated": result.candidate_updated,
            },
        )

        self._dispatch(result.notifications)
        return result

    def register_manual_waiver(
        self,
        candidate_id: UUID,
        kind: WaiverKind,
        moderator_id: UUID,
        *,
        note: str | None = None,
        reference_date: datetime | None = None,
        notify: bool = False,
    ) -> MutationResult:
        """Record a waiver the committee confirmed itself.

        The waiver intent is inserted already approved, together with the
        candidate update, in one commit.
        """
        candidate = self.candidates.get(candidate_id)
        if candidate is None:
            raise CandidateNotFound(f"Aprovado {candidate_id} não encontrado.")

        now = datetime.now(timezone.utc)
        draft = WaiverIntent(
            id=uuid4(),
            candidate_id=candidate_id,
            kind=kind,
            note=(note or "").strip() or None,
            created_at=now,
            updated_at=now,
            submitted_by=moderator_id,
            reference_date=reference_date or now,
        )
        result = decide(draft, Decision.approve, moderator_id, decided_at=now)
        if reference_date is not None and not draft.note:
            result.waiver_mutation = derive_waiver_mutation(result.record, reference_date)
        result.created = True
        if notify:
            result.notifications.append(
                NotificationCreate(
                    title="TD confirmado" if kind == WaiverKind.sent else "Atualização de interesse em TD",
                    body=f"Registro realizado para {candidate.name or 'aprovado'}.",
                    kind=NOTIFICATION_KIND_MANUAL_WAIVER,
                    metadata={"candidateId": str(candidate_id), "tipoTd": kind.value},
                )
            )

        result.candidate_updated = self.submissions.commit_moderation(result)
        logger.info(
            "manual_waiver_registered",
            extra={
                "candidate_id": str(candidate_id),
                "kind": kind.value,
                "moderator_id": str(moderator_id),
            },
        )

        self._dispatch(result.notifications)
        return result

    def list_pending(self) -> PendingQueues:
        """Pending records of both variants, newest first, with candidate names."""
        names = {c.id: c.name for c in self.candidates.list_all()}
        queues = PendingQueues()
        for variant, target in (
            (SubmissionVariant.secondary_approval, queues.secondary_approvals),
            (SubmissionVariant.waiver_intent, queues.waiver_intents),
        ):
            for record in self.submissions.list_pending(variant):
                target.append(
                    PendingSubmission(record=record, candidate_name=names.get(record.candidate_id))
                )
        return queues

    def _dispatch(self, notifications: list[NotificationCreate]) -> int:
        """Enqueue post-commit notifications; failures are logged, not raised."""
        if not notifications or self.notifications is None:
            return 0
        sent = 0
        for notification in notifications:
            try:
                self.notifications.enqueue(notification)
                sent += 1
            except Exception as exc:
                logger.warning(
                    "notification_enqueue_failed",
                    extra={"kind": notification.kind, "error_message": str(exc)},
                )
        return sent


def get_moderation_workflow() -> ModerationWorkflow:
    """Workflow wired to the Supabase-backed stores."""
    return ModerationWorkflow(
        candidates=SupabaseCandidateStore(),
        submissions=SupabaseSubmissionStore(),
        notifications=SupabaseNotificationQueue(),
    )
