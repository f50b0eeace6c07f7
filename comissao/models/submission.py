"""Pydantic models for self-reported submission records.

Two variants share one lifecycle: ``SecondaryApproval`` (``outras_aprovacoes``,
approval in another examination) and ``WaiverIntent`` (``td_requests``,
intent or confirmation to waive the candidate's own seat).
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from comissao.models.enums import (
    AlreadyAppointed,
    Decision,
    IntendsToAccept,
    Pool,
    SubmissionStatus,
    SubmissionVariant,
    WaiverKind,
    WaiverStatus,
)
from comissao.models.notification import NotificationCreate


class SubmissionRecordBase(BaseModel):
    """Fields common to both variants."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    candidate_id: UUID
    status: SubmissionStatus = SubmissionStatus.pending
    note: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    decided_at: datetime | None = None  # approved_at
    decided_by: UUID | None = None  # approved_by

    @property
    def is_pending(self) -> bool:
        return self.status == SubmissionStatus.pending


class SecondaryApproval(SubmissionRecordBase):
    variant: Literal[SubmissionVariant.secondary_approval] = (
        SubmissionVariant.secondary_approval
    )
    orgao: str | None = None
    role: str | None = None  # cargo
    pool: Pool | None = None  # quota in the other examination, informational
    rank: int | None = None
    intends_to_accept: IntendsToAccept = IntendsToAccept.maybe
    already_appointed: AlreadyAppointed = AlreadyAppointed.no


class WaiverIntent(SubmissionRecordBase):
    variant: Literal[SubmissionVariant.waiver_intent] = SubmissionVariant.waiver_intent
    kind: WaiverKind
    submitted_by: UUID | None = None  # user_id of whoever created the row
    reference_date: datetime | None = None  # data_aprovacao, set on committee-entered TDs


SubmissionRecord = Annotated[
    Union[SecondaryApproval, WaiverIntent],
    Field(discriminator="variant"),
]


# --- Request payloads ---

class WaiverIntentSubmit(BaseModel):
    """Candidate declaring interest in (or confirmation of) a waiver."""
    kind: WaiverKind
    note: str | None = None


class SecondaryApprovalSubmit(BaseModel):
    """Candidate declaring an approval in another examination."""
    orgao: str = Field(min_length=1)
    role: str = Field(min_length=1)
    pool: Pool = Pool.open
    rank: int | None = Field(default=None, gt=0)
    intends_to_accept: IntendsToAccept = IntendsToAccept.maybe
    already_appointed: AlreadyAppointed = AlreadyAppointed.no
    note: str | None = None


class DecisionRequest(BaseModel):
    decision: Decision
    notify: bool = False


class ManualWaiverRequest(BaseModel):
    """Committee-entered waiver, approved on creation."""
    candidate_id: UUID
    kind: WaiverKind
    reference_date: datetime | None = None
    note: str | None = None
    notify: bool = False


# --- Moderation outcome ---

class WaiverMutation(BaseModel):
    """Write to a candidate's waiver columns.

    With ``expected_status`` set the write is a compare-and-swap: it only
    happens when the stored status still equals the expected one.
    """
    candidate_id: UUID
    waiver_status: WaiverStatus
    waiver_note: str | None = None
    expected_status: WaiverStatus | None = None

    @property
    def is_conditional(self) -> bool:
        return self.expected_status is not None


class MutationResult(BaseModel):
    """Everything a moderation decision writes, committed as one unit."""
    record: SubmissionRecord
    decision: Decision
    waiver_mutation: WaiverMutation | None = None
    notifications: list[NotificationCreate] = []
    created: bool = False  # record is inserted rather than updated
    candidate_updated: bool = False  # filled in by the store after commit


class PendingSubmission(BaseModel):
    """Pending-queue entry shown to the committee."""
    record: SubmissionRecord
    candidate_name: str | None = None


class PendingQueues(BaseModel):
    secondary_approvals: list[PendingSubmission] = []
    waiver_intents: list[PendingSubmission] = []

    @property
    def total(self) -> int:
        return len(self.secondary_approvals) + len(self.waiver_intents)
