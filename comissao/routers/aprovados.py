"""Candidate self-service endpoints (TD requests and other approvals)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from comissao.models.submission import (
    SecondaryApproval,
    SecondaryApprovalSubmit,
    WaiverIntent,
    WaiverIntentSubmit,
)
from comissao.services.submissions import get_submission_service

router = APIRouter()


@router.post("/{candidate_id}/td-requests", response_model=WaiverIntent)
async def submit_waiver_intent(candidate_id: UUID, body: WaiverIntentSubmit) -> WaiverIntent:
    """Create or update the candidate's single pending TD request."""
    return get_submission_service().submit_waiver_intent(candidate_id, body)


@router.post(
    "/{candidate_id}/outras-aprovacoes",
    response_model=SecondaryApproval,
    status_code=201,
)
async def submit_secondary_approval(
    candidate_id: UUID, body: SecondaryApprovalSubmit
) -> SecondaryApproval:
    return get_submission_service().submit_secondary_approval(candidate_id, body)


@router.put(
    "/{candidate_id}/outras-aprovacoes/{record_id}",
    response_model=SecondaryApproval,
)
async def edit_secondary_approval(
    candidate_id: UUID, record_id: UUID, body: SecondaryApprovalSubmit
) -> SecondaryApproval:
    return get_submission_service().edit_secondary_approval(candidate_id, record_id, body)
