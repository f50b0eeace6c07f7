"""Committee endpoints: moderation queues, decisions, nominations, notifications.

The moderator is identified by the ``X-Moderator-Id`` header, set by the
authenticating gateway in front of this service; no role check happens here.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Header, HTTPException, Query

from comissao.core.errors import ComissaoError
from comissao.db.stores import SupabaseNotificationQueue
from comissao.models.candidate import NominationCreate
from comissao.models.enums import SubmissionVariant
from comissao.models.notification import Notification, NotificationCreate
from comissao.models.submission import (
    DecisionRequest,
    ManualWaiverRequest,
    MutationResult,
    PendingQueues,
)
from comissao.services import notifications
from comissao.services.moderation import get_moderation_workflow
from comissao.services.nomination import register_nomination

logger = logging.getLogger(__name__)

router = APIRouter()


def _moderate(
    variant: SubmissionVariant,
    record_id: UUID,
    body: DecisionRequest,
    moderator_id: UUID,
) -> MutationResult:
    try:
        return get_moderation_workflow().moderate(
            variant, record_id, body.decision, moderator_id, notify=body.notify
        )
    except ComissaoError:
        raise
    except Exception as exc:
        logger.error(
            "moderation_failed",
            extra={
                "variant": variant.value,
                "record_id": str(record_id),
                "error_message": str(exc),
            },
        )
        raise HTTPException(
            status_code=500, detail=f"Failed to apply decision: {exc}"
        ) from exc


@router.get("/pendencias", response_model=PendingQueues)
async def pending_queues() -> PendingQueues:
    return get_moderation_workflow().list_pending()


@router.post("/outras-aprovacoes/{record_id}/decisao", response_model=MutationResult)
async def decide_secondary_approval(
    record_id: UUID,
    body: DecisionRequest,
    moderator_id: UUID = Header(..., alias="X-Moderator-Id"),
) -> MutationResult:
    return _moderate(SubmissionVariant.secondary_approval, record_id, body, moderator_id)


@router.post("/td-requests/{record_id}/decisao", response_model=MutationResult)
async def decide_waiver_intent(
    record_id: UUID,
    body: DecisionRequest,
    moderator_id: UUID = Header(..., alias="X-Moderator-Id"),
) -> MutationResult:
    return _moderate(SubmissionVariant.waiver_intent, record_id, body, moderator_id)


@router.post("/td-manual", response_model=MutationResult, status_code=201)
async def manual_waiver(
    body: ManualWaiverRequest,
    moderator_id: UUID = Header(..., alias="X-Moderator-Id"),
) -> MutationResult:
    return get_moderation_workflow().register_manual_waiver(
        body.candidate_id,
        body.kind,
        moderator_id,
        note=body.note,
        reference_date=body.reference_date,
        notify=body.notify,
    )


@router.post("/nomeacoes", status_code=201)
async def create_nomination(
    body: NominationCreate,
    moderator_id: UUID = Header(..., alias="X-Moderator-Id"),
) -> dict[str, Any]:
    nomination_id = register_nomination(
        body, moderator_id, queue=SupabaseNotificationQueue()
    )
    return {"nomination_id": str(nomination_id), "candidate_id": str(body.candidate_id)}


@router.get("/notificacoes", response_model=list[Notification])
async def recent_notifications(
    limit: int = Query(20, ge=1, le=100),
) -> list[Notification]:
    return notifications.list_recent(limit)


@router.post("/notificacoes", status_code=201)
async def create_notification(body: NotificationCreate) -> dict[str, Any]:
    notification_id = notifications.enqueue_custom(body)
    return {"notification_id": str(notification_id) if notification_id else None}


@router.post("/notificacoes/{notification_id}/reenfileirar")
async def retry_notification(notification_id: UUID) -> dict[str, str]:
    notifications.retry_notification(notification_id)
    return {"status": "PENDENTE"}


@router.post("/notificacoes/{notification_id}/cancelar")
async def cancel_notification(notification_id: UUID) -> dict[str, str]:
    notifications.cancel_notification(notification_id)
    return {"status": "CANCELADO"}
