"""Committee-side management of the notification queue.

The queue is only written here; delivering the entries (push, e-mail) is the
job of an external worker that reads ``notifications_queue``.
"""

from __future__ import annotations

import logging
from uuid import UUID

from comissao.core.constants import NOTIFICATION_KIND_CUSTOM
from comissao.core.errors import InvalidSubmissionError, RecordNotFound
from comissao.db.stores import NotificationQueue, SupabaseNotificationQueue
from comissao.models.enums import NotificationStatus
from comissao.models.notification import Notification, NotificationCreate

logger = logging.getLogger(__name__)


def enqueue_custom(
    payload: NotificationCreate, queue: NotificationQueue | None = None
) -> UUID | None:
    """Enqueue a free-form notification written by the committee.

    Unlike the post-commit notifications of moderation, a failure here is the
    whole operation failing, so it propagates.
    """
    title = payload.title.strip()
    body = payload.body.strip()
    if not title or not body:
        raise InvalidSubmissionError("Informe título e corpo da notificação.")

    update = {"title": title, "body": body}
    if "kind" not in payload.model_fields_set:
        update["kind"] = NOTIFICATION_KIND_CUSTOM

    queue = queue or SupabaseNotificationQueue()
    notification = payload.model_copy(update=update)
    notification_id = queue.enqueue(notification)
    logger.info(
        "custom_notification_enqueued",
        extra={"notification_id": str(notification_id), "kind": notification.kind},
    )
    return notification_id


def _set_status(
    notification_id: UUID,
    status: NotificationStatus,
    queue: NotificationQueue | None,
) -> None:
    queue = queue or SupabaseNotificationQueue()
    if not queue.set_status(notification_id, status):
        raise RecordNotFound(f"Notificação {notification_id} não encontrada.")
    logger.info(
        "notification_status_changed",
        extra={"notification_id": str(notification_id), "status": status.value},
    )


def retry_notification(notification_id: UUID, queue: NotificationQueue | None = None) -> None:
    """Put a failed or sent entry back in the queue."""
    _set_status(notification_id, NotificationStatus.pending, queue)


def cancel_notification(notification_id: UUID, queue: NotificationQueue | None = None) -> None:
    _set_status(notification_id, NotificationStatus.cancelled, queue)


def list_recent(limit: int = 20, queue: NotificationQueue | None = None) -> list[Notification]:
    queue = queue or SupabaseNotificationQueue()
    return queue.list_recent(limit)
