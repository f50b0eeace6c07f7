"""Pydantic models for the ``notifications_queue`` table."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from comissao.models.enums import NotificationStatus


class NotificationCreate(BaseModel):
    """Payload for enqueuing a notification."""
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)
    kind: str = "RESUMO"
    audience: str | None = None  # defaults to settings.NOTIFY_DEFAULT_AUDIENCE
    metadata: dict[str, Any] | None = None


class Notification(BaseModel):
    """Full queue entry returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    body: str
    kind: str
    audience: str
    metadata: dict[str, Any] | None = None
    status: NotificationStatus = NotificationStatus.pending
    error_message: str | None = None
    sent_at: datetime | None = None
    created_at: datetime | None = None
