"""Schemas wire para notificaciones de moderación."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from ...domain.entities import Notification, NotificationType
from .profiles import WireModel


class NotificationOut(WireModel):
    id: UUID
    user_id: UUID
    title: str
    message: str
    type: NotificationType
    read: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationOut":
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            read=notification.read,
            created_at=notification.created_at,
        )
