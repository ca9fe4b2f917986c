"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/notification.py
============================================================
Class: InMemoryNotificationRepository

Responsibilities:
  - Encolar notificaciones de moderación por usuario.
  - Listar (más nuevas primero) y marcar como leídas.

Collaborators:
  - domain.entities.Notification
  - domain.repositories.NotificationRepository

Constraints:
  - Thread-safe: acceso protegido por Lock.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List
from uuid import UUID

from ....domain.entities import Notification
from ....domain.repositories import NotificationRepository


class InMemoryNotificationRepository(NotificationRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._notifications: Dict[UUID, Notification] = {}

    def enqueue(self, notification: Notification) -> None:
        stored = (
            notification
            if notification.created_at is not None
            else replace(notification, created_at=datetime.now(timezone.utc))
        )
        with self._lock:
            self._notifications[stored.id] = stored

    def list_for_user(self, user_id: UUID) -> List[Notification]:
        with self._lock:
            values = [n for n in self._notifications.values() if n.user_id == user_id]
        return sorted(values, key=lambda n: n.created_at, reverse=True)

    def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        """False si no existe o pertenece a otro usuario."""
        with self._lock:
            current = self._notifications.get(notification_id)
            if current is None or current.user_id != user_id:
                return False
            if not current.read:
                self._notifications[notification_id] = replace(current, read=True)
            return True
