"""USE CASES: notificaciones del usuario autenticado (listar / marcar leída)."""

from __future__ import annotations

from uuid import UUID

from ...domain.repositories import NotificationRepository, ProfileRepository
from .profile_results import (
    NotificationListResult,
    ProfileErrorCode,
    ProfileStoreError,
)


def _no_profile() -> ProfileStoreError:
    return ProfileStoreError(
        code=ProfileErrorCode.NOT_FOUND, message="El usuario aún no tiene perfil."
    )


class ListMyNotificationsUseCase:
    def __init__(
        self,
        profile_repository: ProfileRepository,
        notification_repository: NotificationRepository,
    ) -> None:
        self._profiles = profile_repository
        self._notifications = notification_repository

    def execute(self, subject_id: str) -> NotificationListResult:
        profile = self._profiles.get_by_subject(subject_id)
        if profile is None:
            return NotificationListResult(error=_no_profile())
        return NotificationListResult(
            notifications=self._notifications.list_for_user(profile.id)
        )


class MarkNotificationReadUseCase:
    """Marca como leída una notificación propia; la ajena se reporta NOT_FOUND."""

    def __init__(
        self,
        profile_repository: ProfileRepository,
        notification_repository: NotificationRepository,
    ) -> None:
        self._profiles = profile_repository
        self._notifications = notification_repository

    def execute(self, subject_id: str, notification_id: UUID) -> ProfileStoreError | None:
        profile = self._profiles.get_by_subject(subject_id)
        if profile is None:
            return _no_profile()
        if not self._notifications.mark_read(notification_id, profile.id):
            return ProfileStoreError(
                code=ProfileErrorCode.NOT_FOUND,
                message="Notificación no encontrada.",
            )
        return None
