"""
===============================================================================
USE CASE: Moderate User (approve / reject / suspend / reactivate)
===============================================================================

Business Goal:
    Permitir que un administrador resuelva solicitudes de vendedor y
    suspenda o reactive cuentas. Cada transición efectiva notifica al
    usuario afectado.

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) Solo un admin activo modera => FORBIDDEN.
R2) Perfil inexistente => NOT_FOUND.
R3) No se suspende a un admin ni al propio actor => FORBIDDEN.
R4) Transición inválida (p. ej. aprobar a un comprador) => CONFLICT.
R5) Si el perfil ya está en el estado destino: no-op, sin notificación.
R6) La notificación es best-effort: si falla, la moderación se mantiene.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
    ModerateUserUseCase

Collaborators:
    - domain.profile_policy (transiciones)
    - ProfileRepository.update_fields
    - NotificationRepository.enqueue
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from ...crosscutting.logger import logger
from ...domain.entities import Notification, NotificationType, Profile
from ...domain.profile_policy import (
    ModerationAction,
    can_be_suspended,
    can_moderate,
    moderation_changes,
)
from ...domain.repositories import NotificationRepository, ProfileRepository
from .profile_results import ModerationResult, ProfileErrorCode, ProfileStoreError

_NOTIFICATION_COPY: dict[ModerationAction, tuple[str, str, NotificationType]] = {
    ModerationAction.APPROVE: (
        "Cuenta de vendedor aprobada",
        "¡Tu cuenta de vendedor fue aprobada! Ya puedes publicar tus productos.",
        NotificationType.SUCCESS,
    ),
    ModerationAction.REJECT: (
        "Solicitud de vendedor rechazada",
        "Tu solicitud para vender fue rechazada. Puedes seguir comprando en Tesoros Chocó.",
        NotificationType.WARNING,
    ),
    ModerationAction.SUSPEND: (
        "Cuenta suspendida",
        "Tu cuenta fue suspendida. Contacta a soporte si crees que es un error.",
        NotificationType.ERROR,
    ),
    ModerationAction.REACTIVATE: (
        "Cuenta reactivada",
        "Tu cuenta fue reactivada. ¡Bienvenido de nuevo!",
        NotificationType.SUCCESS,
    ),
}


def build_moderation_notification(
    user_id: UUID, action: ModerationAction, reason: str | None = None
) -> Notification:
    title, message, kind = _NOTIFICATION_COPY[action]
    if reason and reason.strip():
        message = f"{message} Motivo: {reason.strip()}"
    return Notification(
        id=uuid4(),
        user_id=user_id,
        title=title,
        message=message,
        type=kind,
        created_at=datetime.now(timezone.utc),
    )


class ModerateUserUseCase:
    def __init__(
        self,
        profile_repository: ProfileRepository,
        notification_repository: NotificationRepository,
    ) -> None:
        self._profiles = profile_repository
        self._notifications = notification_repository

    def execute(
        self,
        *,
        action: ModerationAction,
        user_id: UUID,
        actor: Profile | None,
        reason: str | None = None,
    ) -> ModerationResult:
        if not can_moderate(actor):
            return self._error(
                ProfileErrorCode.FORBIDDEN,
                "Solo un administrador puede moderar usuarios.",
            )

        target = self._profiles.get_by_id(user_id)
        if target is None:
            return self._not_found()

        if action == ModerationAction.SUSPEND and not can_be_suspended(target, actor):
            return self._error(
                ProfileErrorCode.FORBIDDEN,
                "No se puede suspender a un administrador ni a tu propia cuenta.",
            )

        changes = moderation_changes(target, action)
        if changes is None:
            return self._error(
                ProfileErrorCode.CONFLICT,
                f"La acción '{action.value}' no aplica al estado actual del usuario.",
            )
        if not changes:
            return ModerationResult(profile=target, changed=False)

        updated = self._profiles.update_fields(target.id, **changes)
        if updated is None:
            return self._not_found()

        logger.info(
            "Moderación aplicada",
            extra={
                "action": action.value,
                "target_id": str(updated.id),
                "actor_id": str(actor.id),
            },
        )

        notified = self._notify(updated, action, reason)
        return ModerationResult(profile=updated, changed=True, notified=notified)

    def _notify(
        self, profile: Profile, action: ModerationAction, reason: str | None
    ) -> bool:
        try:
            self._notifications.enqueue(
                build_moderation_notification(profile.id, action, reason)
            )
        except Exception:
            logger.exception(
                "No se pudo encolar la notificación de moderación",
                extra={"action": action.value, "target_id": str(profile.id)},
            )
            return False
        return True

    @staticmethod
    def _not_found() -> ModerationResult:
        return ModerationResult(
            error=ProfileStoreError(
                code=ProfileErrorCode.NOT_FOUND, message="Usuario no encontrado."
            )
        )

    @staticmethod
    def _error(code: ProfileErrorCode, message: str) -> ModerationResult:
        return ModerationResult(error=ProfileStoreError(code=code, message=message))
