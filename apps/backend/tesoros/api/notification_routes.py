"""Rutas de notificaciones del usuario autenticado (/notifications)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response

from ..application.usecases import (
    ListMyNotificationsUseCase,
    MarkNotificationReadUseCase,
)
from ..container import (
    get_list_my_notifications_use_case,
    get_mark_notification_read_use_case,
)
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..identity.tokens import VerifiedIdentity
from ..interfaces.schemas import NotificationOut
from .dependencies import require_identity
from .exception_handlers import raise_for_profile_error

router = APIRouter(
    prefix="/notifications", tags=["notifications"], responses=OPENAPI_ERROR_RESPONSES
)


@router.get("", response_model=list[NotificationOut], response_model_exclude_none=True)
def list_notifications(
    identity: VerifiedIdentity = Depends(require_identity()),
    use_case: ListMyNotificationsUseCase = Depends(get_list_my_notifications_use_case),
):
    result = use_case.execute(identity.subject_id)
    if result.error:
        raise_for_profile_error(result.error)
    return [NotificationOut.from_domain(n) for n in result.notifications]


@router.put("/{notification_id}/read", status_code=204)
def mark_notification_read(
    notification_id: UUID,
    identity: VerifiedIdentity = Depends(require_identity()),
    use_case: MarkNotificationReadUseCase = Depends(
        get_mark_notification_read_use_case
    ),
):
    error = use_case.execute(identity.subject_id, notification_id)
    if error:
        raise_for_profile_error(error)
    return Response(status_code=204)
