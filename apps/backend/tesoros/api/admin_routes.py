"""
===============================================================================
TARJETA CRC — api/admin_routes.py (Moderación de usuarios)
===============================================================================

Responsabilidades:
  - GET /admin/users                      -> listar perfiles (filtros role/pending).
  - PUT /admin/users/{id}/{acción}        -> approve | reject | suspend | reactivate.
  - Aplicar autorización estricta (admin activo).

Patrones aplicados:
  - Thin Controller: reglas de transición en domain.profile_policy.
  - Error Mapping: ProfileStoreError -> RFC7807.

Colaboradores:
  - application.usecases.ListUsersUseCase / ModerateUserUseCase
  - api.dependencies.require_admin
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response

from ..application.usecases import ListUsersUseCase, ModerateUserUseCase
from ..container import get_list_users_use_case, get_moderate_user_use_case
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..domain.entities import Profile, UserRole
from ..domain.profile_policy import ModerationAction
from ..interfaces.schemas import ModerationIn, ProfileOut
from .dependencies import require_admin
from .exception_handlers import raise_for_profile_error

router = APIRouter(prefix="/admin", tags=["admin"], responses=OPENAPI_ERROR_RESPONSES)


@router.get(
    "/users", response_model=list[ProfileOut], response_model_exclude_none=True
)
def list_users(
    role: UserRole | None = Query(None),
    pending: bool = Query(False, description="Solo vendedores pendientes"),
    actor: Profile = Depends(require_admin()),
    use_case: ListUsersUseCase = Depends(get_list_users_use_case),
):
    result = use_case.execute(actor, role=role, pending_only=pending)
    if result.error:
        raise_for_profile_error(result.error)
    return [ProfileOut.from_domain(profile) for profile in result.profiles]


@router.put("/users/{user_id}/{action}", status_code=204)
def moderate_user(
    user_id: UUID,
    action: ModerationAction,
    payload: ModerationIn | None = Body(None),
    actor: Profile = Depends(require_admin()),
    use_case: ModerateUserUseCase = Depends(get_moderate_user_use_case),
):
    result = use_case.execute(
        action=action,
        user_id=user_id,
        actor=actor,
        reason=payload.reason if payload else None,
    )
    if result.error:
        raise_for_profile_error(result.error)
    return Response(status_code=204)
