"""
===============================================================================
TARJETA CRC — api/auth_routes.py (Perfil del usuario autenticado)
===============================================================================

Responsabilidades:
  - GET  /auth/me        -> perfil del sujeto del token (404 si no existe).
  - POST /auth/register  -> crear perfil (upsert idempotente; 201 si se creó).
  - PUT  /auth/profile   -> patch parcial del perfil propio.

Patrones aplicados:
  - Thin Controller: orquesta dependencias, no contiene reglas de negocio.
  - Error Mapping: ProfileStoreError -> RFC7807.

Colaboradores:
  - api.dependencies.require_identity
  - application.usecases (register / get / update)
  - interfaces.schemas (RegisterProfileIn, UpdateProfileIn, ProfileOut)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from ..application.usecases import (
    GetMyProfileUseCase,
    RegisterProfileInput,
    RegisterProfileUseCase,
    UpdateMyProfileUseCase,
    UpdateProfileInput,
)
from ..container import (
    get_get_my_profile_use_case,
    get_register_profile_use_case,
    get_update_my_profile_use_case,
)
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..identity.tokens import VerifiedIdentity
from ..interfaces.schemas import ProfileOut, RegisterProfileIn, UpdateProfileIn
from .dependencies import require_identity
from .exception_handlers import raise_for_profile_error

router = APIRouter(prefix="/auth", tags=["auth"], responses=OPENAPI_ERROR_RESPONSES)


@router.get("/me", response_model=ProfileOut, response_model_exclude_none=True)
def me(
    identity: VerifiedIdentity = Depends(require_identity()),
    use_case: GetMyProfileUseCase = Depends(get_get_my_profile_use_case),
):
    result = use_case.execute(identity.subject_id)
    if result.error:
        raise_for_profile_error(result.error)
    return ProfileOut.from_domain(result.profile)


@router.post("/register", response_model=ProfileOut, response_model_exclude_none=True)
def register_profile(
    payload: RegisterProfileIn,
    response: Response,
    identity: VerifiedIdentity = Depends(require_identity()),
    use_case: RegisterProfileUseCase = Depends(get_register_profile_use_case),
):
    result = use_case.execute(
        RegisterProfileInput(
            subject_id=identity.subject_id,
            email=identity.email,
            name=payload.name,
            role=payload.role,
            avatar=payload.avatar,
        )
    )
    if result.error:
        raise_for_profile_error(result.error)
    response.status_code = 201 if result.created else 200
    return ProfileOut.from_domain(result.profile)


@router.put("/profile", response_model=ProfileOut, response_model_exclude_none=True)
def update_profile(
    payload: UpdateProfileIn,
    identity: VerifiedIdentity = Depends(require_identity()),
    use_case: UpdateMyProfileUseCase = Depends(get_update_my_profile_use_case),
):
    result = use_case.execute(
        UpdateProfileInput(
            subject_id=identity.subject_id,
            name=payload.name,
            avatar=payload.avatar,
            role=payload.role,
            needs_role_selection=payload.needs_role_selection,
        )
    )
    if result.error:
        raise_for_profile_error(result.error)
    return ProfileOut.from_domain(result.profile)
