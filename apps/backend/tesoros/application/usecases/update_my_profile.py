"""
===============================================================================
USE CASE: Update My Profile (PUT /auth/profile)
===============================================================================

Business Goal:
    Aplicar un patch parcial sobre el perfil del sujeto autenticado:
    nombre, avatar y, solo durante el onboarding, el rol.

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) Patch vacío => no-op (devuelve el perfil vigente).
R2) Cuenta suspendida => FORBIDDEN.
R3) role:
      - admin nunca => FORBIDDEN.
      - solo cambia mientras needs_role_selection=True; al elegirlo se
        recalcula is_approved y se limpia needs_role_selection.
      - fuera del onboarding, un rol distinto => FORBIDDEN.
R4) needs_role_selection solo puede pasar a False, y solo junto a un rol
    cuando aún no se eligió uno.
R5) Campos ausentes no se tocan (last-write-wins por campo).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...crosscutting.logger import logger
from ...domain.entities import Profile, UserRole
from ...domain.profile_policy import initial_approval, is_self_assignable
from ...domain.repositories import ProfileRepository
from .profile_results import ProfileErrorCode, ProfileResult, ProfileStoreError


@dataclass(frozen=True)
class UpdateProfileInput:
    subject_id: str
    name: str | None = None
    avatar: str | None = None
    role: UserRole | None = None
    needs_role_selection: bool | None = None

    def is_empty(self) -> bool:
        return (
            self.name is None
            and self.avatar is None
            and self.role is None
            and self.needs_role_selection is None
        )


class UpdateMyProfileUseCase:
    def __init__(self, profile_repository: ProfileRepository) -> None:
        self._profiles = profile_repository

    def execute(self, data: UpdateProfileInput) -> ProfileResult:
        profile = self._profiles.get_by_subject(data.subject_id)
        if profile is None:
            return self._error(
                ProfileErrorCode.NOT_FOUND, "El usuario aún no tiene perfil."
            )

        if data.is_empty():
            return ProfileResult(profile=profile)

        if profile.is_suspended:
            return self._error(ProfileErrorCode.FORBIDDEN, "Tu cuenta está suspendida.")

        changes: dict[str, Any] = {}

        if data.name is not None:
            name = data.name.strip()
            if not name:
                return self._error(
                    ProfileErrorCode.VALIDATION_ERROR, "El nombre no puede estar vacío."
                )
            changes["name"] = name

        if data.avatar is not None:
            changes["avatar"] = data.avatar

        role_error = self._role_changes(profile, data, changes)
        if role_error is not None:
            return ProfileResult(error=role_error)

        if not changes:
            return ProfileResult(profile=profile)

        updated = self._profiles.update_fields(profile.id, **changes)
        if updated is None:
            return self._error(ProfileErrorCode.NOT_FOUND, "Perfil no encontrado.")

        logger.info(
            "Perfil actualizado",
            extra={"profile_id": str(updated.id), "fields": sorted(changes)},
        )
        return ProfileResult(profile=updated)

    @staticmethod
    def _role_changes(
        profile: Profile, data: UpdateProfileInput, changes: dict[str, Any]
    ) -> ProfileStoreError | None:
        if data.needs_role_selection is True and not profile.needs_role_selection:
            return ProfileStoreError(
                code=ProfileErrorCode.VALIDATION_ERROR,
                message="La selección de rol no puede volver a activarse.",
            )

        if data.role is not None:
            if not is_self_assignable(data.role):
                return ProfileStoreError(
                    code=ProfileErrorCode.FORBIDDEN,
                    message="El rol admin no es auto-asignable.",
                )
            if profile.needs_role_selection:
                changes["role"] = data.role
                changes["is_approved"] = initial_approval(data.role)
                changes["needs_role_selection"] = False
                return None
            if data.role != profile.role:
                return ProfileStoreError(
                    code=ProfileErrorCode.FORBIDDEN,
                    message="El rol solo puede elegirse durante el registro.",
                )
            return None

        if data.needs_role_selection is False and profile.needs_role_selection:
            return ProfileStoreError(
                code=ProfileErrorCode.VALIDATION_ERROR,
                message="Debes elegir un rol para completar tu perfil.",
            )
        return None

    @staticmethod
    def _error(code: ProfileErrorCode, message: str) -> ProfileResult:
        return ProfileResult(error=ProfileStoreError(code=code, message=message))
