"""
===============================================================================
USE CASE: List Users (admin)
===============================================================================

Business Goal:
    Dar al panel de administración la lista de perfiles, opcionalmente
    filtrada por rol o solo vendedores pendientes de aprobación.

Authorization:
    - Solo un admin activo.
===============================================================================
"""

from __future__ import annotations

from ...domain.entities import Profile, UserRole
from ...domain.profile_policy import can_moderate
from ...domain.repositories import ProfileRepository
from .profile_results import ProfileErrorCode, ProfileListResult, ProfileStoreError


class ListUsersUseCase:
    def __init__(self, profile_repository: ProfileRepository) -> None:
        self._profiles = profile_repository

    def execute(
        self,
        actor: Profile | None,
        *,
        role: UserRole | None = None,
        pending_only: bool = False,
    ) -> ProfileListResult:
        if not can_moderate(actor):
            return ProfileListResult(
                error=ProfileStoreError(
                    code=ProfileErrorCode.FORBIDDEN,
                    message="Solo un administrador puede listar usuarios.",
                )
            )
        return ProfileListResult(
            profiles=self._profiles.list_profiles(role=role, pending_only=pending_only)
        )
