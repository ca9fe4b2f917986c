"""USE CASE: Get My Profile (GET /auth/me)."""

from __future__ import annotations

from ...domain.repositories import ProfileRepository
from .profile_results import ProfileErrorCode, ProfileResult, ProfileStoreError


class GetMyProfileUseCase:
    """Devuelve el perfil del sujeto autenticado o NOT_FOUND si aún no existe."""

    def __init__(self, profile_repository: ProfileRepository) -> None:
        self._profiles = profile_repository

    def execute(self, subject_id: str) -> ProfileResult:
        profile = self._profiles.get_by_subject(subject_id)
        if profile is None:
            return ProfileResult(
                error=ProfileStoreError(
                    code=ProfileErrorCode.NOT_FOUND,
                    message="El usuario aún no tiene perfil.",
                )
            )
        return ProfileResult(profile=profile)
