"""
===============================================================================
USE CASE: Register Profile (idempotent upsert)
===============================================================================

Business Goal:
    Crear el Profile de un sujeto recién autenticado con el rol que eligió,
    de forma idempotente: el cliente reintenta ante fallas de red y un
    segundo llamado nunca debe duplicar el registro ni cambiar un rol ya
    confirmado.

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) admin nunca es auto-asignable -> FORBIDDEN.
R2) Nombre obligatorio -> VALIDATION_ERROR.
R3) buyer queda aprobado; seller queda pendiente de aprobación.
R4) needs_role_selection queda en False.
R5) Si el sujeto ya tiene perfil:
      - con needs_role_selection=True: se resuelve con el rol elegido.
      - ya resuelto: se devuelve tal cual (idempotente).
R6) Un único perfil por subject_id, aún con llamadas concurrentes.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from ...crosscutting.logger import logger
from ...domain.entities import Profile, UserRole
from ...domain.profile_policy import initial_approval, is_self_assignable
from ...domain.repositories import ProfileRepository
from .profile_results import ProfileErrorCode, ProfileResult, ProfileStoreError


@dataclass(frozen=True)
class RegisterProfileInput:
    subject_id: str
    email: str
    name: str
    role: UserRole
    avatar: str | None = None


class RegisterProfileUseCase:
    def __init__(self, profile_repository: ProfileRepository) -> None:
        self._profiles = profile_repository

    def execute(self, data: RegisterProfileInput) -> ProfileResult:
        if not is_self_assignable(data.role):
            return self._error(
                ProfileErrorCode.FORBIDDEN, "El rol admin no es auto-asignable."
            )

        name = (data.name or "").strip()
        if not name:
            return self._error(
                ProfileErrorCode.VALIDATION_ERROR, "El nombre es obligatorio."
            )

        existing = self._profiles.get_by_subject(data.subject_id)
        if existing is not None:
            return self._resolve_existing(existing, data, name)

        candidate = Profile(
            id=uuid4(),
            subject_id=data.subject_id,
            email=(data.email or "").strip().lower(),
            name=name,
            role=data.role,
            is_approved=initial_approval(data.role),
            needs_role_selection=False,
            avatar=data.avatar,
        )
        profile, created = self._profiles.create_if_absent(candidate)
        if not created:
            # Otro request del mismo sujeto ganó la carrera.
            return self._resolve_existing(profile, data, name)

        logger.info(
            "Perfil creado",
            extra={
                "profile_id": str(profile.id),
                "role": profile.role.value,
                "is_approved": profile.is_approved,
            },
        )
        return ProfileResult(profile=profile, created=True)

    def _resolve_existing(
        self, existing: Profile, data: RegisterProfileInput, name: str
    ) -> ProfileResult:
        if not existing.needs_role_selection:
            return ProfileResult(profile=existing)

        updated = self._profiles.update_fields(
            existing.id,
            name=name,
            avatar=data.avatar,
            role=data.role,
            is_approved=initial_approval(data.role),
            needs_role_selection=False,
        )
        if updated is None:
            return self._error(ProfileErrorCode.NOT_FOUND, "Perfil no encontrado.")

        logger.info(
            "Selección de rol resuelta en registro",
            extra={"profile_id": str(updated.id), "role": updated.role.value},
        )
        return ProfileResult(profile=updated)

    @staticmethod
    def _error(code: ProfileErrorCode, message: str) -> ProfileResult:
        return ProfileResult(error=ProfileStoreError(code=code, message=message))
