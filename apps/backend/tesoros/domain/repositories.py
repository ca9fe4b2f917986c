"""
===============================================================================
TARJETA CRC — domain/repositories.py (Puertos de persistencia)
===============================================================================

Responsabilidades:
  - Declarar los contratos (Protocol) que los casos de uso necesitan.
  - Mantener el dominio independiente de la tecnología de persistencia.

Colaboradores:
  - application/usecases/*: dependen de estos puertos.
  - infrastructure/repositories/in_memory/*: implementaciones.

Contratos clave:
  - create_if_absent es atómico: garantiza un único Profile por subject_id
    aunque dos registros concurrentes lleguen a la vez.
  - update_fields solo toca los campos provistos (last-write-wins por campo).
===============================================================================
"""

from __future__ import annotations

from typing import List, Optional, Protocol
from uuid import UUID

from .entities import Notification, Profile, UserRole


class ProfileRepository(Protocol):
    def get_by_subject(self, subject_id: str) -> Optional[Profile]: ...

    def get_by_id(self, profile_id: UUID) -> Optional[Profile]: ...

    def get_by_email(self, email: str) -> Optional[Profile]: ...

    def create_if_absent(self, profile: Profile) -> tuple[Profile, bool]:
        """Crea el perfil si no existe uno para su subject_id.

        Retorna (perfil vigente, creado).
        """
        ...

    def update_fields(
        self,
        profile_id: UUID,
        *,
        name: str | None = None,
        avatar: str | None = None,
        role: UserRole | None = None,
        is_approved: bool | None = None,
        needs_role_selection: bool | None = None,
        is_active: bool | None = None,
    ) -> Optional[Profile]: ...

    def list_profiles(
        self,
        *,
        role: UserRole | None = None,
        pending_only: bool = False,
    ) -> List[Profile]: ...


class NotificationRepository(Protocol):
    def enqueue(self, notification: Notification) -> None: ...

    def list_for_user(self, user_id: UUID) -> List[Notification]: ...

    def mark_read(self, notification_id: UUID, user_id: UUID) -> bool: ...
