"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/profile.py
============================================================
Class: InMemoryProfileRepository

Responsibilities:
  - Almacenar perfiles en memoria (servicio local / tests).
  - Garantizar un único Profile por subject_id (create_if_absent atómico).
  - Actualizar solo los campos provistos (last-write-wins por campo).
  - Mantener ordering determinístico: created_at ASC, email ASC.

Collaborators:
  - domain.entities.Profile, UserRole
  - domain.repositories.ProfileRepository (contrato a implementar)

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock (FastAPI ejecuta endpoints
    sync en threadpool).
  - Repo puro: NO aplica reglas de negocio; las decide el caso de uso.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from ....domain.entities import Profile, UserRole
from ....domain.repositories import ProfileRepository


class InMemoryProfileRepository(ProfileRepository):
    """
    Repositorio in-memory, thread-safe, para Profiles.

    Modelo mental:
    - _profiles es la "tabla" (UUID -> Profile).
    - _by_subject es el índice único por subject_id.
    """

    def __init__(self, profiles: Iterable[Profile] | None = None) -> None:
        self._lock = Lock()
        self._profiles: Dict[UUID, Profile] = {}
        self._by_subject: Dict[str, UUID] = {}
        for profile in profiles or []:
            self._profiles[profile.id] = profile
            self._by_subject[profile.subject_id] = profile.id

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _sorted(items: Iterable[Profile]) -> List[Profile]:
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(items, key=lambda p: (p.created_at or oldest, p.email))

    # =========================================================
    # Lecturas
    # =========================================================
    def get_by_subject(self, subject_id: str) -> Optional[Profile]:
        with self._lock:
            profile_id = self._by_subject.get(subject_id)
            return self._profiles.get(profile_id) if profile_id else None

    def get_by_id(self, profile_id: UUID) -> Optional[Profile]:
        with self._lock:
            return self._profiles.get(profile_id)

    def get_by_email(self, email: str) -> Optional[Profile]:
        normalized = (email or "").strip().lower()
        with self._lock:
            for profile in self._profiles.values():
                if profile.email.lower() == normalized:
                    return profile
        return None

    def list_profiles(
        self,
        *,
        role: UserRole | None = None,
        pending_only: bool = False,
    ) -> List[Profile]:
        with self._lock:
            values = list(self._profiles.values())

        def predicate(p: Profile) -> bool:
            if role is not None and p.role != role:
                return False
            if pending_only and not p.is_pending_approval:
                return False
            return True

        return self._sorted(p for p in values if predicate(p))

    # =========================================================
    # Escrituras
    # =========================================================
    def create_if_absent(self, profile: Profile) -> tuple[Profile, bool]:
        """
        Crea el perfil si el subject_id no tiene uno.

        El check y el insert ocurren bajo el mismo lock: dos registros
        concurrentes del mismo sujeto producen un solo registro.
        """
        with self._lock:
            existing_id = self._by_subject.get(profile.subject_id)
            if existing_id is not None:
                return self._profiles[existing_id], False

            now = self._now()
            created = replace(profile, created_at=now, updated_at=now)
            self._profiles[created.id] = created
            self._by_subject[created.subject_id] = created.id
            return created, True

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
    ) -> Optional[Profile]:
        candidates = {
            "name": name,
            "avatar": avatar,
            "role": role,
            "is_approved": is_approved,
            "needs_role_selection": needs_role_selection,
            "is_active": is_active,
        }
        changes = {k: v for k, v in candidates.items() if v is not None}

        with self._lock:
            current = self._profiles.get(profile_id)
            if current is None:
                return None
            if not changes:
                return current
            updated = replace(current, **changes, updated_at=self._now())
            self._profiles[profile_id] = updated
            return updated
