"""
===============================================================================
TARJETA CRC — domain/entities.py (Entidades de identidad y acceso)
===============================================================================

Responsabilidades:
  - Definir Identity (principal del proveedor externo, vive solo en la sesión).
  - Definir Profile (registro durable de autorización: rol, aprobación,
    onboarding, suspensión).
  - Definir Notification (efecto lateral de la moderación).
  - Normalizar roles heredados de registros antiguos.

Colaboradores:
  - domain/profile_policy.py: reglas de transición sobre Profile.
  - interfaces/schemas.py: mapeo wire (camelCase) <-> entidades.
  - infrastructure/repositories/in_memory/*: almacenamiento.

Notas:
  - Entidades inmutables (frozen): los cambios se hacen con dataclasses.replace
    para que los snapshots publicados por la sesión nunca muten.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class UserRole(str, Enum):
    """Roles del marketplace."""

    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


# admin solo existe por aprovisionamiento fuera de banda (seed).
SELF_ASSIGNABLE_ROLES: frozenset[UserRole] = frozenset(
    {UserRole.BUYER, UserRole.SELLER}
)

# Valores de registros antiguos -> (rol, aprobación forzada o None).
_LEGACY_ROLES: dict[str, tuple[UserRole, bool | None]] = {
    "comprador": (UserRole.BUYER, None),
    "vendedor": (UserRole.SELLER, None),
    "pending_vendor": (UserRole.SELLER, False),
}


def normalize_role(value: str) -> tuple[UserRole, bool | None]:
    """
    Resuelve un valor de rol (actual o heredado).

    Retorna (rol, aprobación_forzada). aprobación_forzada es None salvo para
    'pending_vendor', que implica vendedor pendiente de aprobación.

    Raises:
        ValueError: si el valor no corresponde a ningún rol conocido.
    """
    raw = (value or "").strip().lower()
    if raw in _LEGACY_ROLES:
        return _LEGACY_ROLES[raw]
    return UserRole(raw), None


class ProviderId(str, Enum):
    PASSWORD = "password"
    GOOGLE = "google.com"


@dataclass(frozen=True, slots=True)
class Identity:
    """Principal autenticado por el proveedor externo."""

    subject_id: str
    email: str
    email_verified: bool = False
    display_name: str | None = None
    photo_url: str | None = None
    provider_id: ProviderId = ProviderId.PASSWORD


@dataclass(frozen=True, slots=True)
class Profile:
    """Registro durable de autorización, uno por subject_id."""

    id: UUID
    subject_id: str
    email: str
    name: str
    role: UserRole
    is_approved: bool
    needs_role_selection: bool = False
    is_active: bool = True
    avatar: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending_approval(self) -> bool:
        return self.role == UserRole.SELLER and not self.is_approved

    @property
    def is_suspended(self) -> bool:
        return not self.is_active


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    """Mensaje para el usuario afectado por una transición de moderación."""

    id: UUID
    user_id: UUID
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    read: bool = False
    created_at: datetime | None = None
