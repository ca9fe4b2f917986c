"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Responsabilidades:
    - Centralizar exports para imports limpios en application/api/client.
    - Mantener estable el “surface area” del dominio.

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .entities import (
    Identity,
    Notification,
    NotificationType,
    Profile,
    ProviderId,
    UserRole,
    normalize_role,
)
from .profile_policy import ModerationAction
from .repositories import NotificationRepository, ProfileRepository

__all__ = [
    "Identity",
    "Notification",
    "NotificationType",
    "Profile",
    "ProviderId",
    "UserRole",
    "normalize_role",
    "ModerationAction",
    "NotificationRepository",
    "ProfileRepository",
]
