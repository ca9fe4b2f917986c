"""
===============================================================================
PROFILE USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Business Goal:
    Proveer modelos compartidos de resultados y errores para los casos de uso
    del Profile Store, con un contrato estable para:
      - validaciones
      - autorización
      - recursos no encontrados
      - transiciones inválidas (conflictos)

Why:
    - Los use cases devuelven resultados tipados en lugar de lanzar
      excepciones, lo que simplifica el mapeo a RFC7807 en api/* y los tests.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
    profile_results models (module)

Responsibilities:
    - ProfileErrorCode: categorías estables.
    - ProfileStoreError: code + message.
    - ProfileResult / ProfileListResult / ModerationResult /
      NotificationListResult.

Collaborators:
    - domain.entities.Profile, Notification
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from ...domain.entities import Notification, Profile


class ProfileErrorCode(str, Enum):
    """
    Códigos:
      - VALIDATION_ERROR: inputs inválidos o incompletos.
      - FORBIDDEN: actor no autorizado (o rol no auto-asignable).
      - NOT_FOUND: perfil/notificación inexistente.
      - CONFLICT: transición inválida para el estado actual.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


@dataclass(frozen=True)
class ProfileStoreError:
    """Error de caso de uso (sin stack traces ni detalles de infraestructura)."""

    code: ProfileErrorCode
    message: str


@dataclass
class ProfileResult:
    """
    Resultado para casos de uso que retornan un único Profile.

    Contrato:
      - error is None => profile presente.
      - created indica si el registro se creó en esta llamada (upsert).
    """

    profile: Profile | None = None
    error: ProfileStoreError | None = None
    created: bool = False


@dataclass
class ProfileListResult:
    profiles: List[Profile] = field(default_factory=list)
    error: ProfileStoreError | None = None


@dataclass
class ModerationResult:
    """
    Resultado del comando de moderación.

    Campos:
      - changed: False si el perfil ya estaba en el estado destino.
      - notified: True si la notificación quedó encolada (best-effort).
    """

    profile: Profile | None = None
    changed: bool = False
    notified: bool = False
    error: ProfileStoreError | None = None


@dataclass
class NotificationListResult:
    notifications: List[Notification] = field(default_factory=list)
    error: ProfileStoreError | None = None
