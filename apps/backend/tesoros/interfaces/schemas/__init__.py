"""
===============================================================================
TARJETA CRC — interfaces/schemas/__init__.py
===============================================================================

Módulo:
    Contratos wire del Profile Store (DTOs Pydantic, JSON camelCase)

Responsabilidades:
    - Definir el formato JSON compartido por el servicio (api/*) y el
      cliente HTTP (client/profile_store.py): un único contrato, dos lados.
    - Mapear DTO <-> entidades de dominio.

Reglas:
    - Schemas NO deben importar infraestructura ni FastAPI.
    - Solo tipos y validación de input/output.
===============================================================================
"""

from .notifications import NotificationOut
from .profiles import ModerationIn, ProfileOut, RegisterProfileIn, UpdateProfileIn

__all__ = [
    "ModerationIn",
    "NotificationOut",
    "ProfileOut",
    "RegisterProfileIn",
    "UpdateProfileIn",
]
