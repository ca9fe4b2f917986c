"""
===============================================================================
TARJETA CRC — client/pending_registration.py
===============================================================================

Módulo:
    Registro pendiente (borrador serializable de un registro en curso)

Responsabilidades:
    - Persistir en un único archivo JSON los datos de un registro multi-paso
      para que sobrevivan a un reinicio del cliente.
    - Merge parcial en save(); clear() explícito al crear el perfil y al
      hacer logout.

Colaboradores:
    - pydantic (formato del archivo)
    - crosscutting.config.Settings (client_storage_dir)
    - client/session.py (único escritor; resume_registration lo relee)

Formato:
    {"tesoros_temp_registration": {...campos...}}
===============================================================================
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.entities import ProviderId, UserRole

PENDING_REGISTRATION_KEY = "tesoros_temp_registration"
PENDING_REGISTRATION_FILE = "pending_registration.json"


class PendingRegistration(BaseModel):
    email: str | None = None
    password: str | None = None
    name: str | None = None
    role: UserRole | None = None
    provider_hint: ProviderId | None = None
    phone: str | None = None
    address: str | None = None
    bio: str | None = None
    updated_at: datetime | None = None

    @property
    def is_federated(self) -> bool:
        return self.provider_hint not in (None, ProviderId.PASSWORD)

    def is_complete(self) -> bool:
        """Un borrador federado solo necesita email + rol; el de password, todo."""
        if self.is_federated:
            return bool(self.email and self.role)
        return bool(self.email and self.password and self.name and self.role)


class PendingRegistrationStore:
    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PendingRegistrationStore":
        return cls(Path(settings.client_storage_dir) / PENDING_REGISTRATION_FILE)

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> PendingRegistration | None:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        try:
            data = json.loads(raw).get(PENDING_REGISTRATION_KEY)
            if data is None:
                return None
            return PendingRegistration.model_validate(data)
        except (ValueError, AttributeError, ValidationError) as exc:
            logger.warning(
                "Registro pendiente ilegible; se descarta",
                extra={"path": str(self._path), "error_type": type(exc).__name__},
            )
            return None

    def save(self, **fields: Any) -> PendingRegistration:
        """Merge de los campos no-None sobre el borrador existente."""
        current = self.get() or PendingRegistration()
        updates = {k: v for k, v in fields.items() if v is not None}
        updates["updated_at"] = datetime.now(timezone.utc)
        merged = current.model_copy(update=updates)
        merged = PendingRegistration.model_validate(merged.model_dump())

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(
            json.dumps(
                {PENDING_REGISTRATION_KEY: merged.model_dump(mode="json")},
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )
        os.replace(tmp, self._path)
        return merged

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
