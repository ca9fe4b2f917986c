"""
===============================================================================
TARJETA CRC — identity/provider.py
===============================================================================

Módulo:
    Puerto del Proveedor de Identidad (Identity Provider Adapter)

Responsabilidades:
    - Declarar el contrato async que la sesión del cliente usa para
      autenticar, registrar, verificar emails y obtener tokens.
    - Definir FederatedCredential (resultado del popup/redirect de Google).

Colaboradores:
    - identity/local_provider.py: adapter en proceso (argon2 + PyJWT).
    - identity/firebase_provider.py: adapter Identity Toolkit (httpx).
    - client/session.py: único consumidor.

Contrato de errores:
    - Toda falla se lanza como AuthError con un AuthErrorCode estable.
    - get_id_token() sin sesión lanza NotAuthenticatedError.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..domain.entities import Identity, ProviderId


@dataclass(frozen=True, slots=True)
class FederatedCredential:
    """Credencial devuelta por el proveedor federado (None = popup cerrado)."""

    provider_id: ProviderId = ProviderId.GOOGLE
    id_token: str | None = None
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None


class IdentityProvider(Protocol):
    async def authenticate(self, email: str, password: str) -> Identity: ...

    async def create_identity(
        self, email: str, password: str, display_name: str | None = None
    ) -> Identity: ...

    async def federated_sign_in(
        self, credential: FederatedCredential | None
    ) -> Identity: ...

    async def send_verification_email(self, identity: Identity) -> None: ...

    def current_identity(self) -> Identity | None: ...

    async def get_id_token(self) -> str:
        """Token vigente al momento de la llamada (nunca uno cacheado vencido)."""
        ...

    async def reload_identity(self) -> Identity | None: ...

    async def send_password_reset(self, email: str) -> None: ...

    async def sign_out(self) -> None: ...
