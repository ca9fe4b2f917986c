"""
===============================================================================
TARJETA CRC — api/dependencies.py
===============================================================================

Responsabilidades:
    - Extraer el ID token desde `Authorization: Bearer <token>`.
    - Verificarlo con el TokenVerifier configurado (local / firebase).
    - Exponer dependencias FastAPI: require_identity, require_admin.
    - Setear subject_id en el contexto de logs.

Colaboradores:
    - container.get_token_verifier / get_profile_repository
    - identity.tokens.VerifiedIdentity
    - domain.profile_policy.can_moderate
    - crosscutting.error_responses: unauthorized / forbidden
===============================================================================
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, Header, Request

from ..container import get_profile_repository, get_token_verifier
from ..context import set_subject_context
from ..crosscutting.error_responses import forbidden, unauthorized
from ..domain.entities import Profile
from ..domain.profile_policy import can_moderate
from ..domain.repositories import ProfileRepository
from ..identity.tokens import TokenVerifier, VerifiedIdentity


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def require_identity() -> Callable:
    """Dependency FastAPI: requiere un ID token válido."""

    def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
        verifier: TokenVerifier = Depends(get_token_verifier),
    ) -> VerifiedIdentity:
        token = _extract_bearer_token(authorization)
        if not token:
            raise unauthorized("Falta token Bearer.")

        identity = verifier.verify(token)
        set_subject_context(identity.subject_id)
        request.state.identity = identity
        return identity

    return dependency


def require_admin() -> Callable:
    """Dependency FastAPI: requiere un perfil admin activo."""

    def dependency(
        identity: VerifiedIdentity = Depends(require_identity()),
        profiles: ProfileRepository = Depends(get_profile_repository),
    ) -> Profile:
        actor = profiles.get_by_subject(identity.subject_id)
        if not can_moderate(actor):
            raise forbidden("Se requiere rol de administrador.")
        return actor

    return dependency
