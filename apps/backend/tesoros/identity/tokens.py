"""
===============================================================================
TARJETA CRC — identity/tokens.py
===============================================================================

Módulo:
    Emisión y verificación de ID tokens (JWT)

Responsabilidades:
    - Emitir ID tokens HS256 para el proveedor local (desarrollo/tests).
    - Verificar tokens en el borde HTTP del Profile Store:
        * LocalTokenVerifier: HS256 con secreto compartido.
        * FirebaseTokenVerifier: RS256 contra las JWKS públicas de Google.
    - Traducir fallas a 401 estándar (unauthorized).

Colaboradores:
    - PyJWT (jwt.encode / jwt.decode / PyJWKClient)
    - crosscutting.error_responses.unauthorized
    - identity/local_provider.py (emite), api/dependencies.py (verifica)

Decisiones:
    - Claims mínimos: sub, email, email_verified, iss, iat, exp, jti.
    - jti aleatorio: dos tokens emitidos en el mismo segundo son distintos.
    - No loguear tokens.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol
from uuid import uuid4

import jwt

from ..crosscutting.error_responses import unauthorized
from ..crosscutting.logger import logger
from ..domain.entities import Identity

# ---------------------------------------------------------------------------
# Constantes
# ---------------------------------------------------------------------------

LOCAL_TOKEN_ALGORITHM: str = "HS256"
FIREBASE_TOKEN_ALGORITHM: str = "RS256"

FIREBASE_JWKS_URL: str = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)
FIREBASE_ISSUER_PREFIX: str = "https://securetoken.google.com/"

CLAIM_SUB: str = "sub"
CLAIM_EMAIL: str = "email"
CLAIM_EMAIL_VERIFIED: str = "email_verified"
CLAIM_ISS: str = "iss"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_JTI: str = "jti"


@dataclass(frozen=True, slots=True)
class VerifiedIdentity:
    """Principal extraído de un token válido."""

    subject_id: str
    email: str
    email_verified: bool


class TokenVerifier(Protocol):
    def verify(self, token: str) -> VerifiedIdentity: ...


# ---------------------------------------------------------------------------
# Emisión (proveedor local)
# ---------------------------------------------------------------------------


def issue_local_token(
    identity: Identity, *, secret: str, issuer: str, ttl_seconds: int
) -> str:
    """Emite un ID token HS256 para una identidad local."""
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        CLAIM_SUB: identity.subject_id,
        CLAIM_EMAIL: identity.email,
        CLAIM_EMAIL_VERIFIED: identity.email_verified,
        CLAIM_ISS: issuer,
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_EXP: int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        CLAIM_JTI: uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=LOCAL_TOKEN_ALGORITHM)


def _to_verified(payload: dict[str, Any]) -> VerifiedIdentity:
    subject_id = payload.get(CLAIM_SUB)
    if not subject_id:
        raise unauthorized("Token inválido.")
    return VerifiedIdentity(
        subject_id=str(subject_id),
        email=str(payload.get(CLAIM_EMAIL) or ""),
        email_verified=bool(payload.get(CLAIM_EMAIL_VERIFIED, False)),
    )


# ---------------------------------------------------------------------------
# Verificación
# ---------------------------------------------------------------------------


class LocalTokenVerifier:
    """Verifica tokens emitidos por LocalIdentityService."""

    def __init__(self, *, secret: str, issuer: str) -> None:
        self._secret = secret
        self._issuer = issuer

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[LOCAL_TOKEN_ALGORITHM],
                issuer=self._issuer,
                options={"require": [CLAIM_SUB, CLAIM_EXP, CLAIM_ISS]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise unauthorized("Token expirado.") from exc
        except jwt.InvalidTokenError as exc:
            raise unauthorized("Token inválido.") from exc
        return _to_verified(payload)


class FirebaseTokenVerifier:
    """
    Verifica ID tokens de Firebase Auth.

    Reglas:
      - Firma RS256 con una clave de las JWKS públicas (cacheadas por PyJWKClient).
      - aud == project_id, iss == https://securetoken.google.com/<project_id>.
    """

    def __init__(
        self, *, project_id: str, jwks_client: jwt.PyJWKClient | None = None
    ) -> None:
        if not project_id:
            raise ValueError("FIREBASE_PROJECT_ID is required")
        self._project_id = project_id
        self._jwks = jwks_client or jwt.PyJWKClient(FIREBASE_JWKS_URL)

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            signing_key = self._jwks.get_signing_key_from_jwt(token)
        except jwt.PyJWKClientError as exc:
            logger.warning(
                "No se pudo resolver la clave de firma del token",
                extra={"error_type": type(exc).__name__},
            )
            raise unauthorized("Token inválido.") from exc
        except jwt.InvalidTokenError as exc:
            raise unauthorized("Token inválido.") from exc

        try:
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=[FIREBASE_TOKEN_ALGORITHM],
                audience=self._project_id,
                issuer=f"{FIREBASE_ISSUER_PREFIX}{self._project_id}",
                options={"require": [CLAIM_SUB, CLAIM_EXP, CLAIM_IAT]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise unauthorized("Token expirado.") from exc
        except jwt.InvalidTokenError as exc:
            raise unauthorized("Token inválido.") from exc
        return _to_verified(payload)
