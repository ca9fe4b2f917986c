"""
===============================================================================
TARJETA CRC — identity/firebase_provider.py
===============================================================================

Class: FirebaseIdentityProvider

Responsibilities:
  - Implementar IdentityProvider sobre la REST API de Identity Toolkit.
  - Mantener la sesión del cliente (ID token, refresh token, vencimiento).
  - Refrescar el ID token cuando está por vencer (get_id_token fresco).
  - Traducir los códigos crudos del proveedor a AuthErrorCode.

Collaborators:
  - httpx.AsyncClient (HTTP)
  - crosscutting.exceptions.auth_error_for
  - domain.entities.Identity

Notes:
  - Los códigos de error llegan como `{"error": {"message": "CODE : detalle"}}`.
  - Fallas de red y 5xx => PROVIDER_UNAVAILABLE.
===============================================================================
"""

from __future__ import annotations

import time
from typing import Any, Callable
from urllib.parse import urlencode

import httpx

from ..crosscutting.exceptions import (
    AuthError,
    AuthErrorCode,
    NotAuthenticatedError,
    auth_error_for,
)
from ..crosscutting.logger import logger
from ..domain.entities import Identity, ProviderId
from .provider import FederatedCredential

_IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts"
_SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Margen para refrescar antes del vencimiento real.
_TOKEN_REFRESH_MARGIN_SECONDS = 60.0

_PROVIDER_ERROR_CODES: dict[str, AuthErrorCode] = {
    "EMAIL_NOT_FOUND": AuthErrorCode.INVALID_CREDENTIALS,
    "INVALID_PASSWORD": AuthErrorCode.INVALID_CREDENTIALS,
    "INVALID_LOGIN_CREDENTIALS": AuthErrorCode.INVALID_CREDENTIALS,
    "INVALID_IDP_RESPONSE": AuthErrorCode.INVALID_CREDENTIALS,
    "INVALID_ID_TOKEN": AuthErrorCode.INVALID_CREDENTIALS,
    "TOKEN_EXPIRED": AuthErrorCode.INVALID_CREDENTIALS,
    "INVALID_REFRESH_TOKEN": AuthErrorCode.INVALID_CREDENTIALS,
    "USER_NOT_FOUND": AuthErrorCode.INVALID_CREDENTIALS,
    "USER_DISABLED": AuthErrorCode.ACCOUNT_DISABLED,
    "TOO_MANY_ATTEMPTS_TRY_LATER": AuthErrorCode.RATE_LIMITED,
    "EMAIL_EXISTS": AuthErrorCode.EMAIL_IN_USE,
    "WEAK_PASSWORD": AuthErrorCode.WEAK_PASSWORD,
    "INVALID_EMAIL": AuthErrorCode.INVALID_EMAIL,
    "MISSING_EMAIL": AuthErrorCode.INVALID_EMAIL,
    "FEDERATED_USER_ID_ALREADY_LINKED": (
        AuthErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL
    ),
}


def map_provider_error(raw_message: str | None) -> AuthErrorCode:
    """Traduce el `error.message` de Identity Toolkit a un AuthErrorCode."""
    code = (raw_message or "").split(":", 1)[0].strip().upper()
    return _PROVIDER_ERROR_CODES.get(code, AuthErrorCode.PROVIDER_UNAVAILABLE)


def _provider_from_lookup(user: dict[str, Any]) -> ProviderId:
    for info in user.get("providerUserInfo") or []:
        if info.get("providerId") == ProviderId.GOOGLE.value:
            return ProviderId.GOOGLE
    return ProviderId.PASSWORD


class FirebaseIdentityProvider:
    """Implementación de IdentityProvider para Firebase Auth (REST)."""

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not api_key:
            raise ValueError("FIREBASE_API_KEY is required")
        self._api_key = api_key
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._clock = clock

        self._current: Identity | None = None
        self._id_token: str | None = None
        self._refresh_token: str | None = None
        self._expires_at: float = 0.0

    async def aclose(self) -> None:
        await self._http.aclose()

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    async def _post(
        self, url: str, *, json: dict[str, Any] | None = None, data: str | None = None
    ) -> dict[str, Any]:
        headers = (
            {"Content-Type": "application/x-www-form-urlencoded"} if data else None
        )
        try:
            resp = await self._http.post(
                url,
                params={"key": self._api_key},
                json=json,
                content=data,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Proveedor de identidad no disponible",
                extra={"error_type": type(exc).__name__},
            )
            raise auth_error_for(
                AuthErrorCode.PROVIDER_UNAVAILABLE, original_error=exc
            ) from exc

        if resp.status_code >= 400:
            raw = self._error_message(resp)
            code = (
                AuthErrorCode.PROVIDER_UNAVAILABLE
                if resp.status_code >= 500
                else map_provider_error(raw)
            )
            logger.info(
                "Proveedor de identidad rechazó la operación",
                extra={"status": resp.status_code, "provider_code": raw, "code": code.value},
            )
            raise auth_error_for(code, provider_code=raw)

        return resp.json()

    @staticmethod
    def _error_message(resp: httpx.Response) -> str | None:
        try:
            body = resp.json()
        except ValueError:
            return None
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return error.get("message")
        return None

    async def _call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._post(f"{_IDENTITY_TOOLKIT_URL}:{method}", json=payload)

    # -------------------------------------------------------------------------
    # Sesión
    # -------------------------------------------------------------------------
    def _store_tokens(self, body: dict[str, Any]) -> None:
        self._id_token = body.get("idToken") or body.get("id_token")
        self._refresh_token = (
            body.get("refreshToken") or body.get("refresh_token") or self._refresh_token
        )
        expires_in = float(body.get("expiresIn") or body.get("expires_in") or 3600)
        self._expires_at = self._clock() + expires_in

    async def _lookup(self, id_token: str) -> Identity:
        body = await self._call("lookup", {"idToken": id_token})
        users = body.get("users") or []
        if not users:
            raise auth_error_for(AuthErrorCode.INVALID_CREDENTIALS)
        user = users[0]
        return Identity(
            subject_id=user["localId"],
            email=(user.get("email") or "").lower(),
            email_verified=bool(user.get("emailVerified", False)),
            display_name=user.get("displayName"),
            photo_url=user.get("photoUrl"),
            provider_id=_provider_from_lookup(user),
        )

    def _clear(self) -> None:
        self._current = None
        self._id_token = None
        self._refresh_token = None
        self._expires_at = 0.0

    # -------------------------------------------------------------------------
    # IdentityProvider
    # -------------------------------------------------------------------------
    async def authenticate(self, email: str, password: str) -> Identity:
        body = await self._call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        self._store_tokens(body)
        self._current = await self._lookup(self._id_token or "")
        return self._current

    async def create_identity(
        self, email: str, password: str, display_name: str | None = None
    ) -> Identity:
        body = await self._call(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        self._store_tokens(body)
        if display_name:
            try:
                await self._call(
                    "update",
                    {"idToken": self._id_token, "displayName": display_name},
                )
            except AuthError:
                logger.warning(
                    "No se pudo guardar el nombre visible en el proveedor",
                    extra={"subject_id": body.get("localId")},
                )
        self._current = await self._lookup(self._id_token or "")
        return self._current

    async def federated_sign_in(
        self, credential: FederatedCredential | None
    ) -> Identity:
        if credential is None or not credential.id_token:
            raise auth_error_for(AuthErrorCode.FEDERATED_CANCELLED)

        post_body = urlencode(
            {"id_token": credential.id_token, "providerId": credential.provider_id.value}
        )
        body = await self._call(
            "signInWithIdp",
            {
                "postBody": post_body,
                "requestUri": "http://localhost",
                "returnIdpCredential": True,
                "returnSecureToken": True,
            },
        )
        if body.get("needConfirmation"):
            raise auth_error_for(AuthErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL)

        self._store_tokens(body)
        self._current = Identity(
            subject_id=body["localId"],
            email=(body.get("email") or credential.email or "").lower(),
            email_verified=bool(body.get("emailVerified", True)),
            display_name=body.get("displayName") or credential.display_name,
            photo_url=body.get("photoUrl") or credential.photo_url,
            provider_id=credential.provider_id,
        )
        return self._current

    async def send_verification_email(self, identity: Identity) -> None:
        await self._call(
            "sendOobCode",
            {"requestType": "VERIFY_EMAIL", "idToken": await self.get_id_token()},
        )

    def current_identity(self) -> Identity | None:
        return self._current

    async def get_id_token(self) -> str:
        if self._current is None or self._id_token is None:
            raise NotAuthenticatedError("No hay una sesión de identidad activa")
        if self._clock() < self._expires_at - _TOKEN_REFRESH_MARGIN_SECONDS:
            return self._id_token
        if not self._refresh_token:
            raise NotAuthenticatedError("La sesión de identidad expiró")

        body = await self._post(
            _SECURE_TOKEN_URL,
            data=urlencode(
                {"grant_type": "refresh_token", "refresh_token": self._refresh_token}
            ),
        )
        self._store_tokens(body)
        return self._id_token or ""

    async def reload_identity(self) -> Identity | None:
        if self._current is None:
            return None
        self._current = await self._lookup(await self.get_id_token())
        return self._current

    async def send_password_reset(self, email: str) -> None:
        await self._call("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    async def sign_out(self) -> None:
        self._clear()
