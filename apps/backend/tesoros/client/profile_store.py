"""
===============================================================================
TARJETA CRC — client/profile_store.py
===============================================================================

Class: ProfileStoreClient

Responsibilities:
  - Hablar con el Profile Store por HTTP (httpx.AsyncClient).
  - Adjuntar un bearer token obtenido del proveedor en CADA llamada
    (también en cada reintento; nunca se cachea).
  - Reintentar errores transitorios en lecturas y upserts idempotentes.
  - Traducir status HTTP a la familia ProfileError.

Collaborators:
  - httpx
  - infrastructure.services.retry.create_retry_decorator (tenacity)
  - interfaces.schemas (ProfileOut, NotificationOut) para parsear el wire
  - crosscutting.exceptions.ProfileError*

Notes:
  - GET /auth/me con 404 => None (perfil ausente).
  - La moderación no se reintenta: un reintento tras una respuesta perdida
    devolvería CONFLICT sobre una transición que sí se aplicó.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, TypeVar
from uuid import UUID

import httpx
from pydantic import BaseModel, ValidationError

from ..crosscutting.exceptions import (
    NotAuthenticatedError,
    ProfileConflictError,
    ProfileError,
    ProfileForbiddenError,
    ProfileNetworkError,
    ProfileNotFoundError,
    ProfileResponseError,
    ProfileValidationError,
)
from ..crosscutting.logger import logger
from ..domain.entities import Notification, Profile, UserRole
from ..domain.profile_policy import ModerationAction
from ..infrastructure.services.retry import TRANSIENT_HTTP_CODES, create_retry_decorator
from ..interfaces.schemas import (
    ModerationIn,
    NotificationOut,
    ProfileOut,
    RegisterProfileIn,
    UpdateProfileIn,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

TokenSource = Callable[[], Awaitable[str]]

_STATUS_ERRORS: dict[int, type[ProfileError]] = {
    400: ProfileValidationError,
    401: NotAuthenticatedError,
    403: ProfileForbiddenError,
    404: ProfileNotFoundError,
    409: ProfileConflictError,
    422: ProfileValidationError,
}


def _wire(model_cls: type[BaseModel], **fields: Any) -> dict[str, Any]:
    """Valida el body antes de salir a la red (input inválido => 422 local)."""
    try:
        return model_cls(**fields).to_wire()
    except ValidationError as exc:
        raise ProfileValidationError(
            f"Datos de perfil inválidos: {exc.error_count()} error(es)",
            status_code=422,
            original_error=exc,
        ) from exc


def _parse(model_cls: type[ModelT], resp: httpx.Response) -> ModelT:
    """Parsea un body 2xx; un body ilegible es un ProfileError más."""
    try:
        return model_cls.model_validate(resp.json())
    except (ValueError, ValidationError) as exc:
        raise ProfileResponseError(
            f"Respuesta inválida del Profile Store en {resp.request.url.path}",
            status_code=resp.status_code,
            original_error=exc,
        ) from exc


def _parse_list(model_cls: type[ModelT], resp: httpx.Response) -> List[ModelT]:
    try:
        items = resp.json()
        if not isinstance(items, list):
            raise ValueError("se esperaba una lista")
        return [model_cls.model_validate(item) for item in items]
    except (ValueError, ValidationError) as exc:
        raise ProfileResponseError(
            f"Respuesta inválida del Profile Store en {resp.request.url.path}",
            status_code=resp.status_code,
            original_error=exc,
        ) from exc


def error_for_response(resp: httpx.Response) -> ProfileError:
    """Construye el ProfileError correspondiente a una respuesta >= 400."""
    detail = None
    try:
        body = resp.json()
        if isinstance(body, dict):
            detail = body.get("detail")
    except ValueError:
        detail = None
    message = detail or f"Profile Store respondió {resp.status_code}"

    if resp.status_code in TRANSIENT_HTTP_CODES or resp.status_code >= 500:
        return ProfileNetworkError(message, status_code=resp.status_code)
    cls = _STATUS_ERRORS.get(resp.status_code, ProfileError)
    return cls(message, status_code=resp.status_code)


class ProfileStoreClient:
    def __init__(
        self,
        *,
        base_url: str,
        token_source: TokenSource,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        retry_max_attempts: int | None = None,
        retry_base_delay: float | None = None,
        retry_max_delay: float | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token_source = token_source
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._send_with_retry = create_retry_decorator(
            max_attempts=retry_max_attempts,
            base_delay=retry_base_delay,
            max_delay=retry_max_delay,
        )(self._send)

    async def aclose(self) -> None:
        await self._http.aclose()

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        token = await self._token_source()
        try:
            resp = await self._http.request(
                method,
                f"{self._base_url}{path}",
                json=json,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise ProfileNetworkError(
                f"Profile Store inaccesible: {type(exc).__name__}", original_error=exc
            ) from exc

        if resp.status_code >= 400:
            raise error_for_response(resp)
        return resp

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        retry: bool = True,
    ) -> httpx.Response:
        send = self._send_with_retry if retry else self._send
        try:
            return await send(method, path, json=json, params=params)
        except ProfileError as exc:
            logger.warning(
                "Llamada al Profile Store falló",
                extra={
                    "http_method": method,
                    "path": path,
                    "status": exc.status_code,
                    "error_type": type(exc).__name__,
                },
            )
            raise

    # -------------------------------------------------------------------------
    # Perfil propio
    # -------------------------------------------------------------------------
    async def get_my_profile(self) -> Profile | None:
        try:
            resp = await self._request("GET", "/auth/me")
        except ProfileNotFoundError:
            return None
        return _parse(ProfileOut, resp).to_domain()

    async def register_profile(
        self, *, name: str, role: UserRole, avatar: str | None = None
    ) -> Profile:
        body = _wire(RegisterProfileIn, name=name, role=role, avatar=avatar)
        resp = await self._request("POST", "/auth/register", json=body)
        return _parse(ProfileOut, resp).to_domain()

    async def update_profile(
        self,
        *,
        name: str | None = None,
        avatar: str | None = None,
        role: UserRole | None = None,
        needs_role_selection: bool | None = None,
    ) -> Profile:
        body = _wire(
            UpdateProfileIn,
            name=name,
            avatar=avatar,
            role=role,
            needs_role_selection=needs_role_selection,
        )
        resp = await self._request("PUT", "/auth/profile", json=body)
        return _parse(ProfileOut, resp).to_domain()

    # -------------------------------------------------------------------------
    # Administración
    # -------------------------------------------------------------------------
    async def list_users(
        self, *, role: UserRole | None = None, pending_only: bool = False
    ) -> List[Profile]:
        params: dict[str, Any] = {}
        if role is not None:
            params["role"] = role.value
        if pending_only:
            params["pending"] = "true"
        resp = await self._request("GET", "/admin/users", params=params or None)
        return [dto.to_domain() for dto in _parse_list(ProfileOut, resp)]

    async def moderate(
        self, user_id: UUID, action: ModerationAction, reason: str | None = None
    ) -> None:
        await self._request(
            "PUT",
            f"/admin/users/{user_id}/{action.value}",
            json=_wire(ModerationIn, reason=reason),
            retry=False,
        )

    # -------------------------------------------------------------------------
    # Notificaciones
    # -------------------------------------------------------------------------
    async def list_notifications(self) -> List[Notification]:
        resp = await self._request("GET", "/notifications")
        return [_notification_to_domain(dto) for dto in _parse_list(NotificationOut, resp)]

    async def mark_notification_read(self, notification_id: UUID) -> None:
        await self._request("PUT", f"/notifications/{notification_id}/read")


def _notification_to_domain(dto: NotificationOut) -> Notification:
    return Notification(
        id=dto.id,
        user_id=dto.user_id,
        title=dto.title,
        message=dto.message,
        type=dto.type,
        read=dto.read,
        created_at=dto.created_at,
    )
