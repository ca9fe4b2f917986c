"""
===============================================================================
TARJETA CRC — client/bootstrap.py (Composition Root del cliente)
===============================================================================

Responsabilidades:
  - Construir el proveedor de identidad según Settings.identity_backend.
  - Componer SessionContext + RedirectController + Router + ApprovalWorkflow
    en un único ClientApp que el shell de UI posee y cierra.

Colaboradores:
  - crosscutting.config.get_settings
  - identity.local_provider / identity.firebase_provider
  - client.* (session, navigation, approval, profile_store, pending_registration)

Notas:
  - El ProfileStoreClient obtiene un token fresco del proveedor en cada
    llamada (token_source = provider.get_id_token).
===============================================================================
"""

from __future__ import annotations

from typing import Callable

import httpx

from ..crosscutting.config import Settings, get_settings
from ..crosscutting.logger import logger
from ..identity.firebase_provider import FirebaseIdentityProvider
from ..identity.local_provider import LocalIdentityProvider, LocalIdentityService
from ..identity.provider import IdentityProvider
from .approval import ApprovalWorkflow
from .navigation import HistoryNavigator, Navigator, RedirectController, Router, default_routes
from .pending_registration import PendingRegistrationStore
from .profile_store import ProfileStoreClient
from .session import SessionContext, SessionState


def build_identity_provider(
    settings: Settings, directory: LocalIdentityService | None = None
) -> IdentityProvider:
    if settings.identity_backend == "firebase":
        return FirebaseIdentityProvider(
            api_key=settings.firebase_api_key,
            timeout_seconds=settings.api_timeout_seconds,
        )
    if directory is None:
        directory = LocalIdentityService(
            token_secret=settings.identity_token_secret,
            token_issuer=settings.identity_token_issuer,
            token_ttl_seconds=settings.identity_token_ttl_seconds,
            max_failed_attempts=settings.login_max_failed_attempts,
            lockout_seconds=settings.login_lockout_seconds,
        )
    return LocalIdentityProvider(directory)


class ClientApp:
    """Dueño de todos los objetos del cliente; se cierra una sola vez."""

    def __init__(
        self,
        *,
        identity_provider: IdentityProvider,
        profile_store: ProfileStoreClient,
        pending_registration: PendingRegistrationStore,
        navigator: Navigator,
    ) -> None:
        self.identity_provider = identity_provider
        self.profile_store = profile_store
        self.session = SessionContext(
            identity_provider=identity_provider,
            profile_store=profile_store,
            pending_registration=pending_registration,
        )
        self.controller = RedirectController(navigator)
        self.router = Router(default_routes(), self.controller, self.session)
        self.approval = ApprovalWorkflow(profile_store)
        self._detach: Callable[[], None] | None = self.controller.attach(self.session)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        identity_provider: IdentityProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        navigator: Navigator | None = None,
    ) -> "ClientApp":
        settings = settings or get_settings()
        provider = identity_provider or build_identity_provider(settings)
        store = ProfileStoreClient(
            base_url=settings.resolved_api_base_url(),
            token_source=provider.get_id_token,
            http_client=http_client,
            timeout_seconds=settings.api_timeout_seconds,
            retry_max_attempts=settings.retry_max_attempts,
            retry_base_delay=settings.retry_base_delay_seconds,
            retry_max_delay=settings.retry_max_delay_seconds,
        )
        return cls(
            identity_provider=provider,
            profile_store=store,
            pending_registration=PendingRegistrationStore.from_settings(settings),
            navigator=navigator or HistoryNavigator(),
        )

    async def start(self) -> SessionState:
        state = await self.session.start()
        self.router.resolve()
        return state

    async def aclose(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None
        await self.session.close()
        await self.profile_store.aclose()
        aclose = getattr(self.identity_provider, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.info("Cliente cerrado")

    async def __aenter__(self) -> "ClientApp":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
