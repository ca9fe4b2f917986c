"""
===============================================================================
TARJETA CRC — tesoros/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias del Profile Store (repositorios, verificador de
    tokens, directorio de identidad local, casos de uso).
  - Mantener singletons con caching (lru_cache).
  - Centralizar decisiones runtime basadas en Settings (identity_backend).

Colaboradores:
  - tesoros.crosscutting.config.get_settings
  - tesoros.domain.repositories.* (puertos)
  - tesoros.infrastructure.repositories.in_memory.*
  - tesoros.identity.tokens / local_provider
  - tesoros.application.usecases.*

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (solo expone factories).
  - Tests: cache_clear() en cada getter para aislar estado (reset_container).
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application.usecases import (
    GetMyProfileUseCase,
    ListMyNotificationsUseCase,
    ListUsersUseCase,
    MarkNotificationReadUseCase,
    ModerateUserUseCase,
    RegisterProfileUseCase,
    UpdateMyProfileUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import NotificationRepository, ProfileRepository
from .identity.local_provider import LocalIdentityService
from .identity.tokens import FirebaseTokenVerifier, LocalTokenVerifier, TokenVerifier
from .infrastructure.repositories import (
    InMemoryNotificationRepository,
    InMemoryProfileRepository,
)

# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_profile_repository() -> ProfileRepository:
    return InMemoryProfileRepository()


@lru_cache(maxsize=1)
def get_notification_repository() -> NotificationRepository:
    return InMemoryNotificationRepository()


# =============================================================================
# Identidad
# =============================================================================


@lru_cache(maxsize=1)
def get_identity_directory() -> LocalIdentityService:
    """Directorio de cuentas local (backend local y dev seed)."""
    settings = get_settings()
    return LocalIdentityService(
        token_secret=settings.identity_token_secret,
        token_issuer=settings.identity_token_issuer,
        token_ttl_seconds=settings.identity_token_ttl_seconds,
        max_failed_attempts=settings.login_max_failed_attempts,
        lockout_seconds=settings.login_lockout_seconds,
    )


@lru_cache(maxsize=1)
def get_token_verifier() -> TokenVerifier:
    """
    Verificador de ID tokens según identity_backend.

    - local    => HS256 con identity_token_secret
    - firebase => RS256 contra JWKS de Google
    """
    settings = get_settings()
    if settings.identity_backend == "firebase":
        return FirebaseTokenVerifier(project_id=settings.firebase_project_id)
    return LocalTokenVerifier(
        secret=settings.identity_token_secret,
        issuer=settings.identity_token_issuer,
    )


# =============================================================================
# Casos de uso
# =============================================================================


def get_register_profile_use_case() -> RegisterProfileUseCase:
    """Caso de uso: crear perfil (upsert idempotente)."""
    return RegisterProfileUseCase(get_profile_repository())


def get_get_my_profile_use_case() -> GetMyProfileUseCase:
    return GetMyProfileUseCase(get_profile_repository())


def get_update_my_profile_use_case() -> UpdateMyProfileUseCase:
    return UpdateMyProfileUseCase(get_profile_repository())


def get_list_users_use_case() -> ListUsersUseCase:
    return ListUsersUseCase(get_profile_repository())


def get_moderate_user_use_case() -> ModerateUserUseCase:
    """Caso de uso: moderación + notificación best-effort."""
    return ModerateUserUseCase(
        profile_repository=get_profile_repository(),
        notification_repository=get_notification_repository(),
    )


def get_list_my_notifications_use_case() -> ListMyNotificationsUseCase:
    return ListMyNotificationsUseCase(
        get_profile_repository(), get_notification_repository()
    )


def get_mark_notification_read_use_case() -> MarkNotificationReadUseCase:
    return MarkNotificationReadUseCase(
        get_profile_repository(), get_notification_repository()
    )


def reset_container() -> None:
    """Descarta los singletons (tests / recarga de settings)."""
    for getter in (
        get_profile_repository,
        get_notification_repository,
        get_identity_directory,
        get_token_verifier,
    ):
        getter.cache_clear()
