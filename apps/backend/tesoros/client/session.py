"""
===============================================================================
TARJETA CRC — client/session.py
===============================================================================

Class: SessionContext

Responsibilities:
  - Ser la vista autoritativa y observable de "quién es este cliente y qué
    puede hacer": combina la identidad del proveedor con el Profile.
  - Exponer las operaciones mutantes (login, register, federated,
    create/update profile, logout) y publicar cada cambio como un
    SessionState inmutable.
  - Retomar un registro tras un reinicio (resume_registration) sin
    confirmar el rol por el usuario.
  - Descartar resultados de perfil obsoletos mediante una generación que
    se incrementa en cada cambio de identidad y en cada logout.

Collaborators:
  - identity.provider.IdentityProvider
  - client.profile_store.ProfileStoreClient
  - client.pending_registration.PendingRegistrationStore
  - crosscutting.exceptions (AuthError / ProfileError)

Constraints:
  - Todas las operaciones mutantes ponen is_loading=True antes del primer
    await.
  - Un cambio de identidad se publica junto con profile=None e
    is_loading=True: ningún observador ve una identidad nueva con el
    perfil de la anterior.
  - Errores de lectura del perfil => perfil ausente (onboarding).
  - Errores de escritura => se lanzan y el estado local no cambia.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List

from ..context import set_subject_context
from ..crosscutting.exceptions import (
    AuthError,
    EmailNotVerifiedError,
    NotAuthenticatedError,
    ProfileError,
    RoleRequiredError,
    TesorosError,
)
from ..crosscutting.logger import logger
from ..domain.entities import Identity, Profile, ProviderId, UserRole
from ..domain.profile_policy import is_self_assignable
from ..identity.provider import FederatedCredential, IdentityProvider
from .pending_registration import PendingRegistrationStore
from .profile_store import ProfileStoreClient


class SessionPhase(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NEEDS_ROLE_SELECTION = "needs_role_selection"
    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    SUSPENDED = "suspended"


@dataclass(frozen=True)
class SessionState:
    identity: Identity | None = None
    profile: Profile | None = None
    is_loading: bool = False
    error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def needs_role_selection(self) -> bool:
        """Identidad sin perfil resuelto (ausente o con selección pendiente)."""
        return self.identity is not None and (
            self.profile is None or self.profile.needs_role_selection
        )

    @property
    def phase(self) -> SessionPhase:
        if self.identity is None:
            return SessionPhase.UNAUTHENTICATED
        if self.needs_role_selection:
            return SessionPhase.NEEDS_ROLE_SELECTION
        if self.profile.is_suspended:
            return SessionPhase.SUSPENDED
        if self.profile.is_pending_approval:
            return SessionPhase.PENDING_APPROVAL
        return SessionPhase.ACTIVE


@dataclass(frozen=True)
class ProfileDraft:
    name: str
    role: UserRole
    avatar: str | None = None


@dataclass(frozen=True)
class ProfilePatch:
    name: str | None = None
    avatar: str | None = None
    role: UserRole | None = None
    needs_role_selection: bool | None = None


Listener = Callable[[SessionState], None]


class SessionContext:
    def __init__(
        self,
        *,
        identity_provider: IdentityProvider,
        profile_store: ProfileStoreClient,
        pending_registration: PendingRegistrationStore,
    ) -> None:
        self._provider = identity_provider
        self._store = profile_store
        self._pending = pending_registration
        self._state = SessionState()
        self._generation = 0
        self._listeners: List[Listener] = []

    # -------------------------------------------------------------------------
    # Observación
    # -------------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending_registration(self) -> PendingRegistrationStore:
        return self._pending

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registra un listener; devuelve la función para desuscribirlo."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Listener de sesión falló")

    def _begin_identity(self, identity: Identity | None) -> int:
        """Publica la identidad nueva con el perfil en vuelo."""
        self._generation += 1
        set_subject_context(identity.subject_id if identity else None)
        self._publish(
            identity=identity,
            profile=None,
            is_loading=identity is not None,
            error=None,
        )
        logger.info(
            "Identidad de sesión cambió",
            extra={
                "generation": self._generation,
                "subject_id": identity.subject_id if identity else None,
            },
        )
        return self._generation

    def _is_current(self, generation: int, operation: str) -> bool:
        if generation == self._generation:
            return True
        logger.info(
            "Resultado de perfil descartado por generación obsoleta",
            extra={
                "operation": operation,
                "captured_generation": generation,
                "generation": self._generation,
            },
        )
        return False

    def _fail(self, exc: TesorosError) -> None:
        self._publish(is_loading=False, error=exc.user_message)

    async def _load_profile(self, generation: int) -> None:
        try:
            profile = await self._store.get_my_profile()
        except ProfileError as exc:
            logger.warning(
                "No se pudo leer el perfil; se trata como ausente",
                extra={"error_type": type(exc).__name__},
            )
            profile = None
        if self._is_current(generation, "load_profile"):
            self._publish(profile=profile, is_loading=False)

    # -------------------------------------------------------------------------
    # Arranque
    # -------------------------------------------------------------------------
    async def start(self) -> SessionState:
        """Chequeo pasivo de "quién soy" al cargar el cliente."""
        identity = self._provider.current_identity()
        if identity is None:
            self._publish(is_loading=False)
            return self._state

        generation = self._begin_identity(identity)
        try:
            profile = await self._store.get_my_profile()
        except ProfileError as exc:
            if not self._is_current(generation, "start"):
                return self._state
            if exc.transient:
                logger.warning(
                    "Profile Store no disponible al arrancar; sesión anónima",
                    extra={"error_type": type(exc).__name__},
                )
                self._publish(
                    identity=None,
                    profile=None,
                    is_loading=False,
                    error=exc.user_message,
                )
                return self._state
            profile = None

        if self._is_current(generation, "start"):
            self._publish(profile=profile, is_loading=False)
        return self._state

    # -------------------------------------------------------------------------
    # Autenticación
    # -------------------------------------------------------------------------
    async def login(self, email: str, password: str) -> SessionState:
        self._publish(is_loading=True, error=None)
        try:
            identity = await self._provider.authenticate(email, password)
        except AuthError as exc:
            self._fail(exc)
            raise

        if not identity.email_verified:
            await self._resend_verification(identity)
            await self._sign_out_provider()
            exc = EmailNotVerifiedError("email sin verificar")
            if self._state.identity is not None:
                self._begin_identity(None)
            self._fail(exc)
            raise exc

        generation = self._begin_identity(identity)
        await self._load_profile(generation)
        return self._state

    async def register(
        self, email: str, password: str, name: str, role: UserRole | None
    ) -> SessionState:
        if role is None or not is_self_assignable(role):
            exc = RoleRequiredError("rol requerido para registrarse")
            self._fail(exc)
            raise exc

        self._publish(is_loading=True, error=None)
        self._pending.save(
            email=email,
            password=password,
            name=name,
            role=role,
            provider_hint=ProviderId.PASSWORD,
        )

        try:
            identity = await self._provider.create_identity(email, password, name)
        except AuthError as exc:
            self._fail(exc)
            raise

        generation = self._begin_identity(identity)
        await self._resend_verification(identity)

        try:
            profile = await self._store.register_profile(name=name, role=role)
        except ProfileError as exc:
            # Identidad huérfana: queda autenticada sin perfil => selección de rol.
            if self._is_current(generation, "register"):
                self._publish(profile=None, is_loading=False, error=exc.user_message)
            raise

        self._pending.clear()
        if self._is_current(generation, "register"):
            self._publish(profile=profile, is_loading=False)
        return self._state

    async def login_with_federated_provider(
        self,
        is_registration: bool,
        role: UserRole | None = None,
        credential: FederatedCredential | None = None,
    ) -> SessionState:
        if is_registration and role is None:
            exc = RoleRequiredError("rol requerido para registro federado")
            self._fail(exc)
            raise exc

        self._publish(is_loading=True, error=None)
        try:
            identity = await self._provider.federated_sign_in(credential)
        except AuthError as exc:
            self._fail(exc)
            raise

        if role is not None:
            # Solo una pista: el rol se confirma explícitamente con create_profile.
            self._pending.save(
                email=identity.email,
                name=identity.display_name,
                role=role,
                provider_hint=identity.provider_id,
            )

        generation = self._begin_identity(identity)
        await self._load_profile(generation)
        return self._state

    async def logout(self) -> SessionState:
        had_identity = self._state.identity is not None
        self._pending.clear()
        self._begin_identity(None)
        await self._sign_out_provider()
        if had_identity:
            logger.info("Sesión cerrada")
        return self._state

    async def send_password_reset(self, email: str) -> None:
        self._publish(is_loading=True, error=None)
        try:
            await self._provider.send_password_reset(email)
        except AuthError as exc:
            self._fail(exc)
            raise
        self._publish(is_loading=False)

    async def check_email_verified(self) -> bool:
        """Relee la identidad del proveedor (pantalla "verifica tu email")."""
        if self._state.identity is None:
            return False
        try:
            identity = await self._provider.reload_identity()
        except (AuthError, NotAuthenticatedError) as exc:
            logger.warning(
                "No se pudo releer la identidad",
                extra={"error_type": type(exc).__name__},
            )
            return False
        if identity is None:
            return False
        current = self._state.identity
        same_subject = current is not None and current.subject_id == identity.subject_id
        if same_subject and current != identity:
            self._publish(identity=identity)
        return identity.email_verified

    # -------------------------------------------------------------------------
    # Perfil
    # -------------------------------------------------------------------------
    def _require_identity(self) -> Identity:
        identity = self._state.identity
        if identity is None:
            exc = NotAuthenticatedError("operación de perfil sin identidad")
            self._fail(exc)
            raise exc
        return identity

    def resume_registration(self) -> ProfileDraft | None:
        """
        Borrador para pre-llenar la selección de rol tras un reinicio.

        No crea nada: el perfil solo existe cuando el usuario confirma con
        create_profile(). Sin borrador usable (sin rol, rol no elegible o de
        otro email) devuelve None y el formulario arranca vacío.
        """
        draft = self._pending.get()
        if draft is None or draft.role is None or not is_self_assignable(draft.role):
            return None

        identity = self._state.identity
        if identity is not None and draft.email and (
            draft.email.strip().lower() != identity.email.strip().lower()
        ):
            logger.info("Registro pendiente de otra identidad; se ignora")
            return None

        name = draft.name or (identity.display_name if identity else None) or ""
        return ProfileDraft(name=name, role=draft.role)

    async def create_profile(self, draft: ProfileDraft) -> Profile:
        self._require_identity()
        generation = self._generation
        self._publish(is_loading=True, error=None)

        try:
            profile = await self._store.register_profile(
                name=draft.name, role=draft.role, avatar=draft.avatar
            )
        except ProfileError as exc:
            if self._is_current(generation, "create_profile"):
                self._fail(exc)
            raise

        self._pending.clear()
        if self._is_current(generation, "create_profile"):
            self._publish(profile=profile, is_loading=False)
        return profile

    async def update_profile(self, patch: ProfilePatch) -> Profile:
        self._require_identity()
        generation = self._generation
        self._publish(is_loading=True, error=None)

        try:
            profile = await self._store.update_profile(
                name=patch.name,
                avatar=patch.avatar,
                role=patch.role,
                needs_role_selection=patch.needs_role_selection,
            )
        except ProfileError as exc:
            if self._is_current(generation, "update_profile"):
                self._fail(exc)
            raise

        if self._is_current(generation, "update_profile"):
            self._publish(profile=profile, is_loading=False)
        return profile

    async def reload_profile(self) -> Profile | None:
        """Relee GET /auth/me (también recupera un create cuya respuesta se perdió)."""
        if self._state.identity is None:
            return None
        generation = self._generation
        self._publish(is_loading=True)
        await self._load_profile(generation)
        return self._state.profile

    # -------------------------------------------------------------------------
    # Misc
    # -------------------------------------------------------------------------
    def clear_error(self) -> None:
        if self._state.error is not None:
            self._publish(error=None)

    async def close(self) -> None:
        self._listeners.clear()

    async def _resend_verification(self, identity: Identity) -> None:
        try:
            await self._provider.send_verification_email(identity)
        except AuthError as exc:
            logger.warning(
                "No se pudo enviar el email de verificación",
                extra={"subject_id": identity.subject_id, "code": exc.code.value},
            )

    async def _sign_out_provider(self) -> None:
        try:
            await self._provider.sign_out()
        except AuthError as exc:
            logger.warning(
                "Cierre de sesión del proveedor falló",
                extra={"code": exc.code.value},
            )
