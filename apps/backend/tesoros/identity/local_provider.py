"""
===============================================================================
TARJETA CRC — identity/local_provider.py
===============================================================================

Módulo:
    Proveedor de identidad local (en proceso)

Responsabilidades:
    - LocalIdentityService: directorio de cuentas compartido.
        * Hashear/verificar passwords (Argon2).
        * Bloquear el login tras N intentos fallidos (RATE_LIMITED).
        * Registrar emails de verificación / reset enviados (outbox).
        * Emitir ID tokens HS256 verificables por el Profile Store.
    - LocalIdentityProvider: sesión de UN cliente sobre ese directorio,
      implementando el puerto IdentityProvider.

Colaboradores:
    - argon2.PasswordHasher
    - identity.tokens.issue_local_token (PyJWT)
    - crosscutting.exceptions (AuthError, NotAuthenticatedError)
    - application/dev_seed_admin.py (ensure_account)

Notas:
    - No diferenciamos "usuario no existe" vs "password incorrecto".
    - No loguear passwords ni tokens.
===============================================================================
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, List
from uuid import uuid4

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, VerifyMismatchError

from ..crosscutting.exceptions import (
    AuthErrorCode,
    NotAuthenticatedError,
    auth_error_for,
)
from ..crosscutting.logger import logger
from ..domain.entities import Identity, ProviderId
from .provider import FederatedCredential
from .tokens import issue_local_token

MIN_PASSWORD_LENGTH: int = 6

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hashea un password usando Argon2."""
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verifica password vs hash almacenado."""
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError):
        return False


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass
class _Account:
    subject_id: str
    email: str
    password_hash: str | None
    provider_id: ProviderId = ProviderId.PASSWORD
    email_verified: bool = False
    display_name: str | None = None
    photo_url: str | None = None
    disabled: bool = False
    failed_attempts: int = 0
    locked_until: float = 0.0

    def to_identity(self) -> Identity:
        return Identity(
            subject_id=self.subject_id,
            email=self.email,
            email_verified=self.email_verified,
            display_name=self.display_name,
            photo_url=self.photo_url,
            provider_id=self.provider_id,
        )


@dataclass
class Outbox:
    """Emails que el proveedor local "envió" (inspeccionables en tests)."""

    verification: List[str] = field(default_factory=list)
    password_reset: List[str] = field(default_factory=list)


class LocalIdentityService:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      LocalIdentityService

    Responsabilidades:
      - Mantener cuentas (email -> _Account) protegidas por Lock.
      - Autenticar con rate limiting por cuenta.
      - Emitir tokens con el secreto configurado.
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        *,
        token_secret: str,
        token_issuer: str,
        token_ttl_seconds: int = 300,
        max_failed_attempts: int = 5,
        lockout_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._accounts: dict[str, _Account] = {}
        self._lock = Lock()
        self._token_secret = token_secret
        self._token_issuer = token_issuer
        self._token_ttl_seconds = token_ttl_seconds
        self._max_failed_attempts = max_failed_attempts
        self._lockout_seconds = lockout_seconds
        self._clock = clock
        self.outbox = Outbox()

    # -------------------------------------------------------------------------
    # Cuentas
    # -------------------------------------------------------------------------
    def create_account(
        self, email: str, password: str, display_name: str | None = None
    ) -> Identity:
        normalized = _normalize_email(email)
        if not _EMAIL_PATTERN.match(normalized):
            raise auth_error_for(AuthErrorCode.INVALID_EMAIL)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise auth_error_for(AuthErrorCode.WEAK_PASSWORD)

        password_hash = hash_password(password)
        with self._lock:
            if normalized in self._accounts:
                raise auth_error_for(AuthErrorCode.EMAIL_IN_USE)
            account = _Account(
                subject_id=uuid4().hex,
                email=normalized,
                password_hash=password_hash,
                display_name=display_name,
            )
            self._accounts[normalized] = account
            identity = account.to_identity()

        logger.info(
            "Identidad local creada", extra={"subject_id": identity.subject_id}
        )
        return identity

    def ensure_account(
        self,
        email: str,
        password: str,
        *,
        display_name: str | None = None,
        force_reset: bool = False,
    ) -> tuple[Identity, bool]:
        """Crea (o resetea) una cuenta verificada. Retorna (identidad, creada)."""
        normalized = _normalize_email(email)
        with self._lock:
            account = self._accounts.get(normalized)
            if account is not None and not force_reset:
                return account.to_identity(), False
            password_hash = hash_password(password)
            if account is None:
                account = _Account(
                    subject_id=uuid4().hex,
                    email=normalized,
                    password_hash=password_hash,
                    email_verified=True,
                    display_name=display_name,
                )
                self._accounts[normalized] = account
                return account.to_identity(), True
            account.password_hash = password_hash
            account.email_verified = True
            account.disabled = False
            account.failed_attempts = 0
            account.locked_until = 0.0
            return account.to_identity(), False

    def authenticate(self, email: str, password: str) -> Identity:
        normalized = _normalize_email(email)
        now = self._clock()
        with self._lock:
            account = self._accounts.get(normalized)
            if account is not None and account.locked_until > now:
                raise auth_error_for(AuthErrorCode.RATE_LIMITED)

            if (
                account is None
                or account.password_hash is None
                or not verify_password(password, account.password_hash)
            ):
                if account is not None:
                    self._register_failure(account, now)
                raise auth_error_for(AuthErrorCode.INVALID_CREDENTIALS)

            if account.disabled:
                raise auth_error_for(AuthErrorCode.ACCOUNT_DISABLED)

            account.failed_attempts = 0
            account.locked_until = 0.0
            return account.to_identity()

    def _register_failure(self, account: _Account, now: float) -> None:
        account.failed_attempts += 1
        if account.failed_attempts >= self._max_failed_attempts:
            account.locked_until = now + self._lockout_seconds
            account.failed_attempts = 0
            logger.warning(
                "Cuenta local bloqueada por intentos fallidos",
                extra={"subject_id": account.subject_id},
            )

    def federated_sign_in(self, credential: FederatedCredential) -> Identity:
        normalized = _normalize_email(credential.email or "")
        if not normalized:
            raise auth_error_for(AuthErrorCode.INVALID_CREDENTIALS)

        with self._lock:
            account = self._accounts.get(normalized)
            if account is None:
                account = _Account(
                    subject_id=uuid4().hex,
                    email=normalized,
                    password_hash=None,
                    provider_id=credential.provider_id,
                    email_verified=True,
                    display_name=credential.display_name,
                    photo_url=credential.photo_url,
                )
                self._accounts[normalized] = account
            elif account.provider_id != credential.provider_id:
                raise auth_error_for(
                    AuthErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL
                )
            if account.disabled:
                raise auth_error_for(AuthErrorCode.ACCOUNT_DISABLED)
            return account.to_identity()

    def get(self, subject_id: str) -> Identity | None:
        with self._lock:
            for account in self._accounts.values():
                if account.subject_id == subject_id:
                    return account.to_identity()
        return None

    def mark_email_verified(self, email: str) -> bool:
        with self._lock:
            account = self._accounts.get(_normalize_email(email))
            if account is None:
                return False
            account.email_verified = True
            return True

    def set_disabled(self, email: str, disabled: bool = True) -> bool:
        with self._lock:
            account = self._accounts.get(_normalize_email(email))
            if account is None:
                return False
            account.disabled = disabled
            return True

    # -------------------------------------------------------------------------
    # Emails / tokens
    # -------------------------------------------------------------------------
    def send_verification_email(self, email: str) -> None:
        self.outbox.verification.append(_normalize_email(email))

    def send_password_reset(self, email: str) -> None:
        normalized = _normalize_email(email)
        if not _EMAIL_PATTERN.match(normalized):
            raise auth_error_for(AuthErrorCode.INVALID_EMAIL)
        with self._lock:
            known = normalized in self._accounts
        # Email desconocido: no-op silencioso (evita enumeración de cuentas).
        if known:
            self.outbox.password_reset.append(normalized)

    def issue_token(self, identity: Identity) -> str:
        return issue_local_token(
            identity,
            secret=self._token_secret,
            issuer=self._token_issuer,
            ttl_seconds=self._token_ttl_seconds,
        )


class LocalIdentityProvider:
    """Adapter IdentityProvider sobre LocalIdentityService (una sesión)."""

    def __init__(self, service: LocalIdentityService) -> None:
        self._service = service
        self._current: Identity | None = None

    async def authenticate(self, email: str, password: str) -> Identity:
        self._current = self._service.authenticate(email, password)
        return self._current

    async def create_identity(
        self, email: str, password: str, display_name: str | None = None
    ) -> Identity:
        self._current = self._service.create_account(email, password, display_name)
        return self._current

    async def federated_sign_in(
        self, credential: FederatedCredential | None
    ) -> Identity:
        if credential is None:
            raise auth_error_for(AuthErrorCode.FEDERATED_CANCELLED)
        self._current = self._service.federated_sign_in(credential)
        return self._current

    async def send_verification_email(self, identity: Identity) -> None:
        self._service.send_verification_email(identity.email)

    def current_identity(self) -> Identity | None:
        return self._current

    async def get_id_token(self) -> str:
        if self._current is None:
            raise NotAuthenticatedError("No hay una sesión de identidad activa")
        return self._service.issue_token(self._current)

    async def reload_identity(self) -> Identity | None:
        if self._current is None:
            return None
        self._current = self._service.get(self._current.subject_id)
        return self._current

    async def send_password_reset(self, email: str) -> None:
        self._service.send_password_reset(email)

    async def sign_out(self) -> None:
        self._current = None
