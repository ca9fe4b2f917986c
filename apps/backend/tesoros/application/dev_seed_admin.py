"""
===============================================================================
TASK: Dev Seed Admin (Local-only + E2E override)
===============================================================================

Qué es:
    Asegura que exista un administrador para desarrollo cuando está
    configurado. admin nunca es auto-asignable: este seed es el único
    aprovisionamiento fuera de banda.

Seguridad:
    - Guard estricto: si NO es E2E => solo corre en app_env == "local".
    - Si es E2E => permite otros envs porque CI puede setear app_env distinto.

CRC:
    Component: ensure_dev_admin
    Responsibilities:
      - Validar guard de ambiente
      - Resolver spec (settings vs E2E env)
      - Asegurar cuenta de identidad + Profile admin aprobado y activo
    Collaborators:
      - IdentityDirectoryPort (LocalIdentityService)
      - ProfileRepository
      - Settings + env mapping
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Mapping, Protocol
from uuid import uuid4

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.entities import Identity, Profile, UserRole
from ..domain.repositories import ProfileRepository


class IdentityDirectoryPort(Protocol):
    """Directorio de cuentas que el seed necesita."""

    def ensure_account(
        self,
        email: str,
        password: str,
        *,
        display_name: str | None = None,
        force_reset: bool = False,
    ) -> tuple[Identity, bool]: ...


_ENV_FLAG_E2E_SEED_ADMIN: Final[str] = "E2E_SEED_ADMIN"
_ENV_E2E_ADMIN_EMAIL: Final[str] = "E2E_ADMIN_EMAIL"
_ENV_E2E_ADMIN_PASSWORD: Final[str] = "E2E_ADMIN_PASSWORD"

_DEFAULT_E2E_EMAIL: Final[str] = "admin@tesoros.local"
_DEFAULT_E2E_PASSWORD: Final[str] = "admin-e2e"


@dataclass(frozen=True, slots=True)
class _AdminSeedSpec:
    enabled: bool
    is_e2e: bool
    email: str = ""
    password: str = ""
    name: str = ""
    force_reset: bool = False


def _parse_bool(value: str | None) -> bool:
    v = (value or "").strip().lower()
    return v in {"1", "true", "yes", "on"}


def _resolve_seed_spec(settings: Settings, env: Mapping[str, str]) -> _AdminSeedSpec:
    is_e2e = _parse_bool(env.get(_ENV_FLAG_E2E_SEED_ADMIN))

    if not (settings.dev_seed_admin or is_e2e):
        return _AdminSeedSpec(enabled=False, is_e2e=is_e2e)

    if is_e2e:
        return _AdminSeedSpec(
            enabled=True,
            is_e2e=True,
            email=env.get(_ENV_E2E_ADMIN_EMAIL, _DEFAULT_E2E_EMAIL),
            password=env.get(_ENV_E2E_ADMIN_PASSWORD, _DEFAULT_E2E_PASSWORD),
            name=settings.dev_seed_admin_name,
        )

    return _AdminSeedSpec(
        enabled=True,
        is_e2e=False,
        email=(settings.dev_seed_admin_email or "").strip(),
        password=settings.dev_seed_admin_password or "",
        name=(settings.dev_seed_admin_name or "").strip() or "Administrador",
        force_reset=bool(settings.dev_seed_admin_force_reset),
    )


def _assert_allowed_environment(settings: Settings, *, is_e2e: bool) -> None:
    if is_e2e:
        return

    env = (settings.app_env or "").strip().lower()
    if env != "local":
        raise RuntimeError(
            f"FATAL: DEV_SEED_ADMIN is enabled but ENV is '{env}' (must be 'local'). "
            "Safety guard prevents accidental overrides."
        )


def ensure_dev_admin(
    settings: Settings,
    *,
    profile_repo: ProfileRepository,
    identity_directory: IdentityDirectoryPort,
    env: Mapping[str, str],
) -> Profile | None:
    """
    Ensure a development admin exists if configured.

    Behavior:
      - If disabled: no-op (returns None)
      - If enabled:
          - Create the identity account if missing (reset if force_reset)
          - Create the admin Profile if missing
          - Promote/reactivate an existing Profile to approved, active admin
    """
    spec = _resolve_seed_spec(settings, env)
    if not spec.enabled:
        return None

    _assert_allowed_environment(settings, is_e2e=spec.is_e2e)

    if not spec.email or not spec.password:
        raise ValueError("Dev seed admin is enabled but email/password are empty")

    logger.info(
        "Dev seed admin: ensuring admin user",
        extra={
            "email": spec.email,
            "force_reset": spec.force_reset,
            "is_e2e": spec.is_e2e,
        },
    )

    identity, account_created = identity_directory.ensure_account(
        spec.email,
        spec.password,
        display_name=spec.name,
        force_reset=spec.force_reset,
    )

    profile, created = profile_repo.create_if_absent(
        Profile(
            id=uuid4(),
            subject_id=identity.subject_id,
            email=identity.email,
            name=spec.name,
            role=UserRole.ADMIN,
            is_approved=True,
        )
    )
    if created:
        logger.info(
            "Dev seed admin: profile created",
            extra={"email": spec.email, "account_created": account_created},
        )
        return profile

    if profile.role == UserRole.ADMIN and profile.is_approved and profile.is_active:
        logger.info("Dev seed admin: admin exists; skipping", extra={"email": spec.email})
        return profile

    updated = profile_repo.update_fields(
        profile.id,
        role=UserRole.ADMIN,
        is_approved=True,
        needs_role_selection=False,
        is_active=True,
    )
    logger.info("Dev seed admin: profile promoted", extra={"email": spec.email})
    return updated
