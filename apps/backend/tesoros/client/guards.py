"""
===============================================================================
TARJETA CRC — client/guards.py
===============================================================================

Módulo:
    Guards de página (decisión de render, nunca navegan)

Responsabilidades:
    - RoleSelectionGate: la pantalla de selección de rol solo se muestra a
      una identidad con la selección pendiente.
    - RoleMembershipGate: contenido restringido a una lista de roles.
    - AuthorizationDenied: estado renderizado (no es una excepción) con
      copy distinta por motivo.

Colaboradores:
    - client.session.SessionState
    - client.navigation.Router (combina guard + política)

Reglas:
    - Mientras carga: PLACEHOLDER (ni contenido ni denegación).
    - DEFER: no renderizar nada; la política de redirección navega.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Protocol

from ..domain.entities import UserRole
from .session import SessionState


class GuardOutcome(str, Enum):
    RENDER = "render"
    PLACEHOLDER = "placeholder"
    DENIED = "denied"
    DEFER = "defer"


class DenialReason(str, Enum):
    NOT_LOGGED_IN = "not_logged_in"
    ROLE_NOT_ALLOWED = "role_not_allowed"
    ACCOUNT_SUSPENDED = "account_suspended"


DENIAL_COPY: dict[DenialReason, tuple[str, str]] = {
    DenialReason.NOT_LOGGED_IN: (
        "Inicia sesión para continuar",
        "Necesitas iniciar sesión para ver esta página.",
    ),
    DenialReason.ROLE_NOT_ALLOWED: (
        "Acceso denegado",
        "Tu rol no tiene permiso para ver esta página.",
    ),
    DenialReason.ACCOUNT_SUSPENDED: (
        "Cuenta suspendida",
        "Tu cuenta está suspendida. Contacta a soporte para más información.",
    ),
}


@dataclass(frozen=True)
class AuthorizationDenied:
    reason: DenialReason

    @property
    def title(self) -> str:
        return DENIAL_COPY[self.reason][0]

    @property
    def message(self) -> str:
        return DENIAL_COPY[self.reason][1]


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    denial: AuthorizationDenied | None = None

    @classmethod
    def render(cls) -> "GuardDecision":
        return cls(GuardOutcome.RENDER)

    @classmethod
    def placeholder(cls) -> "GuardDecision":
        return cls(GuardOutcome.PLACEHOLDER)

    @classmethod
    def defer(cls) -> "GuardDecision":
        return cls(GuardOutcome.DEFER)

    @classmethod
    def denied(cls, reason: DenialReason) -> "GuardDecision":
        return cls(GuardOutcome.DENIED, AuthorizationDenied(reason))


class Guard(Protocol):
    role_selection_gate: bool

    def evaluate(self, state: SessionState) -> GuardDecision: ...


class RoleSelectionGate:
    role_selection_gate = True

    def evaluate(self, state: SessionState) -> GuardDecision:
        if state.is_loading:
            return GuardDecision.placeholder()
        if state.needs_role_selection:
            return GuardDecision.render()
        return GuardDecision.defer()


class RoleMembershipGate:
    role_selection_gate = False

    def __init__(self, allowed_roles: Iterable[UserRole]) -> None:
        self.allowed_roles: FrozenSet[UserRole] = frozenset(allowed_roles)
        if not self.allowed_roles:
            raise ValueError("allowed_roles must not be empty")

    def evaluate(self, state: SessionState) -> GuardDecision:
        if state.is_loading:
            return GuardDecision.placeholder()
        if state.identity is None:
            return GuardDecision.denied(DenialReason.NOT_LOGGED_IN)

        profile = state.profile
        if profile is None or profile.needs_role_selection:
            return GuardDecision.defer()
        if profile.is_suspended:
            return GuardDecision.denied(DenialReason.ACCOUNT_SUSPENDED)
        if profile.is_pending_approval:
            return GuardDecision.defer()
        if profile.role not in self.allowed_roles:
            return GuardDecision.denied(DenialReason.ROLE_NOT_ALLOWED)
        return GuardDecision.render()
