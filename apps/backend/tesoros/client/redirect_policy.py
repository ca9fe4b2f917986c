"""
===============================================================================
TARJETA CRC — client/redirect_policy.py
===============================================================================

Módulo:
    Política de redirección (función pura)

Responsabilidades:
    - Mapear (estado de sesión, ruta pedida) a "quedarse" o "navegar a X".
    - Reglas en orden de prioridad:
        1) cargando => quedarse.
        2) identidad sin perfil resuelto => selección de rol.
        3) gate de selección de rol activo => home (o login sin identidad).
        4) vendedor no aprobado => pendiente de aprobación.
        5) quedarse.

Colaboradores:
    - client.session.SessionState
    - client.navigation.RedirectController (único punto con efectos)

Reglas:
    - Sin efectos ni estado: misma entrada => misma salida.
    - Logout es alcanzable desde cualquier estado.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from .session import SessionState

HOME_PATH = "/"
LOGIN_PATH = "/login"
LOGOUT_PATH = "/logout"
ROLE_SELECTION_PATH = "/complete-profile"
PENDING_APPROVAL_PATH = "/pending-approval"


@dataclass(frozen=True)
class RedirectDecision:
    navigate_to: str | None = None

    @property
    def stay(self) -> bool:
        return self.navigate_to is None


STAY = RedirectDecision()


def normalize_path(path: str | None) -> str:
    """Descarta query/fragment y la barra final: '/a/?x=1' -> '/a'."""
    raw = urlsplit(path or "/").path or "/"
    if not raw.startswith("/"):
        raw = f"/{raw}"
    return raw.rstrip("/") or "/"


def _go(target: str, current: str) -> RedirectDecision:
    return STAY if current == target else RedirectDecision(navigate_to=target)


def decide(
    state: SessionState, path: str, *, role_selection_gate: bool = False
) -> RedirectDecision:
    current = normalize_path(path)

    if state.is_loading:
        return STAY

    if state.needs_role_selection:
        if current == LOGOUT_PATH:
            return STAY
        return _go(ROLE_SELECTION_PATH, current)

    if role_selection_gate:
        if state.identity is None:
            return _go(LOGIN_PATH, current)
        return _go(HOME_PATH, current)

    profile = state.profile
    if profile is not None and profile.is_pending_approval:
        if current in (PENDING_APPROVAL_PATH, LOGOUT_PATH):
            return STAY
        return RedirectDecision(navigate_to=PENDING_APPROVAL_PATH)

    return STAY
