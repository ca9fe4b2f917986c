"""
===============================================================================
TARJETA CRC — client/navigation.py
===============================================================================

Módulo:
    Navegación del cliente (efectos de la política de redirección)

Responsabilidades:
    - RedirectController: único lugar que navega. Evalúa la política pura
      ante cada cambio de sesión/ruta y navega con replace (sin ensuciar
      el historial). Re-evaluar la misma entrada no vuelve a navegar
      mientras el navigator siga donde quedó la última evaluación.
    - Router: tabla de rutas (path -> guard). Resuelve una ruta aplicando
      primero la redirección y después el guard de la página.
      También le dice al controller qué paths llevan el gate de rol.

Colaboradores:
    - client.redirect_policy.decide
    - client.guards (RoleSelectionGate, RoleMembershipGate)
    - client.session.SessionContext (subscribe)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from ..crosscutting.logger import logger
from ..domain.entities import UserRole
from .guards import (
    Guard,
    GuardDecision,
    GuardOutcome,
    RoleMembershipGate,
    RoleSelectionGate,
)
from .redirect_policy import (
    PENDING_APPROVAL_PATH,
    ROLE_SELECTION_PATH,
    STAY,
    RedirectDecision,
    decide,
    normalize_path,
)
from .session import SessionContext, SessionState


class Navigator(Protocol):
    @property
    def current_path(self) -> str: ...

    def navigate(self, path: str, *, replace: bool = True) -> None: ...


class HistoryNavigator:
    """Navigator en memoria (CLI y tests)."""

    def __init__(self, initial_path: str = "/") -> None:
        self.history: List[str] = [normalize_path(initial_path)]

    @property
    def current_path(self) -> str:
        return self.history[-1]

    def navigate(self, path: str, *, replace: bool = True) -> None:
        target = normalize_path(path)
        if replace:
            self.history[-1] = target
        else:
            self.history.append(target)


class RedirectController:
    def __init__(
        self,
        navigator: Navigator,
        gate_for: Callable[[str], bool] | None = None,
    ) -> None:
        self._navigator = navigator
        self._gate_for: Callable[[str], bool] = gate_for or (lambda path: False)
        self._last_key: Optional[Tuple] = None
        self._last_decision: RedirectDecision = STAY
        self._landing: Optional[str] = None

    @property
    def navigator(self) -> Navigator:
        return self._navigator

    def use_gate_table(self, gate_for: Callable[[str], bool]) -> None:
        """Fija qué paths llevan el gate de selección de rol (lo instala el Router)."""
        self._gate_for = gate_for
        self._last_key = None

    def evaluate(self, state: SessionState, path: str | None = None) -> RedirectDecision:
        current = normalize_path(path if path is not None else self._navigator.current_path)
        gate = self._gate_for(current)

        key = (state.identity, state.profile, state.is_loading, current, gate)
        # Misma entrada y el navigator sigue donde lo dejamos: nada que hacer.
        if key == self._last_key and self._navigator.current_path == self._landing:
            return self._last_decision

        decision = decide(state, current, role_selection_gate=gate)
        self._last_key = key
        self._last_decision = decision

        if not decision.stay:
            logger.info(
                "Redirección",
                extra={"from_path": current, "to_path": decision.navigate_to},
            )
            self._navigator.navigate(decision.navigate_to, replace=True)
        self._landing = self._navigator.current_path
        return decision

    def attach(self, session: SessionContext) -> Callable[[], None]:
        """Re-evalúa ante cada estado publicado; devuelve el unsubscribe."""
        return session.subscribe(lambda state: self.evaluate(state))


@dataclass(frozen=True)
class Route:
    path: str
    guard: Guard | None = None

    @property
    def role_selection_gate(self) -> bool:
        return bool(self.guard is not None and self.guard.role_selection_gate)


@dataclass(frozen=True)
class RouteResolution:
    path: str
    redirect: RedirectDecision
    guard: GuardDecision | None

    @property
    def renders(self) -> bool:
        if not self.redirect.stay:
            return False
        return self.guard is None or self.guard.outcome == GuardOutcome.RENDER


class Router:
    def __init__(
        self,
        routes: Sequence[Route],
        controller: RedirectController,
        session: SessionContext,
    ) -> None:
        self._routes = {normalize_path(r.path): r for r in routes}
        self._controller = controller
        self._session = session
        controller.use_gate_table(lambda path: self.route_for(path).role_selection_gate)

    def route_for(self, path: str) -> Route:
        current = normalize_path(path)
        return self._routes.get(current) or Route(current)

    def resolve(self, path: str | None = None) -> RouteResolution:
        current = normalize_path(
            path if path is not None else self._controller.navigator.current_path
        )
        route = self.route_for(current)
        state = self._session.state

        redirect = self._controller.evaluate(state, current)
        if not redirect.stay:
            return RouteResolution(path=current, redirect=redirect, guard=None)

        guard = route.guard.evaluate(state) if route.guard is not None else None
        return RouteResolution(path=current, redirect=redirect, guard=guard)

    def navigate(self, path: str) -> RouteResolution:
        self._controller.navigator.navigate(path, replace=False)
        return self.resolve()


def default_routes() -> List[Route]:
    buyer = RoleMembershipGate([UserRole.BUYER])
    seller = RoleMembershipGate([UserRole.SELLER])
    admin = RoleMembershipGate([UserRole.ADMIN])
    any_role = RoleMembershipGate(list(UserRole))

    return [
        Route("/"),
        Route("/products"),
        Route("/login"),
        Route("/register"),
        Route("/logout"),
        Route(PENDING_APPROVAL_PATH),
        Route(ROLE_SELECTION_PATH, RoleSelectionGate()),
        Route("/buyer-dashboard", buyer),
        Route("/cart", buyer),
        Route("/checkout", buyer),
        Route("/seller-dashboard", seller),
        Route("/products/new", seller),
        Route("/admin-dashboard", admin),
        Route("/admin/users", admin),
        Route("/profile", any_role),
        Route("/notifications", any_role),
    ]
