"""
Name: Navigation and Router Tests

Responsibilities:
  - RedirectController navigates with replace and deduplicates evaluations
  - Router combines redirect + page guard per route
"""

import pytest
from tesoros.client.guards import DenialReason, GuardOutcome
from tesoros.client.navigation import (
    HistoryNavigator,
    RedirectController,
    Router,
    default_routes,
)
from tesoros.client.session import SessionState
from tesoros.domain.entities import Identity, UserRole

pytestmark = pytest.mark.unit

IDENTITY = Identity(subject_id="sub-1", email="ana@example.com", email_verified=True)


class StubSession:
    def __init__(self, state: SessionState) -> None:
        self.state = state
        self.listeners = []

    def subscribe(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    def publish(self, state: SessionState) -> None:
        self.state = state
        for listener in list(self.listeners):
            listener(state)


class CountingNavigator(HistoryNavigator):
    def __init__(self, initial_path: str = "/") -> None:
        super().__init__(initial_path)
        self.calls = []

    def navigate(self, path, *, replace=True):
        self.calls.append((path, replace))
        super().navigate(path, replace=replace)


def _router(state: SessionState, path: str = "/"):
    navigator = CountingNavigator(path)
    controller = RedirectController(navigator)
    session = StubSession(state)
    return Router(default_routes(), controller, session), navigator, session


class TestHistoryNavigator:
    def test_replace_overwrites_current_entry(self):
        navigator = HistoryNavigator("/cart")
        navigator.navigate("/login", replace=True)
        assert navigator.history == ["/login"]

    def test_push_appends(self):
        navigator = HistoryNavigator()
        navigator.navigate("/products/", replace=False)
        assert navigator.history == ["/", "/products"]
        assert navigator.current_path == "/products"


class TestRedirectController:
    def test_redirect_uses_replace(self):
        navigator = CountingNavigator("/cart")
        controller = RedirectController(navigator)

        decision = controller.evaluate(SessionState(identity=IDENTITY))

        assert decision.navigate_to == "/complete-profile"
        assert navigator.calls == [("/complete-profile", True)]
        assert navigator.history == ["/complete-profile"]

    def test_same_input_does_not_navigate_twice(self):
        navigator = CountingNavigator("/cart")
        controller = RedirectController(navigator)
        state = SessionState(identity=IDENTITY)

        controller.evaluate(state, "/cart")
        controller.evaluate(state, "/cart")

        assert len(navigator.calls) == 1

    def test_attach_reacts_to_published_states(self, profile_factory):
        navigator = CountingNavigator("/seller-dashboard")
        controller = RedirectController(navigator)
        session = StubSession(SessionState())
        detach = controller.attach(session)

        session.publish(SessionState(identity=IDENTITY, is_loading=True))
        assert navigator.calls == []

        pending = profile_factory(role=UserRole.SELLER)
        session.publish(SessionState(identity=IDENTITY, profile=pending))
        assert navigator.current_path == "/pending-approval"

        detach()
        assert session.listeners == []


class TestRouter:
    def test_public_route_renders_for_anonymous(self):
        router, _, _ = _router(SessionState(), "/products")
        resolution = router.resolve()
        assert resolution.renders
        assert resolution.guard is None

    def test_unknown_path_is_public(self):
        router, _, _ = _router(SessionState())
        assert router.resolve("/about").renders

    def test_protected_route_denies_anonymous(self):
        router, _, _ = _router(SessionState(), "/cart")
        resolution = router.resolve()
        assert resolution.guard.outcome == GuardOutcome.DENIED
        assert resolution.guard.denial.reason == DenialReason.NOT_LOGGED_IN
        assert not resolution.renders

    def test_admin_route_denies_buyer(self, profile_factory):
        state = SessionState(identity=IDENTITY, profile=profile_factory())
        router, _, _ = _router(state)
        resolution = router.navigate("/admin/users")
        assert resolution.guard.denial.reason == DenialReason.ROLE_NOT_ALLOWED

    def test_buyer_reaches_cart(self, profile_factory):
        state = SessionState(identity=IDENTITY, profile=profile_factory())
        router, navigator, _ = _router(state)
        assert router.navigate("/cart").renders
        assert navigator.history == ["/", "/cart"]

    def test_role_selection_page_renders_for_new_identity(self):
        router, navigator, _ = _router(SessionState(identity=IDENTITY), "/complete-profile")
        resolution = router.resolve()
        assert resolution.renders
        assert navigator.calls == []

    def test_role_selection_page_sends_resolved_user_home(self, profile_factory):
        state = SessionState(identity=IDENTITY, profile=profile_factory())
        router, navigator, _ = _router(state, "/complete-profile")

        resolution = router.resolve()

        assert resolution.redirect.navigate_to == "/"
        assert navigator.current_path == "/"
        assert router.resolve().renders

    def test_pending_seller_is_redirected_before_guard(self, profile_factory):
        state = SessionState(identity=IDENTITY, profile=profile_factory(role=UserRole.SELLER))
        router, navigator, _ = _router(state)

        resolution = router.navigate("/seller-dashboard")

        assert resolution.redirect.navigate_to == "/pending-approval"
        assert resolution.guard is None
        assert navigator.current_path == "/pending-approval"

    def test_loading_shows_placeholder(self):
        router, _, _ = _router(SessionState(identity=IDENTITY, is_loading=True), "/cart")
        assert router.resolve().guard.outcome == GuardOutcome.PLACEHOLDER

    def test_repeated_deep_link_is_redirected_every_time(self, profile_factory):
        state = SessionState(identity=IDENTITY, profile=profile_factory(role=UserRole.SELLER))
        router, navigator, _ = _router(state)

        router.navigate("/seller-dashboard")
        second = router.navigate("/seller-dashboard")

        assert second.redirect.navigate_to == "/pending-approval"
        assert navigator.current_path == "/pending-approval"
        assert navigator.calls.count(("/pending-approval", True)) == 2

    def test_reentering_role_selection_sends_resolved_user_home(self, profile_factory):
        state = SessionState(identity=IDENTITY, profile=profile_factory())
        router, navigator, _ = _router(state)

        router.navigate("/complete-profile")
        router.navigate("/complete-profile")

        assert navigator.current_path == "/"

    def test_profile_resolution_leaves_role_selection_without_resolve(self, profile_factory):
        navigator = CountingNavigator("/cart")
        controller = RedirectController(navigator)
        session = StubSession(SessionState(identity=IDENTITY))
        router = Router(default_routes(), controller, session)
        controller.attach(session)

        router.resolve()
        assert navigator.current_path == "/complete-profile"

        session.publish(SessionState(identity=IDENTITY, profile=profile_factory()))

        assert navigator.current_path == "/"
