"""
Name: Profile Store Use Case Tests

Responsibilities:
  - Register: idempotent upsert, role rules, role selection resolution
  - Get / Update my profile: onboarding-only role changes, suspension guard
  - List users: admin only
"""

import pytest
from tesoros.application.usecases import (
    GetMyProfileUseCase,
    ListUsersUseCase,
    ProfileErrorCode,
    RegisterProfileInput,
    RegisterProfileUseCase,
    UpdateMyProfileUseCase,
    UpdateProfileInput,
)
from tesoros.domain.entities import UserRole

pytestmark = pytest.mark.unit


def _register_input(role=UserRole.BUYER, subject_id="sub-1", name="Ana"):
    return RegisterProfileInput(
        subject_id=subject_id, email="Ana@Example.com", name=name, role=role
    )


# =============================================================================
# Register
# =============================================================================


class TestRegisterProfile:
    def test_buyer_is_created_approved(self, profile_repo):
        result = RegisterProfileUseCase(profile_repo).execute(_register_input())

        assert result.error is None
        assert result.created is True
        assert result.profile.role == UserRole.BUYER
        assert result.profile.is_approved is True
        assert result.profile.needs_role_selection is False
        assert result.profile.email == "ana@example.com"

    def test_seller_starts_pending(self, profile_repo):
        result = RegisterProfileUseCase(profile_repo).execute(
            _register_input(role=UserRole.SELLER)
        )
        assert result.profile.is_pending_approval is True

    def test_admin_role_is_forbidden(self, profile_repo):
        result = RegisterProfileUseCase(profile_repo).execute(
            _register_input(role=UserRole.ADMIN)
        )
        assert result.error.code == ProfileErrorCode.FORBIDDEN
        assert profile_repo.get_by_subject("sub-1") is None

    def test_blank_name_is_validation_error(self, profile_repo):
        result = RegisterProfileUseCase(profile_repo).execute(_register_input(name="  "))
        assert result.error.code == ProfileErrorCode.VALIDATION_ERROR

    def test_repeat_call_is_idempotent_and_keeps_role(self, profile_repo):
        use_case = RegisterProfileUseCase(profile_repo)
        first = use_case.execute(_register_input(role=UserRole.SELLER))
        again = use_case.execute(_register_input(role=UserRole.BUYER))

        assert again.error is None
        assert again.created is False
        assert again.profile.id == first.profile.id
        assert again.profile.role == UserRole.SELLER
        assert len(profile_repo.list_profiles()) == 1

    def test_resolves_pending_role_selection(self, profile_repo, profile_factory):
        profile_repo.create_if_absent(
            profile_factory(subject_id="sub-1", needs_role_selection=True)
        )

        result = RegisterProfileUseCase(profile_repo).execute(
            _register_input(role=UserRole.SELLER)
        )

        assert result.created is False
        assert result.profile.role == UserRole.SELLER
        assert result.profile.is_approved is False
        assert result.profile.needs_role_selection is False


# =============================================================================
# Get / Update
# =============================================================================


class TestGetMyProfile:
    def test_missing_profile_is_not_found(self, profile_repo):
        result = GetMyProfileUseCase(profile_repo).execute("nobody")
        assert result.error.code == ProfileErrorCode.NOT_FOUND

    def test_returns_profile(self, profile_repo, profile_factory):
        stored, _ = profile_repo.create_if_absent(profile_factory(subject_id="sub-1"))
        result = GetMyProfileUseCase(profile_repo).execute("sub-1")
        assert result.profile == stored


class TestUpdateMyProfile:
    def _seed(self, repo, factory, **kwargs):
        profile, _ = repo.create_if_absent(factory(subject_id="sub-1", **kwargs))
        return profile

    def test_missing_profile_is_not_found(self, profile_repo):
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(subject_id="sub-1", name="x")
        )
        assert result.error.code == ProfileErrorCode.NOT_FOUND

    def test_empty_patch_is_noop(self, profile_repo, profile_factory):
        stored = self._seed(profile_repo, profile_factory)
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(subject_id="sub-1")
        )
        assert result.profile == stored

    def test_updates_name_and_avatar(self, profile_repo, profile_factory):
        self._seed(profile_repo, profile_factory)
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(subject_id="sub-1", name=" Luz ", avatar="a.png")
        )
        assert result.profile.name == "Luz"
        assert result.profile.avatar == "a.png"

    def test_suspended_profile_cannot_edit(self, profile_repo, profile_factory):
        self._seed(profile_repo, profile_factory, is_active=False)
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(subject_id="sub-1", name="Luz")
        )
        assert result.error.code == ProfileErrorCode.FORBIDDEN

    def test_role_escalation_to_admin_is_rejected(self, profile_repo, profile_factory):
        self._seed(profile_repo, profile_factory, needs_role_selection=True)
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(subject_id="sub-1", role=UserRole.ADMIN)
        )
        assert result.error.code == ProfileErrorCode.FORBIDDEN
        assert profile_repo.get_by_subject("sub-1").role == UserRole.BUYER

    def test_role_selected_during_onboarding(self, profile_repo, profile_factory):
        self._seed(profile_repo, profile_factory, needs_role_selection=True)
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(
                subject_id="sub-1", role=UserRole.SELLER, needs_role_selection=False
            )
        )
        assert result.profile.role == UserRole.SELLER
        assert result.profile.is_approved is False
        assert result.profile.needs_role_selection is False

    def test_role_change_after_onboarding_is_forbidden(
        self, profile_repo, profile_factory
    ):
        self._seed(profile_repo, profile_factory, role=UserRole.BUYER)
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(subject_id="sub-1", role=UserRole.SELLER)
        )
        assert result.error.code == ProfileErrorCode.FORBIDDEN

    def test_needs_role_selection_never_reverts(self, profile_repo, profile_factory):
        self._seed(profile_repo, profile_factory)
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(subject_id="sub-1", needs_role_selection=True)
        )
        assert result.error.code == ProfileErrorCode.VALIDATION_ERROR
        assert profile_repo.get_by_subject("sub-1").needs_role_selection is False

    def test_clearing_selection_requires_a_role(self, profile_repo, profile_factory):
        self._seed(profile_repo, profile_factory, needs_role_selection=True)
        result = UpdateMyProfileUseCase(profile_repo).execute(
            UpdateProfileInput(subject_id="sub-1", needs_role_selection=False)
        )
        assert result.error.code == ProfileErrorCode.VALIDATION_ERROR


# =============================================================================
# List users
# =============================================================================


class TestListUsers:
    def test_requires_admin(self, profile_repo, profile_factory):
        result = ListUsersUseCase(profile_repo).execute(profile_factory())
        assert result.error.code == ProfileErrorCode.FORBIDDEN

    def test_admin_lists_pending_sellers(self, profile_repo, profile_factory):
        admin, _ = profile_repo.create_if_absent(profile_factory(role=UserRole.ADMIN))
        pending, _ = profile_repo.create_if_absent(
            profile_factory(role=UserRole.SELLER)
        )
        profile_repo.create_if_absent(profile_factory(role=UserRole.BUYER))

        result = ListUsersUseCase(profile_repo).execute(admin, pending_only=True)

        assert [p.id for p in result.profiles] == [pending.id]
