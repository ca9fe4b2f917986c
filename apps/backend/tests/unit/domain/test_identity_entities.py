"""
Name: Identity Entities Unit Tests

Responsibilities:
  - Profile derived flags (pending approval, suspended)
  - Immutability of published snapshots
"""

from dataclasses import FrozenInstanceError

import pytest
from tesoros.domain.entities import Identity, ProviderId, UserRole


@pytest.mark.unit
class TestProfile:
    def test_buyer_is_never_pending(self, profile_factory):
        buyer = profile_factory(role=UserRole.BUYER)
        assert buyer.is_approved is True
        assert buyer.is_pending_approval is False

    def test_unapproved_seller_is_pending(self, profile_factory):
        seller = profile_factory(role=UserRole.SELLER)
        assert seller.is_pending_approval is True

    def test_suspended_flag_mirrors_is_active(self, profile_factory):
        assert profile_factory(is_active=False).is_suspended is True
        assert profile_factory().is_suspended is False

    def test_profile_is_immutable(self, profile_factory):
        profile = profile_factory()
        with pytest.raises(FrozenInstanceError):
            profile.role = UserRole.ADMIN  # type: ignore[misc]


@pytest.mark.unit
class TestIdentity:
    def test_defaults(self):
        identity = Identity(subject_id="abc", email="a@example.com")
        assert identity.email_verified is False
        assert identity.provider_id == ProviderId.PASSWORD

    def test_equal_identities_compare_equal(self):
        a = Identity(subject_id="abc", email="a@example.com", email_verified=True)
        b = Identity(subject_id="abc", email="a@example.com", email_verified=True)
        assert a == b
        assert hash(a) == hash(b)
