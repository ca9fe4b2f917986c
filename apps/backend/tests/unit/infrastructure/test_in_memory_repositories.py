"""
Name: In-Memory Repository Tests

Responsibilities:
  - One profile per subject_id, even under concurrent registration
  - Field-level updates (last-write-wins per field)
  - Notification ownership on mark_read
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from uuid import uuid4

import pytest
from tesoros.domain.entities import Notification, UserRole
from tesoros.infrastructure.repositories import (
    InMemoryNotificationRepository,
    InMemoryProfileRepository,
)

pytestmark = pytest.mark.unit


def test_create_if_absent_returns_existing_for_same_subject(profile_factory):
    repo = InMemoryProfileRepository()
    first = profile_factory(subject_id="sub-1")
    second = profile_factory(subject_id="sub-1", role=UserRole.SELLER)

    created, was_created = repo.create_if_absent(first)
    existing, second_created = repo.create_if_absent(second)

    assert was_created is True
    assert second_created is False
    assert existing.id == created.id
    assert existing.role == UserRole.BUYER


def test_concurrent_registration_yields_single_record(profile_factory):
    repo = InMemoryProfileRepository()
    candidates = [profile_factory(subject_id="same-subject") for _ in range(20)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(repo.create_if_absent, candidates))

    assert sum(1 for _, created in results if created) == 1
    assert len({profile.id for profile, _ in results}) == 1
    assert len(repo.list_profiles()) == 1


def test_update_fields_touches_only_supplied_fields(profile_factory):
    repo = InMemoryProfileRepository()
    profile, _ = repo.create_if_absent(profile_factory(role=UserRole.SELLER))

    # Admin approves while the owner renames: both writes survive.
    repo.update_fields(profile.id, is_approved=True)
    updated = repo.update_fields(profile.id, name="Nuevo nombre")

    assert updated.is_approved is True
    assert updated.name == "Nuevo nombre"
    assert updated.role == UserRole.SELLER


def test_update_fields_unknown_profile_returns_none():
    repo = InMemoryProfileRepository()
    assert repo.update_fields(uuid4(), name="x") is None


def test_list_profiles_filters(profile_factory):
    buyer = profile_factory(role=UserRole.BUYER)
    pending = profile_factory(role=UserRole.SELLER)
    approved = profile_factory(role=UserRole.SELLER, is_approved=True)
    repo = InMemoryProfileRepository([buyer, pending, approved])

    assert {p.id for p in repo.list_profiles(role=UserRole.SELLER)} == {
        pending.id,
        approved.id,
    }
    assert [p.id for p in repo.list_profiles(pending_only=True)] == [pending.id]
    assert repo.get_by_email(buyer.email.upper()).id == buyer.id


def test_notifications_listed_per_user_and_marked_read_by_owner_only():
    repo = InMemoryNotificationRepository()
    owner, stranger = uuid4(), uuid4()
    notification = Notification(id=uuid4(), user_id=owner, title="t", message="m")
    repo.enqueue(notification)
    repo.enqueue(replace(notification, id=uuid4(), user_id=stranger))

    listed = repo.list_for_user(owner)
    assert [n.id for n in listed] == [notification.id]
    assert listed[0].created_at is not None

    assert repo.mark_read(notification.id, stranger) is False
    assert repo.mark_read(notification.id, owner) is True
    assert repo.list_for_user(owner)[0].read is True
