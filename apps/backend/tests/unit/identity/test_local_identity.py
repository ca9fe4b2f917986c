"""
Name: Local Identity Provider Tests

Responsibilities:
  - Account creation rules (email format, password strength, duplicates)
  - Authentication with lockout (RATE_LIMITED)
  - Federated sign-in, password reset outbox
  - Fresh ID token per call, verifiable by the Profile Store
"""

import pytest
from tesoros.crosscutting.exceptions import (
    AuthError,
    AuthErrorCode,
    InvalidCredentialsError,
    NotAuthenticatedError,
    RateLimitedError,
)
from tesoros.domain.entities import ProviderId
from tesoros.identity.local_provider import LocalIdentityProvider, LocalIdentityService
from tesoros.identity.provider import FederatedCredential
from tesoros.identity.tokens import LocalTokenVerifier

pytestmark = pytest.mark.unit


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestLocalIdentityService:
    @pytest.mark.parametrize(
        "email, password, code",
        [
            ("not-an-email", "secret123", AuthErrorCode.INVALID_EMAIL),
            ("ana@example.com", "123", AuthErrorCode.WEAK_PASSWORD),
        ],
    )
    def test_create_account_validation(self, identity_directory, email, password, code):
        with pytest.raises(AuthError) as exc_info:
            identity_directory.create_account(email, password)
        assert exc_info.value.code == code

    def test_duplicate_email_is_rejected(self, identity_directory):
        identity_directory.create_account("ana@example.com", "secret123")
        with pytest.raises(AuthError) as exc_info:
            identity_directory.create_account("ANA@example.com", "secret123")
        assert exc_info.value.code == AuthErrorCode.EMAIL_IN_USE

    def test_new_accounts_are_unverified(self, identity_directory):
        identity = identity_directory.create_account("ana@example.com", "secret123")
        assert identity.email_verified is False
        assert identity_directory.mark_email_verified("ana@example.com") is True
        assert identity_directory.get(identity.subject_id).email_verified is True

    def test_wrong_password_is_invalid_credentials(self, identity_directory):
        identity_directory.create_account("ana@example.com", "secret123")
        with pytest.raises(InvalidCredentialsError):
            identity_directory.authenticate("ana@example.com", "wrong-pass")

    def test_lockout_after_max_failures(self):
        clock = _Clock()
        service = LocalIdentityService(
            token_secret="s",
            token_issuer="i",
            max_failed_attempts=2,
            lockout_seconds=60,
            clock=clock,
        )
        service.create_account("ana@example.com", "secret123")
        for _ in range(2):
            with pytest.raises(InvalidCredentialsError):
                service.authenticate("ana@example.com", "wrong-pass")

        with pytest.raises(RateLimitedError):
            service.authenticate("ana@example.com", "secret123")

        clock.now += 61
        assert service.authenticate("ana@example.com", "secret123").email == "ana@example.com"

    def test_disabled_account(self, identity_directory):
        identity_directory.create_account("ana@example.com", "secret123")
        identity_directory.set_disabled("ana@example.com")
        with pytest.raises(AuthError) as exc_info:
            identity_directory.authenticate("ana@example.com", "secret123")
        assert exc_info.value.code == AuthErrorCode.ACCOUNT_DISABLED

    def test_federated_sign_in_conflicts_with_password_account(self, identity_directory):
        identity_directory.create_account("ana@example.com", "secret123")
        with pytest.raises(AuthError) as exc_info:
            identity_directory.federated_sign_in(
                FederatedCredential(email="ana@example.com")
            )
        assert (
            exc_info.value.code
            == AuthErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL
        )

    def test_password_reset_is_silent_for_unknown_email(self, identity_directory):
        identity_directory.create_account("ana@example.com", "secret123")
        identity_directory.send_password_reset("ghost@example.com")
        identity_directory.send_password_reset("ana@example.com")
        assert identity_directory.outbox.password_reset == ["ana@example.com"]


class TestLocalIdentityProvider:
    @pytest.mark.asyncio
    async def test_tokens_are_fresh_and_verifiable(self, identity_directory):
        provider = LocalIdentityProvider(identity_directory)
        identity = await provider.create_identity("ana@example.com", "secret123", "Ana")

        first = await provider.get_id_token()
        second = await provider.get_id_token()
        assert first != second

        verifier = LocalTokenVerifier(secret="test-secret", issuer="tesoros-local-identity")
        verified = verifier.verify(first)
        assert verified.subject_id == identity.subject_id
        assert verified.email_verified is False

    @pytest.mark.asyncio
    async def test_sign_out_clears_session(self, identity_directory):
        provider = LocalIdentityProvider(identity_directory)
        await provider.create_identity("ana@example.com", "secret123")
        await provider.sign_out()

        assert provider.current_identity() is None
        with pytest.raises(NotAuthenticatedError):
            await provider.get_id_token()

    @pytest.mark.asyncio
    async def test_cancelled_federated_sign_in(self, identity_directory):
        provider = LocalIdentityProvider(identity_directory)
        with pytest.raises(AuthError) as exc_info:
            await provider.federated_sign_in(None)
        assert exc_info.value.code == AuthErrorCode.FEDERATED_CANCELLED

    @pytest.mark.asyncio
    async def test_federated_identity_is_verified(self, identity_directory):
        provider = LocalIdentityProvider(identity_directory)
        identity = await provider.federated_sign_in(
            FederatedCredential(email="Luz@Gmail.com", display_name="Luz")
        )
        assert identity.provider_id == ProviderId.GOOGLE
        assert identity.email_verified is True
        assert identity.email == "luz@gmail.com"

    @pytest.mark.asyncio
    async def test_reload_identity_sees_verification(self, identity_directory):
        provider = LocalIdentityProvider(identity_directory)
        await provider.create_identity("ana@example.com", "secret123")
        identity_directory.mark_email_verified("ana@example.com")

        reloaded = await provider.reload_identity()
        assert reloaded.email_verified is True
