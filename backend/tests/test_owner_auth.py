"""
Owner password login gated by owner_accounts membership.

SECURITY: a valid password without an owner row must end unauthenticated,
with the session opened during the attempt revoked.
"""

import pytest

from wirebazaar.extensions import db
from wirebazaar.models import Profile, SecurityEvent, SessionToken
from wirebazaar.services import identity_service, owner_auth_service
from wirebazaar.services.authorization_service import AuthorizationError, is_owner_identity
from wirebazaar.services.identity_service import IdentityProviderError, PasswordValidationError
from wirebazaar.services.owner_auth_service import OwnerAuthFlow
from wirebazaar.validation import ConflictError, ValidationError

from conftest import OWNER_EMAIL, OWNER_PASSWORD


def _active_sessions(identity_id):
    return db.session.query(SessionToken).filter_by(identity_id=identity_id, is_revoked=False).count()


class TestOwnerLogin:

    def test_owner_succeeds(self, owner):
        result = owner_auth_service.login(OWNER_EMAIL, OWNER_PASSWORD)
        assert result.owner.id == owner.id
        assert identity_service.get_session(result.token).kind == "owner"

    def test_email_and_password_normalized(self, owner):
        result = owner_auth_service.login("  Owner@WireBazaar.LOCAL ", f" {OWNER_PASSWORD} ")
        assert result.owner.id == owner.id

    def test_wrong_password(self, owner):
        with pytest.raises(IdentityProviderError):
            owner_auth_service.login(OWNER_EMAIL, "WrongPass123")
        assert _active_sessions(owner.id) == 0

    def test_missing_fields(self, app):
        with pytest.raises(ValidationError):
            owner_auth_service.login("", "")

    def test_non_owner_session_revoked(self, app):
        identity = identity_service.create_password_identity("staff@wirebazaar.local", "Password123")

        with pytest.raises(AuthorizationError, match="Owner account required"):
            owner_auth_service.login("staff@wirebazaar.local", "Password123")

        assert db.session.query(SessionToken).filter_by(identity_id=identity.id).count() == 1
        assert _active_sessions(identity.id) == 0
        denied = db.session.query(SecurityEvent).filter_by(event_type="OWNER_LOGIN_DENIED").one()
        assert denied.identity_id == identity.id


class TestRestoreSession:

    def test_owner_restored(self, owner, owner_token):
        assert owner_auth_service.restore_session(owner_token).owner.id == owner.id

    def test_non_owner_rejected_but_session_kept(self, customer_a):
        assert owner_auth_service.restore_session(customer_a.token) is None
        assert identity_service.get_session(customer_a.token).identity_id == customer_a.profile.id

    def test_no_token(self, app):
        assert owner_auth_service.restore_session(None) is None


class TestOwnerProvisioning:

    def test_duplicate_owner(self, owner):
        with pytest.raises(ConflictError):
            owner_auth_service.create_owner_account(OWNER_EMAIL, "Another123")
        # The existing password is untouched
        assert owner_auth_service.login(OWNER_EMAIL, OWNER_PASSWORD).owner.id == owner.id

    def test_weak_password(self, app):
        with pytest.raises(PasswordValidationError):
            owner_auth_service.create_owner_account("new@wirebazaar.local", "short")

    def test_owner_gets_profile(self, owner):
        profile = db.session.get(Profile, owner.id)
        assert profile.email == OWNER_EMAIL
        assert profile.full_name == "Store Owner"

    def test_owner_claim(self, owner, customer_a):
        assert is_owner_identity(owner.id)
        assert not is_owner_identity(customer_a.profile.id)
        assert not is_owner_identity(None)


class TestOwnerAuthFlow:

    def test_login_logout(self, owner):
        flow = OwnerAuthFlow()
        assert flow.login(OWNER_EMAIL, OWNER_PASSWORD)
        assert flow.is_authenticated
        token = flow.token

        flow.logout()
        assert flow.state == "anonymous"
        assert identity_service.get_session(token) is None

    def test_rejected_login_returns_to_anonymous(self, app):
        identity_service.create_password_identity("staff@wirebazaar.local", "Password123")
        flow = OwnerAuthFlow()
        with pytest.raises(AuthorizationError):
            flow.login("staff@wirebazaar.local", "Password123")
        assert flow.state == "anonymous"
        assert flow.token is None

    def test_restore(self, owner, owner_token):
        flow = OwnerAuthFlow()
        assert flow.restore(owner_token)
        assert flow.owner.email == OWNER_EMAIL
