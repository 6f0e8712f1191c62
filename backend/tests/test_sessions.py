"""Session tokens: hashing, absolute and idle timeouts, revocation, cleanup."""

from datetime import timedelta

import pytest

from wirebazaar.extensions import db
from wirebazaar.models import SessionToken
from wirebazaar.services import session_service
from wirebazaar.time_utils import utcnow


def _row(token):
    return db.session.query(SessionToken).filter_by(token_hash=session_service.hash_token(token)).one()


class TestSessions:

    def test_only_hash_stored(self, customer_a):
        row = _row(customer_a.token)
        assert row.token_hash != customer_a.token
        assert len(row.token_hash) == 64
        assert row.kind == "customer"

    def test_validate_touches_last_used(self, customer_a):
        row = _row(customer_a.token)
        row.last_used_at = utcnow() - timedelta(hours=1)
        db.session.commit()

        context = session_service.validate_session(customer_a.token)

        assert context.identity_id == customer_a.profile.id
        assert utcnow() - _row(customer_a.token).last_used_at < timedelta(minutes=1)

    def test_absolute_timeout(self, customer_a):
        row = _row(customer_a.token)
        row.expires_at = utcnow() - timedelta(seconds=1)
        db.session.commit()
        assert session_service.validate_session(customer_a.token) is None

    def test_idle_timeout_revokes(self, customer_a):
        row = _row(customer_a.token)
        row.last_used_at = utcnow() - timedelta(hours=25)
        db.session.commit()

        assert session_service.validate_session(customer_a.token) is None
        assert _row(customer_a.token).revoked_reason == "Idle timeout"

    def test_revoke(self, customer_a):
        assert session_service.revoke_session(customer_a.token)
        assert not session_service.revoke_session(customer_a.token)
        assert session_service.validate_session(customer_a.token) is None

    def test_unknown_kind(self, customer_a):
        with pytest.raises(ValueError):
            session_service.create_session(customer_a.profile.id, kind="admin")

    def test_cleanup_keeps_live_sessions(self, customer_a, customer_b):
        session_service.revoke_session(customer_b.token)
        stale = _row(customer_b.token)
        stale.created_at = utcnow() - timedelta(days=40)
        db.session.commit()

        assert session_service.cleanup_expired_sessions(retention_days=30) == 1
        assert db.session.query(SessionToken).count() == 1
