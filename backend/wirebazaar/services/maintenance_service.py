# Overview: Retention cleanup for audit rows and spent one-time codes.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import OtpChallenge, SecurityEvent
from wirebazaar.time_utils import utcnow


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete()
    db.session.commit()
    return deleted


def cleanup_otp_challenges(*, retention_days: int = 1) -> int:
    """
    Delete one-time code challenges that can no longer be used
    (consumed or expired) and are older than retention_days.
    """
    now = utcnow()
    cutoff = now - timedelta(days=retention_days)
    deleted = db.session.query(OtpChallenge).filter(
        db.or_(
            OtpChallenge.consumed_at.isnot(None),
            OtpChallenge.expires_at < now,
        ),
        OtpChallenge.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
