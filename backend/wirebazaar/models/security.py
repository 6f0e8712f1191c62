from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

class SecurityEvent(db.Model):
    """
    Security event audit log.

    WHY: Track authorization denials and failed logins. Every rejected
    operation leaves a row naming the caller, the resource and the rule
    that failed.

    Append-only. Rows leave only through the retention cleanup command.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_identity_type", "identity_id", "event_type"),
        db.Index("ix_security_events_occurred", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Nullable for anonymous callers and pre-auth events
    identity_id = db.Column(db.String(36), nullable=True, index=True)

    # Event classification
    event_type = db.Column(db.String(64), nullable=False, index=True)  # AUTHORIZATION_DENIED, OWNER_LOGIN_DENIED, ...
    resource = db.Column(db.String(128), nullable=True)  # e.g., "orders"
    action = db.Column(db.String(64), nullable=True)     # e.g., "update"

    # Event details
    success = db.Column(db.Boolean, nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "identity_id": self.identity_id,
            "event_type": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "occurred_at": to_utc_z(self.occurred_at),
        }
