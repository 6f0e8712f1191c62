from __future__ import annotations

import uuid

from ..extensions import db
from ..time_utils import to_utc_z


def new_id() -> str:
    return str(uuid.uuid4())


class AuthIdentity(db.Model):
    """
    Identity-provider account: the anchor every session, profile and owner
    account hangs off.

    Customers arrive through OTP (email or phone, no password). Owners are
    created out-of-band with a bcrypt password hash.
    """
    __tablename__ = "auth_identities"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=True, unique=True, index=True)
    phone = db.Column(db.String(20), nullable=True, unique=True, index=True)

    # Bcrypt hashed password (owners only)
    password_hash = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_sign_in_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "phone": self.phone,
            "created_at": to_utc_z(self.created_at),
            "last_sign_in_at": to_utc_z(self.last_sign_in_at),
        }


class OtpChallenge(db.Model):
    """
    One-time passcode issued to a contact.

    Only the bcrypt hash of the code is stored. A challenge is usable once,
    until expires_at, and for a bounded number of wrong attempts.
    """
    __tablename__ = "otp_challenges"
    __table_args__ = (
        db.Index("ix_otp_challenges_contact_channel", "contact", "channel"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    identity_id = db.Column(db.String(36), db.ForeignKey("auth_identities.id", ondelete="CASCADE"), nullable=False, index=True)

    channel = db.Column(db.String(10), nullable=False)  # email | phone
    contact = db.Column(db.String(255), nullable=False)
    code_hash = db.Column(db.String(255), nullable=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    consumed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    identity = db.relationship("AuthIdentity", backref=db.backref("otp_challenges", lazy=True))


class SessionToken(db.Model):
    """
    Opaque session issued by the identity provider.

    Plaintext tokens go to the client; only the SHA-256 hash is stored.
    kind records which login flow opened the session (customer | owner).
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_identity", "identity_id", "is_revoked"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    identity_id = db.Column(db.String(36), db.ForeignKey("auth_identities.id", ondelete="CASCADE"), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)
    kind = db.Column(db.String(16), nullable=False, default="customer")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    identity = db.relationship("AuthIdentity", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "identity_id": self.identity_id,
            "kind": self.kind,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }


class Profile(db.Model):
    """Customer profile, keyed by the verified identity id."""
    __tablename__ = "profiles"

    id = db.Column(db.String(36), db.ForeignKey("auth_identities.id", ondelete="CASCADE"), primary_key=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    full_name = db.Column(db.String(255), nullable=True)

    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def contact(self) -> str:
        return self.phone or self.email or ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "phone": self.phone,
            "full_name": self.full_name,
            "contact": self.contact,
            "last_login_at": to_utc_z(self.last_login_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OwnerAccount(db.Model):
    """
    Privilege marker. A row for an identity grants owner access; no row
    means no owner access even for a valid identity.

    Never created through public signup, only through the CLI.
    """
    __tablename__ = "owner_accounts"

    id = db.Column(db.String(36), db.ForeignKey("auth_identities.id", ondelete="CASCADE"), primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    full_name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="admin")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
        }
