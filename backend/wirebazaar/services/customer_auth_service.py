# Overview: Customer login by one-time passcode (email or phone).

"""
Customer OTP Login

State machine for a single client:

    anonymous --request_otp--> otp-requested(contact, channel) --verify_otp--> authenticated
        ^                                                                       |
        +------------------------------- logout --------------------------------+

Validation (contact format, code format, missing prior request) happens
before any call to the identity provider. A state transition happens only
after the provider succeeds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from flask import current_app

from ..models import Profile
from ..validation import ValidationError
from . import identity_service
from .profile_service import upsert_profile


DEFAULT_COUNTRY_CODE = "+91"

EMAIL_RE = re.compile(r"^(?:[a-zA-Z0-9_!#$%&'*+/=?`{|}~^.-]+)@(?:[a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}$")
PHONE_RE = re.compile(r"^(\+\d{1,3})?\d{10}$")
OTP_RE = re.compile(r"^[0-9]{6}$")

ANONYMOUS = "anonymous"
OTP_REQUESTED = "otp-requested"
AUTHENTICATED = "authenticated"


def _strip_separators(value: str) -> str:
    return re.sub(r"[\s-]", "", value)


def is_valid_email(value: str) -> bool:
    return EMAIL_RE.match(value.strip()) is not None


def is_valid_phone(value: str) -> bool:
    return PHONE_RE.match(_strip_separators(value)) is not None


def normalize_phone(phone: str) -> str:
    """
    International form of a phone number.

    Keeps an explicit "+" prefix, prefixes bare 10-digit numbers with the
    default country code, and otherwise just adds "+".
    """
    cleaned = _strip_separators(phone)
    if cleaned.startswith("+"):
        return cleaned
    if len(cleaned) == 10:
        return f"{DEFAULT_COUNTRY_CODE}{cleaned}"
    return f"+{cleaned}"


def classify_contact(contact: str) -> tuple[str, str]:
    """
    Return (channel, normalized_contact) for a login contact.

    Email is tested first (and lower-cased), then phone. Raises
    ValidationError otherwise.
    """
    trimmed = (contact or "").strip()
    if is_valid_email(trimmed):
        return "email", trimmed.lower()
    if is_valid_phone(trimmed):
        return "phone", normalize_phone(trimmed)
    raise ValidationError("Enter a valid mobile number (with country code) or email address.")


@dataclass(frozen=True)
class PendingVerification:
    contact: str
    channel: str  # phone | email


@dataclass
class CustomerLogin:
    token: str
    profile: Profile


def request_otp(contact: str) -> PendingVerification:
    """Validate the contact and ask the identity provider to send a code."""
    channel, normalized = classify_contact(contact)
    identity_service.send_otp(normalized, channel)
    return PendingVerification(contact=normalized, channel=channel)


def pending_for(contact: str) -> PendingVerification | None:
    """
    Rebuild the otp-requested state for a stateless caller (HTTP).

    Returns None when no code is outstanding for the contact.
    """
    try:
        channel, normalized = classify_contact(contact)
    except ValidationError:
        return None
    if not identity_service.has_pending_otp(normalized, channel):
        return None
    return PendingVerification(contact=normalized, channel=channel)


def verify_otp(contact: str, code: str, pending: PendingVerification | None) -> CustomerLogin:
    """
    Verify a code for the pending flow and upsert the customer profile.

    The channel comes from the pending request, not from re-classifying
    the contact.
    """
    if pending is None:
        raise ValidationError("Please request an OTP first.")

    code = (code or "").strip()
    if not OTP_RE.match(code):
        raise ValidationError("Enter the 6-digit OTP sent to you.")

    if pending.channel == "phone":
        normalized = normalize_phone(contact)
    else:
        normalized = (contact or "").strip().lower()

    verified = identity_service.verify_otp(normalized, pending.channel, code)
    profile = upsert_profile(verified.identity)
    return CustomerLogin(token=verified.token, profile=profile)


def logout(token: str | None) -> None:
    """
    End the customer session.

    Local state is always cleared by the caller; a failed remote sign-out
    is logged, never raised.
    """
    if not token:
        return
    try:
        identity_service.sign_out(token)
    except Exception:
        current_app.logger.exception("Remote sign-out failed; local session cleared anyway")


class CustomerAuthFlow:
    """
    Client-side holder of the customer login state machine.

    One instance per client (CLI session, test, or embedding application).
    """

    def __init__(self):
        self.state = ANONYMOUS
        self.pending: PendingVerification | None = None
        self.token: str | None = None
        self.profile: Profile | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == AUTHENTICATED

    def request_otp(self, contact: str) -> PendingVerification:
        pending = request_otp(contact)
        self.pending = pending
        self.state = OTP_REQUESTED
        return pending

    def verify_otp(self, contact: str, code: str) -> CustomerLogin:
        login = verify_otp(contact, code, self.pending)
        self.pending = None
        self.token = login.token
        self.profile = login.profile
        self.state = AUTHENTICATED
        return login

    def logout(self) -> None:
        token = self.token
        self.state = ANONYMOUS
        self.pending = None
        self.token = None
        self.profile = None
        logout(token)
