# backend/wirebazaar/services/profile_service.py
"""
Customer profiles.

A profile row shares its id with the verified identity. Only the matching
identity may read or change it.
"""
from __future__ import annotations

from ..extensions import db
from ..models import AuthIdentity, Profile
from ..validation import NotFoundError
from .authorization_service import Actor, can_access_profile, require
from wirebazaar.time_utils import utcnow

PROFILE_MUTABLE_FIELDS = {"full_name", "email", "phone"}


def upsert_profile(identity: AuthIdentity) -> Profile:
    """
    Create or refresh the profile for a verified identity (conflict on id).

    Called right after OTP verification; stamps last_login_at.
    """
    profile = db.session.get(Profile, identity.id)
    if profile is None:
        profile = Profile(id=identity.id)
        db.session.add(profile)

    profile.email = identity.email or profile.email or ""
    profile.phone = identity.phone or profile.phone or ""
    profile.last_login_at = utcnow()
    db.session.commit()
    return profile


def get_profile(actor: Actor, profile_id: str) -> dict:
    require(
        can_access_profile(actor, profile_id), actor,
        resource="profiles", action="read", reason="Profiles are private to their owner",
    )
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile.to_dict()


def update_profile(actor: Actor, profile_id: str, patch: dict) -> dict:
    require(
        can_access_profile(actor, profile_id), actor,
        resource="profiles", action="update", reason="Profiles are private to their owner",
    )
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")

    for k, v in patch.items():
        if k in PROFILE_MUTABLE_FIELDS:
            setattr(profile, k, v)

    db.session.commit()
    return profile.to_dict()
