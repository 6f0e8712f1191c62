# backend/wirebazaar/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/wirebazaar.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///wirebazaar.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "database" persists orders/identities in SQLALCHEMY_DATABASE_URI.
    # "local" means no backend is configured: orders go to the device-local
    # fallback slot and login flows are unavailable.
    DATA_BACKEND = os.environ.get("DATA_BACKEND", "database")

    # Directory holding the local fallback order slot (instance path if unset)
    ORDER_FALLBACK_DIR = os.environ.get("ORDER_FALLBACK_DIR")

    OTP_TTL_SECONDS = int(os.environ.get("OTP_TTL_SECONDS", "300"))
    OTP_MAX_ATTEMPTS = int(os.environ.get("OTP_MAX_ATTEMPTS", "5"))
