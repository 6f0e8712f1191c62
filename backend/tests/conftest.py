"""
Pytest fixtures for WireBazaar backend tests.

Provides a fresh in-memory database per test, a recording OTP sender (so
tests can read the codes that would have been delivered), customer and
owner fixtures, and a test client.
"""

import pytest
from sqlalchemy import text

from wirebazaar import create_app
from wirebazaar.extensions import db
from wirebazaar.services import customer_auth_service, owner_auth_service
from wirebazaar.services.authorization_service import Actor, actor_for_identity
from wirebazaar.services.identity_service import OtpSender, set_otp_sender


OWNER_EMAIL = "owner@wirebazaar.local"
OWNER_PASSWORD = "Password123"


class RecordingOtpSender(OtpSender):
    """Keeps every code it is asked to deliver."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, channel, contact, code):
        if self.fail:
            raise ConnectionError("SMS gateway unavailable")
        self.sent.append((channel, contact, code))

    def last_code(self, contact):
        for channel, sent_to, code in reversed(self.sent):
            if sent_to == contact:
                return code
        raise AssertionError(f"No OTP sent to {contact}")


@pytest.fixture
def app(tmp_path):
    """Application with an in-memory database and a per-test local order slot."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ORDER_FALLBACK_DIR': str(tmp_path / "orders"),
    })
    set_otp_sender(app, RecordingOtpSender())

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def local_app(tmp_path):
    """Application with no database backend configured (local slot only)."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'DATA_BACKEND': 'local',
        'ORDER_FALLBACK_DIR': str(tmp_path / "orders"),
    })
    with app.app_context():
        yield app


@pytest.fixture
def enforce_foreign_keys(app):
    """Turn on SQLite foreign key checks, as Postgres always has them."""
    db.session.execute(text("PRAGMA foreign_keys=ON"))
    db.session.commit()
    assert db.session.execute(text("PRAGMA foreign_keys")).scalar() == 1


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    return db.session


@pytest.fixture
def otp_sender(app):
    return app.extensions["wirebazaar.otp_sender"]


def login_customer(otp_sender, contact: str):
    """Run the full OTP flow for a contact and return the CustomerLogin."""
    pending = customer_auth_service.request_otp(contact)
    code = otp_sender.last_code(pending.contact)
    return customer_auth_service.verify_otp(contact, code, pending)


@pytest.fixture
def customer_a(otp_sender):
    return login_customer(otp_sender, "asha@example.com")


@pytest.fixture
def customer_b(otp_sender):
    return login_customer(otp_sender, "9876543210")


@pytest.fixture
def actor_a(customer_a):
    return actor_for_identity(customer_a.profile.id, "customer")


@pytest.fixture
def actor_b(customer_b):
    return actor_for_identity(customer_b.profile.id, "customer")


@pytest.fixture
def owner(app):
    return owner_auth_service.create_owner_account(OWNER_EMAIL, OWNER_PASSWORD, full_name="Store Owner")


@pytest.fixture
def owner_actor(owner):
    return actor_for_identity(owner.id, "owner")


@pytest.fixture
def owner_token(owner):
    return owner_auth_service.login(OWNER_EMAIL, OWNER_PASSWORD).token


@pytest.fixture
def anonymous():
    return Actor.anonymous()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def cart(*lines):
    """Cart items from (name, unit_price, quantity) tuples."""
    return [
        {"product_id": None, "product_name": name, "unit_price": price, "quantity": qty}
        for name, price, qty in lines
    ]


CUSTOMER_INFO = {
    "name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "+919876543210",
    "address": "12 Market Road, Pune",
    "pincode": "411001",
}
