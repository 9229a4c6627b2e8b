"""
Pytest fixtures for the armory backend tests.

Provides a fresh in-memory database per test, one account per role with a
live session token, and the Flask test client.
"""

import itertools

import pytest

from armory import create_app
from armory.config import TestConfig
from armory.extensions import db
from armory.models import InventoryItem, Order
from armory.models.auth import ROLE_ADMIN, ROLE_MODERATOR, ROLE_USER
from armory.services import session_service
from armory.services.auth_service import create_user


_pins = itertools.count(5000)


@pytest.fixture(scope='function')
def app():
    """Create application with an empty schema for each test."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


def make_user(email: str, role: str = ROLE_USER, pin_no: str = None, name: str = None,
              password: str = "Password1"):
    """Helper to create a committed user account."""
    return create_user(
        email=email,
        password=password,
        name=name or email.split("@")[0].title(),
        pin_no=pin_no or str(next(_pins)),
        role=role,
    )


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    """Start a session for user and return its Authorization headers."""
    _session, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def regular_user(app):
    return make_user("shooter@ammo.com", ROLE_USER, pin_no="1001", name="Range Shooter")


@pytest.fixture(scope='function')
def other_user(app):
    return make_user("other@ammo.com", ROLE_USER, pin_no="1002", name="Other Shooter")


@pytest.fixture(scope='function')
def moderator(app):
    return make_user("mod@ammo.com", ROLE_MODERATOR, pin_no="2001", name="Range Officer")


@pytest.fixture(scope='function')
def admin(app):
    return make_user("admin@ammo.com", ROLE_ADMIN, pin_no="0000", name="Admin User")


@pytest.fixture(scope='function')
def user_headers(regular_user):
    return headers_for(regular_user)


@pytest.fixture(scope='function')
def other_user_headers(other_user):
    return headers_for(other_user)


@pytest.fixture(scope='function')
def moderator_headers(moderator):
    return headers_for(moderator)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture(scope='function')
def item_9mm(app):
    """9mm stock row holding 500 rounds."""
    item = InventoryItem(caliber="9mm", quantity=500)
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture(scope='function')
def pending_order(regular_user):
    """Pending 9mm order for 200 rounds placed by regular_user."""
    order = Order(user_id=regular_user.id, caliber="9mm", quantity=200, status="pending")
    db.session.add(order)
    db.session.commit()
    return order
