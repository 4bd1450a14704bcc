"""
Shared pytest fixtures for the CiviFix test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - auth_headers: Bearer headers carrying a user id

Factory fixtures:
    - make_profile(user_id, role, ...): create + commit a profile
    - make_issue(user_id, ...): file + commit an issue
    - technician_id(user_id): Technician.id owned by a user
"""

import pytest

from civifix import create_app
from civifix.models import db as _db
from civifix.models.profile import ADMIN_APPROVED, ROLE_ADMIN, Technician, UserProfile


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def auth_headers():
    """Return a function building ``Authorization: Bearer`` headers for a user id."""
    from civifix.services.jwt_service import generate_access_token

    def _headers(user_id):
        return {"Authorization": f"Bearer {generate_access_token(user_id)}"}

    return _headers


# ── Factory fixtures ─────────────────────────────────────────────────────


@pytest.fixture()
def make_profile():
    """Create a profile through the service layer and commit it.

    ``approved=True`` flips an Admin straight to approved, bypassing the
    SuperAdmin flow.
    """
    from civifix.services import profile_service

    def _make(user_id, role, *, full_name=None, phone="555-0100", approved=False):
        name = full_name or f"User {user_id}"
        if role == "SuperAdmin":
            profile = profile_service.promote_super_admin(user_id, full_name=name, phone=phone)
        else:
            profile = profile_service.create_or_update_profile(user_id, name, phone, role)
        if approved and role == ROLE_ADMIN:
            row = UserProfile.query.filter_by(owner_user_id=user_id).one()
            row.admin_status = ADMIN_APPROVED
            profile["admin_status"] = ADMIN_APPROVED
        _db.session.commit()
        return profile

    return _make


@pytest.fixture()
def make_issue():
    """File an issue through the service layer and commit it. Returns the create result."""
    from civifix.services import issue_service

    def _make(user_id, *, lat=12.9716, lng=77.5946, category="Road", title="Pothole"):
        result = issue_service.create_issue(
            user_id, title, "Deep pothole near the bus stop", category, "", lat, lng,
        )
        _db.session.commit()
        return result

    return _make


@pytest.fixture()
def technician_id():
    """Return the Technician.id owned by a user id."""

    def _lookup(user_id):
        return Technician.query.filter_by(owner_user_id=user_id).one().id

    return _lookup
