"""
Pytest fixtures for staffcore tests.

Provides test database setup, tenant fixtures, a controllable clock and a
test client.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from staffcore import create_app, time_utils
from staffcore.extensions import db
from staffcore.models import Business, Job, StaffRelation
from staffcore.permissions import ROLE_CO_ADMIN, ROLE_STAFF, build_permission_map
from staffcore.services.identity_service import IdentityContext


OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"
STAFF_ID = "staff-1"
COADMIN_ID = "coadmin-1"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


class FrozenClock:
    """Manually advanced replacement for time_utils.utcnow."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope='function')
def clock(monkeypatch):
    """Freeze 'now' for services and model defaults."""
    frozen = FrozenClock(datetime(2026, 3, 2, 9, 0, 0))
    monkeypatch.setattr(time_utils, "utcnow", frozen)
    return frozen


@pytest.fixture(scope='function')
def business(db_session):
    """Business A (first tenant)."""
    biz = Business(name="Sparkle Cleaning", owner_identity_id=OWNER_ID)
    db_session.add(biz)
    db_session.commit()
    return biz


@pytest.fixture(scope='function')
def other_business(db_session):
    """Business B (second tenant)."""
    biz = Business(name="Beta Gardens", owner_identity_id=OTHER_OWNER_ID)
    db_session.add(biz)
    db_session.commit()
    return biz


@pytest.fixture(scope='function')
def owner(business):
    return IdentityContext(identity_id=OWNER_ID, is_owner=True)


@pytest.fixture(scope='function')
def other_owner(other_business):
    return IdentityContext(identity_id=OTHER_OWNER_ID, is_owner=True)


@pytest.fixture(scope='function')
def make_relation(db_session):
    """Factory for staff relations created without going through an invitation."""
    def _make(business, identity_id, role=ROLE_STAFF, overrides=None, status="active", hourly_rate=None):
        relation = StaffRelation(
            staff_identity_id=identity_id,
            business_id=business.id,
            role=role,
            status=status,
            permissions=build_permission_map(role, overrides),
            name=identity_id,
            email=f"{identity_id}@example.com",
            hourly_rate=Decimal(hourly_rate) if hourly_rate is not None else None,
        )
        db_session.add(relation)
        db_session.commit()
        return relation
    return _make


@pytest.fixture(scope='function')
def staff_relation(business, make_relation):
    return make_relation(business, STAFF_ID)


@pytest.fixture(scope='function')
def staff(staff_relation, business):
    return IdentityContext(identity_id=STAFF_ID, business_id=business.id)


@pytest.fixture(scope='function')
def coadmin_relation(business, make_relation):
    return make_relation(business, COADMIN_ID, role=ROLE_CO_ADMIN)


@pytest.fixture(scope='function')
def coadmin(coadmin_relation, business):
    return IdentityContext(identity_id=COADMIN_ID, business_id=business.id)


@pytest.fixture(scope='function')
def job(db_session, business):
    job = Job(business_id=business.id, name="Deep clean", default_duration=90, default_price=Decimal("120.00"))
    db_session.add(job)
    db_session.commit()
    return job


@pytest.fixture(scope='function')
def owner_headers(business):
    return {"X-Identity-Id": OWNER_ID}


@pytest.fixture(scope='function')
def staff_headers(staff_relation, business):
    return {"X-Identity-Id": STAFF_ID, "X-Business-Id": business.id}


@pytest.fixture(scope='function')
def coadmin_headers(coadmin_relation, business):
    return {"X-Identity-Id": COADMIN_ID, "X-Business-Id": business.id}


@pytest.fixture(scope='function')
def race_app(tmp_path):
    """
    File-backed application for threaded race tests.

    In-memory SQLite shares one connection across threads, so races need a
    real file where each thread gets its own connection.
    """
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.sqlite3'}",
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
