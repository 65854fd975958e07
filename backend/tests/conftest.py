"""
Pytest fixtures for shiftplan backend tests.

Provides the app (in-memory SQLite, detached tasks run inline, recording
transport and push sender), a per-test table wipe with fresh messaging
collaborators, and small factories for the schedule/shift graph.
"""

from datetime import date, datetime

import pytest

from shiftplan import create_app
from shiftplan.extensions import db, messaging
from shiftplan.services import schedule_service, shift_service


BUSINESS_UNIT = "bu-1"
WEEK = date(2024, 3, 4)  # Monday


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SHIFTPLAN_DETACHED_INLINE': True,
        'SHIFTPLAN_TRANSPORT': 'memory',
        'SHIFTPLAN_PUSH_SENDER': 'memory',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh tables and fresh messaging collaborators for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        messaging.init_app(app)

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def transport(db_session):
    return messaging.transport


@pytest.fixture(scope='function')
def schedule(db_session):
    """DRAFT schedule for BUSINESS_UNIT, week of 2024-03-04."""
    return schedule_service.create_schedule(business_unit_id=BUSINESS_UNIT, week_start=WEEK)


@pytest.fixture(scope='function')
def make_shift(schedule):
    """Factory: make_shift("e1", day=5, start=9, end=17) -> Shift in the fixture schedule."""
    def _make(employee_id="e1", day=5, start=9, end=17, position="Barista", schedule_id=None):
        return shift_service.create_shift(
            schedule_id=schedule_id or schedule.id,
            employee_id=employee_id,
            start_time=datetime(2024, 3, day, start, 0),
            end_time=datetime(2024, 3, day, end, 0),
            position=position,
        )
    return _make


def manager_headers(user_id: str = "mgr-1") -> dict:
    """Helper to create gateway identity headers for a manager."""
    return {'X-User-Id': user_id, 'X-User-Roles': 'MANAGER'}


def employee_headers(user_id: str = "e1") -> dict:
    """Helper to create gateway identity headers for an employee."""
    return {'X-User-Id': user_id, 'X-User-Roles': 'EMPLOYEE'}
