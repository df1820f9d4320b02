"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path

from planningalerts.database.connection import Database
from planningalerts.database.models import Alert
from planningalerts.digest.types import ApplicationSummary, CommentSummary

REGRESSION_DIR = Path(__file__).parent / "regression"


@pytest.fixture
def regression_dir():
    """Directory holding golden digest bodies."""
    return REGRESSION_DIR


@pytest.fixture
def db():
    """Create in-memory database with schema."""
    db = Database(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def alert():
    """Sample alert around Glenbrook."""
    return Alert(
        id=1,
        email="matthew@openaustralia.org",
        address="24 Bruce Rd, Glenbrook NSW 2773",
        lat=1.0,
        lng=2.0,
        radius_meters=800,
        confirm_id="abcdef",
    )


@pytest.fixture
def a1():
    return ApplicationSummary(
        id=1,
        address="Foo Street, Bar",
        description="Knock something down",
        council_reference="a1",
    )


@pytest.fixture
def a2():
    return ApplicationSummary(
        id=2,
        address="Bar Street, Foo",
        description="Put something up",
        council_reference="a2",
    )


@pytest.fixture
def a3():
    """Application with neither description nor council reference."""
    return ApplicationSummary(id=3, address="2 Foo Parade, Glenbrook NSW 2773")


@pytest.fixture
def c1(a3):
    return CommentSummary(
        id=1,
        name="Matthew Landauer",
        text="I think this is a great idea",
        application=a3,
    )


@pytest.fixture
def c2(a3):
    return CommentSummary(
        id=2,
        name="Jane Citizen",
        text="Please consider the traffic",
        application=a3,
    )


@pytest.fixture
def sample_smtp_config():
    """Sample SMTP configuration for testing."""
    return {
        "type": "email",
        "smtp_host": "smtp.example.com",
        "smtp_port": 587,
        "smtp_user": "digests@example.com",
        "smtp_password": "test-app-password",
    }
