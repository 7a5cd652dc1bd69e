"""
Shared test fixtures - SQLite test database, test client, estimator overrides.
"""

import io
import os
import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Configure before importing app modules - settings are read at import
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["GEMINI_API_KEY"] = ""
os.environ["ADVISOR_COOLDOWN_SECONDS"] = "0"

from boq_estimator.database import Base, get_db
from boq_estimator.dependencies import get_estimator
from boq_estimator.estimator import BoqEstimator
from boq_estimator.main import app
from boq_estimator.rate_advisor import AdvisorOutcome
from boq_estimator.request_queue import RateLimitedQueue


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


class StubAdvisor:
    """Stands in for GeminiRateAdvisor - returns canned outcomes, records calls."""

    def __init__(self, rates: dict = None, default: AdvisorOutcome = None):
        self.rates = rates or {}
        self.default = default or AdvisorOutcome.failed("no canned rate")
        self.calls = []

    def suggest(self, description, unit, api_key):
        self.calls.append((description, unit, api_key))
        if not api_key:
            return AdvisorOutcome.unavailable()
        if description in self.rates:
            return AdvisorOutcome.suggested(self.rates[description])
        return self.default


def make_workbook(rows, header=("Item No.", "Description", "Quantity", "Unit")) -> bytes:
    """Build an in-memory .xlsx with a header row followed by ``rows``."""
    wb = Workbook()
    ws = wb.active
    ws.append(list(header))
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fast_queue():
    """Advisor queue with no cooldown."""
    q = RateLimitedQueue(cooldown_seconds=0)
    yield q
    q.close(timeout=5)


@pytest.fixture
def stub_advisor():
    return StubAdvisor()


@pytest.fixture
def estimator_override(fast_queue, stub_advisor):
    """Route uploads through a fast queue and the stub advisor (with a fake key)."""
    estimator = BoqEstimator(fast_queue, stub_advisor, api_key="test-key")
    app.dependency_overrides[get_estimator] = lambda: estimator
    yield estimator
    app.dependency_overrides.pop(get_estimator, None)
