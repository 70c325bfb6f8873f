"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("STORE_RETRY_DELAY_SECONDS", "0")
os.environ.setdefault("PAYMENT_VERIFICATION_MODE", "stub")

import pytest
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from tuition_gateway.api.main import create_app
from tuition_gateway.infrastructure.database.models import Base
from tuition_gateway.infrastructure.database.repositories import ApplicationRepository, ChangeFeed
from tuition_gateway.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repo(db: Session) -> ApplicationRepository:
    """Repository with its own change feed so listeners never leak between tests"""
    return ApplicationRepository(db, feed=ChangeFeed())


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def clock_at() -> Callable[..., Callable[[], datetime]]:
    """Factory for clocks frozen mid-month at 10:30 UTC"""

    def fixed_clock(year: int, month: int, day: int = 14) -> Callable[[], datetime]:
        moment = datetime(year, month, day, 10, 30, tzinfo=timezone.utc)
        return lambda: moment

    return fixed_clock


@pytest.fixture
def application_form() -> Dict[str, Any]:
    """A complete, valid application form"""
    return {
        "firstName": "Thandi",
        "lastName": "Mokoena",
        "email": "thandi@example.co.za",
        "phone": "082 123 4567",
        "school": "Soweto High",
        "grade": "11",
        "parentName": "Lerato Mokoena",
        "parentEmail": "lerato@example.co.za",
        "parentPhone": "+27731234567",
        "parentRelationship": "Mother",
        "returningStudent": False,
        "selectedSubjects": ["Mathematics", "Physical Sciences"],
    }


@pytest.fixture
def approved_application(repo: ApplicationRepository, application_form: Dict[str, Any]) -> str:
    """Approved two-subject application with no plan yet"""
    application_id = "student-001"
    repo.set(
        application_id,
        dict(application_form, userId=application_id, status="approved", paymentStatus="application_paid"),
    )
    return application_id
