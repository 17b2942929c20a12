"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from member_ledger.api.main import create_app
from member_ledger.api.dependencies import get_reference_date
from member_ledger.infrastructure.database.models import Base
from member_ledger.infrastructure.database.session import get_db
from member_ledger.domain.models import Deposit, Member, Withdrawal


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
def reference_date() -> date:
    """Day the API computes billing windows from"""
    return date(2024, 1, 15)


@pytest.fixture
def client(db: Session, reference_date: date) -> TestClient:
    """Create FastAPI test client with test database and a fixed reference date"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reference_date] = lambda: reference_date
    return TestClient(app)


@pytest.fixture
def carried_member() -> Member:
    """Member whose whole position predates January 2024"""
    return Member(
        id=1,
        name="Ravi",
        percentage_of_return=Decimal("3"),
        deposits=[
            Deposit(id=1, amount=Decimal("100000"), date="2023-11-01"),
            Deposit(id=2, amount=Decimal("50000"), date="2023-12-10", rate=Decimal("4")),
        ],
        withdrawals=[
            Withdrawal(id=1, amount=Decimal("20000"), date="2023-12-20"),
        ],
    )
