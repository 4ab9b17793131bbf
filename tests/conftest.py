from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from permit_reports.db.base import Base
from permit_reports.db.dependencies import get_db_session
import permit_reports.models.entities  # noqa: F401
from permit_reports.main import create_app
from permit_reports.models.entities import LocalityRegion

TEST_TABLES = [
    LocalityRegion.__table__,
]


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def locality(lgu: str, monthly: dict[str, dict[str, int]], **fields: str) -> dict:
    """Raw dataset entry: ``monthly`` maps "YYYY-MM" to that month's counters."""

    return {
        "lgu": lgu,
        **fields,
        "monthlyResults": [{"month": month, **counters} for month, counters in monthly.items()],
    }
