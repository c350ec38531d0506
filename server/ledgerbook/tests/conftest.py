import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ledgerbook.db import Base, get_db
from ledgerbook.main import app
from ledgerbook.seed_chart_of_accounts import seed_chart_of_accounts


def _make_session_local():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(engine)
    return TestingSessionLocal, engine


@pytest.fixture()
def db():
    TestingSessionLocal, engine = _make_session_local()
    with TestingSessionLocal() as session:
        seed_chart_of_accounts(session)
        session.commit()
        yield session
    Base.metadata.drop_all(engine)


@pytest.fixture()
def client():
    TestingSessionLocal, engine = _make_session_local()
    with TestingSessionLocal() as session:
        seed_chart_of_accounts(session)
        session.commit()

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    Base.metadata.drop_all(engine)
