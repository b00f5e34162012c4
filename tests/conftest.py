import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["JWT_SECRET"] = "test-secret-with-enough-length-for-hs256"
os.environ["BCRYPT_SALT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_MAX"] = "100000"
os.environ["BOOTSTRAP_ADMIN_PASSWORD"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from salessync.core.database import Base, get_db  # noqa: E402
from salessync.core.metrics import request_metrics  # noqa: E402
from salessync.core.token_store import InMemoryTokenStore, get_token_store  # noqa: E402
import salessync.models  # noqa: E402,F401
from tests.factories import make_company, make_user  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def token_store():
    return InMemoryTokenStore()


@pytest.fixture
def client(session_factory, token_store, monkeypatch):
    from salessync import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[get_db] = _get_db
    main.app.dependency_overrides[get_token_store] = lambda: token_store
    request_metrics.reset()

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()


@pytest.fixture
def tenants(db):
    """Two companies, each with an admin, a manager and two agents."""
    result = {}
    for key, name in (("a", "Acme Beverages"), ("b", "Globex Foods")):
        company = make_company(db, name=name, slug=key + "-co")
        result[key] = {
            "company": company,
            "admin": make_user(db, company, role="COMPANY_ADMIN"),
            "manager": make_user(db, company, role="AREA_MANAGER"),
            "agent": make_user(db, company, role="FIELD_SALES_AGENT"),
            "agent2": make_user(db, company, role="AGENT"),
        }
    return result
