import os

# Configuration is read at import time, so it must be set before the app is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GEMINI_API_KEY"] = ""
os.environ["LLM_MAX_RETRIES"] = "1"
os.environ["LLM_RETRY_DELAY"] = "0"

import pytest
from fastapi.testclient import TestClient

from backend.app.api.main import create_app
from backend.app.database.models import Base, User
from backend.app.database.session import SessionLocal, engine, init_db

app = create_app()


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts from a freshly seeded empty database."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_client():
    """Factory of independent clients, each holding its own session cookie."""
    return lambda: TestClient(app)


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def register():
    def _register(client, username="alice", password="secret123", email=None):
        response = client.post("/api/auth/register", json={
            "username": username,
            "email": email or f"{username}@example.fr",
            "password": password,
        })
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def create_company():
    def _create_company(client, name="Boulangerie Martin", sector="Commerce"):
        response = client.post("/api/user/companies", json={"name": name, "sector": sector, "size": "TPE"})
        assert response.status_code == 201, response.text
        return response.json()

    return _create_company


@pytest.fixture
def set_role(db):
    """Change the platform role of a user, e.g. to "admin"."""
    def _set_role(user_id, role):
        user = db.get(User, user_id)
        user.role = role
        db.commit()

    return _set_role


@pytest.fixture
def owner(client, register, create_company):
    """A logged-in company owner: (client, user, company)."""
    user = register(client)
    company = create_company(client)
    return client, user, company


@pytest.fixture
def company_url(owner):
    _, _, company = owner
    return f"/api/companies/{company['id']}"
