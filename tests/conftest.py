import itertools
import pytest
from fastapi.testclient import TestClient
from sqlmodel import select, func

from app.core.config import Settings
from app.core.security import SessionCredentials, get_password_hash
from app.main import create_app
from app.models.user import User, Role
from app.services.auth import identity_for

PASSWORD = "Sup3r$ecret"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-session-key",
        RESET_SECRET_KEY="test-reset-key",
        ENABLE_AUDIT_LOGGING=True,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # entering the client runs the lifespan, which creates the tables
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app, client):
    return app.state.db


@pytest.fixture
def make_user(db):
    def _make_user(role: Role = Role.READER, name: str = None, email: str = None, password: str = PASSWORD) -> User:
        with db.session() as session:
            count = session.exec(select(func.count(User.id))).one()
            name = name or f"{role.value.title()} {count + 1}"
            user = User(
                name=name,
                email=email or f"{role.value}{count + 1}@inkwell.io",
                password_hash=get_password_hash(password),
                role=role,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            return user
    return _make_user


@pytest.fixture
def auth_headers(settings):
    credentials = SessionCredentials(settings)

    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {credentials.issue(identity_for(user))}"}
    return _auth_headers


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN)


@pytest.fixture
def editor(make_user):
    return make_user(Role.EDITOR)


@pytest.fixture
def reader(make_user):
    return make_user(Role.READER)


@pytest.fixture
def create_post(client, auth_headers):
    numbers = itertools.count(1)

    def _create_post(user: User, **fields) -> dict:
        payload = {"title": f"Post number {next(numbers)}", "content": "Some words for the body"}
        payload.update(fields)
        response = client.post("/api/v1/posts/", json=payload, headers=auth_headers(user))
        assert response.status_code == 201, response.text
        return response.json()["post"]
    return _create_post


@pytest.fixture
def create_comment(client, auth_headers):
    def _create_comment(user: User, post_id: int, content: str = "Nice", parent_id: int = None) -> dict:
        payload = {"post_id": post_id, "content": content, "parent_id": parent_id}
        response = client.post("/api/v1/comments/", json=payload, headers=auth_headers(user))
        assert response.status_code == 201, response.text
        return response.json()["comment"]
    return _create_comment
