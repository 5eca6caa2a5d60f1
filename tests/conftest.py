import pytest

from app import create_app
from config import Config
from models import db


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    TMDB_API_KEY = "test-key"
    TMDB_LANGUAGE = "pt-BR"
    GOOGLE_BOOKS_API_KEY = None
    PROVIDER_TIMEOUT = 5


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def signup(client):
    """Register a user and return (user, auth headers)."""

    def _signup(username="lucas", name=None, password="secret123"):
        res = client.post("/api/auth/register", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "name": name or username.title(),
        })
        assert res.status_code == 201, res.get_json()
        data = res.get_json()
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _signup
