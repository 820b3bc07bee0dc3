import pytest
from fastapi.testclient import TestClient

from app.errors import Unauthorized
from app.main import create_app
from app.services.play_sessions import SessionWorkflow
from app.services.store import Store


class FakeIdentity:
    """Treats the bearer token itself as the user id; the token "bad" is rejected."""

    def verify(self, token):
        if token == "bad":
            raise Unauthorized("Invalid token")
        return token


@pytest.fixture
def store(tmp_path):
    store = Store.from_url(f"sqlite:///{(tmp_path / 'playnext-test.db').as_posix()}")
    store.create_schema()
    yield store
    store.dispose()


@pytest.fixture
def workflow(store):
    return SessionWorkflow(store)


@pytest.fixture
def add_games(store):
    def _add(*titles):
        return [
            store.add_game(
                title=title,
                cover_url=f"https://img.example/{index}.jpg",
                summary=f"{title} summary",
                platforms=["PC"],
                genres=["Indie"],
                coop_type="solo",
                minutes_min=60,
                minutes_max=90,
            )
            for index, title in enumerate(titles)
        ]

    return _add


@pytest.fixture
def client(store):
    app = create_app(store=store, identity=FakeIdentity())
    with TestClient(app) as test_client:
        yield test_client
