import pytest

from listening_receipt.db import Database
from listening_receipt.services.auth import AuthSession
from listening_receipt.services.storage import MemoryClientStorage, SqlClientStorage
from tests.support.stubs import StubSession


@pytest.fixture
def storage():
    return MemoryClientStorage()


@pytest.fixture
def http():
    return StubSession()


@pytest.fixture
def auth(storage, http):
    return AuthSession(
        storage,
        http=http,
        client_id="test-client-id",
        redirect_uri="http://127.0.0.1:5173/callback",
        scopes=["user-top-read", "user-read-private", "user-read-email"],
        auth_url="https://accounts.spotify.com/authorize",
        token_url="https://accounts.spotify.com/api/token",
        timeout=5,
    )


@pytest.fixture
def database(tmp_path):
    database = Database()
    database.init(f"sqlite:///{(tmp_path / 'state.db').as_posix()}")
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture
def sql_storage(database):
    return SqlClientStorage(database)
