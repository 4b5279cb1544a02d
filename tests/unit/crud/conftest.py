"""Shared fixtures for crud unit tests"""

import pytest
from sqlmodel import SQLModel, Session

from awesync.crud.database import init_db, make_engine
from awesync.crud.lists import create_list


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="awesome_list")
def awesome_list_fixture(session):
    """A tracked list persisted to the session."""
    return create_list(session, "acme", "awesome-tools", name="Awesome Tools")
