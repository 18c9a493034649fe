"""Fixtures for soft delete tests."""

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from paranoid_toolkit.config import set_config
from paranoid_toolkit.soft_delete import (
    prevent_hard_delete,
    register_soft_delete_listeners,
)

from .models import Android, Base, Person


@pytest.fixture(autouse=True)
def reset_config():
    """Start every test from the default configuration."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def db_session():
    """Create an in-memory SQLite database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    Session = sessionmaker(bind=engine)
    session = Session()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def luke(db_session):
    return Person.create(db_session, name="Luke Skywalker")


@pytest.fixture
def r2d2(db_session, luke):
    return Android.create(db_session, name="R2D2", owner_id=luke.id)


@pytest.fixture
def c3p0(db_session, luke, r2d2):
    return Android.create(db_session, name="C3P0", owner_id=luke.id)


@pytest.fixture
def hard_delete_guard():
    """Refuse session.delete() on paranoid models for the duration of a test."""
    register_soft_delete_listeners(Base)
    yield
    if event.contains(Android, "before_delete", prevent_hard_delete):
        event.remove(Android, "before_delete", prevent_hard_delete)
