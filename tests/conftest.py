import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("TRUCKSALES_DATABASE_URL", "sqlite://")

import trucksales.models  # noqa: F401
from trucksales.core.config import settings
from trucksales.core.settings_store import SettingsStore
from trucksales.db.base import Base
from trucksales.db.session import init_db


@pytest.fixture()
def test_context():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    init_db(engine)

    yield session_local

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(test_context):
    session = test_context()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def settings_store(tmp_path):
    return SettingsStore(tmp_path / "display_settings.json")


@pytest.fixture()
def allow_orphaning_deletes():
    original = settings.block_delete_with_history
    settings.block_delete_with_history = False
    yield
    settings.block_delete_with_history = original
