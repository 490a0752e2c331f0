import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import config
from database import Base, seed_defaults


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    seed_defaults(session)
    yield session
    session.close()


@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch):
    """Keep receipt images in a temp folder and never touch S3."""
    data_dir = tmp_path / "data"
    monkeypatch.setattr(config, "LOCAL_DATA_DIR", str(data_dir))
    monkeypatch.setattr(config, "S3_BUCKET", None)
    return data_dir
