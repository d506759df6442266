import pytest
from sqlmodel import SQLModel

from carepolicy.app.infra.db import make_engine, session_scope


@pytest.fixture
def sql_scope(tmp_path):
    """Session factory over a throwaway SQLite file (safe across worker threads)."""
    engine = make_engine(f"sqlite:///{tmp_path / 'carepolicy-test.db'}")
    SQLModel.metadata.create_all(engine)
    yield session_scope(engine)
    engine.dispose()
