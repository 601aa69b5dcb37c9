"""
Shared pytest fixtures: an in-memory SQLite database per test.
"""

import pytest

from finsight.ingest.database import get_engine, get_session
from finsight.ingest.schema import Base
from finsight.ingest.store import FinancialStore


@pytest.fixture
def engine():
    """Fresh in-memory database."""
    engine = get_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Get database session."""
    sess = get_session(engine)
    yield sess
    sess.close()


@pytest.fixture
def store(session):
    """FinancialStore over the test session."""
    return FinancialStore(session)
