import pytest

from fakes import NOW, FakeClock, RecordingSleep
from price_tracker.db import SqlModelStore
from price_tracker.db.sessions import create_db_engine, init_db
from price_tracker.providers.core import BackoffExecutor, RetryConfig


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return SqlModelStore(engine)


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def executor(sleep):
    """Default retry policy that records delays instead of sleeping."""
    return BackoffExecutor(RetryConfig(), sleep=sleep)
