"""
Pytest configuration for the tip raffle

Provides fixtures for:
- A SQLite-backed store in a temporary directory
- A started RaffleService with a controllable clock and seeded shuffle
- A Flask test client with a known admin key
"""

import random
from datetime import datetime, timedelta
from unittest import mock

import pytest

from tip_raffle.models import PageConfig
from tip_raffle.notifications import EmailRelay
from tip_raffle.service import RaffleService
from tip_raffle.store import RaffleStore, create_raffle_engine

ADMIN_KEY = "test-admin-key"


class FixedClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    # Friday 2024-03-15, week starts on the preceding Sunday (2024-03-10)
    return FixedClock(datetime(2024, 3, 15, 12, 0, 0))


@pytest.fixture
def store(tmp_path):
    engine = create_raffle_engine(f"sqlite:///{tmp_path / 'raffle.db'}")
    raffle_store = RaffleStore(engine)
    raffle_store.setup()
    yield raffle_store
    engine.dispose()


@pytest.fixture
def service(store, clock):
    raffle_service = RaffleService(store, clock=clock, rng=random.Random(1234))
    raffle_service.start()
    yield raffle_service
    raffle_service.stop()


@pytest.fixture
def config():
    return PageConfig()


@pytest.fixture
def submit(service):
    """Register a participant with sensible defaults"""
    counter = {"n": 0}

    def _submit(account_id=None, email=None, name=None, **extra):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "fullName": name or f"Participant {n}",
            "email": email or f"participant{n}@example.com",
            "accountId": account_id if account_id is not None else f"ACC{n}",
        }
        data.update(extra)
        return service.submit(data)

    return _submit


@pytest.fixture
def relay_session():
    session = mock.Mock()
    response = mock.Mock(ok=True, status_code=200, text='{"id": "msg_123"}')
    response.json.return_value = {"id": "msg_123"}
    session.post.return_value = response
    return session


@pytest.fixture
def app(service, relay_session):
    from server import create_app

    relay = EmailRelay(api_key="re_test", from_address="raffle@example.com", session=relay_session)
    flask_app = create_app(service, relay=relay, admin_key=ADMIN_KEY)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}
