"""
Shared fixtures for the allowance bot tests.

Every test gets its own SQLite file under pytest's tmp_path and a
controllable clock, so nothing touches the network or the real data dir.
"""

from datetime import datetime, timedelta, timezone

import pytest

from allowance_bot.models import BalanceManager, LedgerStore
from allowance_bot.services import LedgerFormatter, TransferService
from allowance_bot.utils.identity import IdentityResolver

MOM = "UMOM"
DAD = "UDAD"
ALICE = "UALICE"
BOB = "UBOB"
CHASE = "UCHASE"
CHARLIE = "UCHARLIE"
SAVINGS = "UCHARLIESAVINGS"

TIMEZONE = "America/Los_Angeles"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 1, 17, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


class FakeSay:
    """Collects everything the bot would have said in the conversation."""

    def __init__(self):
        self.calls = []

    def __call__(self, text=None, **kwargs):
        self.calls.append({"text": text, **kwargs})

    @property
    def texts(self):
        return [call["text"] for call in self.calls]

    @property
    def last(self):
        return self.calls[-1]


class FakeSlackUtils:
    def __init__(self, ok=True):
        self.ok = ok
        self.sent = []

    def send_message(self, channel_id, text, **kwargs):
        self.sent.append((channel_id, text))
        return self.ok


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "ledger.sqlite3")


@pytest.fixture
def open_store(db_path, clock):
    """Factory that (re)opens the ledger at the test's database path."""
    opened = []

    def _open():
        store = LedgerStore(
            database_file=db_path,
            seed_accounts=[ALICE, BOB],
            seed_amount=100000,
            seed_memo="seed value",
            savings_accounts=[SAVINGS],
            clock=clock,
        )
        opened.append(store)
        return store

    yield _open

    for store in opened:
        store.close()


@pytest.fixture
def store(open_store):
    return open_store()


@pytest.fixture
def identity():
    return IdentityResolver(
        aliases={"chase": CHASE, "Charlie": CHARLIE},
        admin_ids=[MOM, DAD],
    )


@pytest.fixture
def balance_manager(store):
    return BalanceManager(store)


@pytest.fixture
def transfer_service(store, balance_manager, identity):
    return TransferService(store, balance_manager, identity)


@pytest.fixture
def formatter(store, balance_manager, identity):
    return LedgerFormatter(store, balance_manager, identity, timezone=TIMEZONE)


@pytest.fixture
def say():
    return FakeSay()
