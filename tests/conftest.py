import logging
import os

import pytest
import pytest_asyncio
from dishka import Provider, Scope, make_async_container, provide
from dishka.integrations.fastapi import FastapiProvider
from httpx import AsyncClient, ASGITransport

from core.environment.providers import EnvironmentProvider
from core.exceptions import ConnectivityError
from core.logging.providers import LoggerProvider
from core.redis.providers import CacheProvider
from migration.entities import LedgerEvent
from migration.ledgers import SourceLedger, TargetLedger
from migration.providers import MigrationProvider


# Set test environment variables before imports
os.environ['LEGACY_ESCROW_ADDRESS'] = '0x' + '11' * 20
os.environ['SUCCESSOR_ESCROW_ADDRESS'] = '0x' + '22' * 20
os.environ['PROVIDER_URL'] = 'http://localhost:8545'
os.environ['CACHE_ENABLED'] = 'false'

ACCOUNT_A = '0x' + 'aa' * 20
ACCOUNT_B = '0x' + 'bb' * 20
ACCOUNT_C = '0x' + 'cc' * 20


class FakeSourceLedger(SourceLedger):
    """
    In-memory legacy ledger.

    Parameters
    ----------
    accounts : dict[str, dict]
        ``{address: {"balance": int, "vested": int, "schedule": [(ts, entry), ...]}}``
    events : list[str] | None
        Addresses of emitted vesting events, in log order; defaults to one
        event per account
    """

    def __init__(self, accounts: dict[str, dict], events: list[str] | None = None):
        self.accounts = accounts
        self.event_addresses = events if events is not None else list(accounts)
        self.fail_events = False

    async def escrowed_balance(self, address: str) -> int:
        return self.accounts[address]["balance"]

    async def vested_balance(self, address: str) -> int:
        return self.accounts[address]["vested"]

    async def schedule(self, address: str) -> list[int]:
        return [v for pair in self.accounts[address]["schedule"] for v in pair]

    async def events(self, name: str) -> list[LedgerEvent]:
        if self.fail_events:
            raise ConnectivityError("source ledger unreachable")
        return [
            LedgerEvent(
                transaction_hash='0x' + f'{i:064x}',
                block_number=100 + i,
                log_index=0,
                event_name=name,
                args=[address, 1_700_000_000 + i, 1],
                address=os.environ['LEGACY_ESCROW_ADDRESS']
            )
            for i, address in enumerate(self.event_addresses)
        ]


class FakeTargetLedger(TargetLedger):
    """
    In-memory successor ledger mimicking the escrow contract's bookkeeping.

    ``migrate_balances`` records the escrowed amount as pending; every
    imported entry moves its amount from pending to escrowed.
    """

    def __init__(
        self,
        pending: dict[str, int] | None = None,
        escrowed: dict[str, int] | None = None,
        entries: dict[str, int] | None = None
    ):
        self.pending = dict(pending or {})
        self.escrowed = dict(escrowed or {})
        self.entries = dict(entries or {})
        self.migrate_calls: list[tuple[list, list, list]] = []
        self.import_calls: list[tuple[list, list, list]] = []
        self.fail_on_migrate_call: int | None = None
        self.fail_on_import_call: int | None = None

    async def pending_migration_amount(self, address: str) -> int:
        return self.pending.get(address, 0)

    async def escrowed_balance(self, address: str) -> int:
        return self.escrowed.get(address, 0)

    async def num_vesting_entries(self, address: str) -> int:
        return self.entries.get(address, 0)

    async def migrate_balances(self, addresses, balances, vested_amounts) -> None:
        if self.fail_on_migrate_call == len(self.migrate_calls):
            raise RuntimeError("execution reverted")
        self.migrate_calls.append((list(addresses), list(balances), list(vested_amounts)))
        for address, balance in zip(addresses, balances):
            if int(balance) > 0:
                self.pending[address] = int(balance)

    async def import_schedule(self, addresses, timestamps, entries) -> None:
        if self.fail_on_import_call == len(self.import_calls):
            raise RuntimeError("execution reverted")
        self.import_calls.append((list(addresses), list(timestamps), list(entries)))
        for address, amount in zip(addresses, entries):
            self.pending[address] = self.pending.get(address, 0) - amount
            self.escrowed[address] = self.escrowed.get(address, 0) + amount
            self.entries[address] = self.entries.get(address, 0) + 1


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("escrow_migration.tests")


@pytest.fixture
def scenario_accounts() -> dict[str, dict]:
    """
    Three legacy accounts: A with one padding slot, B empty, C with two
    one-zero pairs.
    """
    return {
        ACCOUNT_A: {"balance": 100, "vested": 50, "schedule": [(0, 0), (10, 5)]},
        ACCOUNT_B: {"balance": 0, "vested": 0, "schedule": []},
        ACCOUNT_C: {"balance": 20, "vested": 0, "schedule": [(0, 20), (20, 0)]},
    }


@pytest.fixture
def source_ledger(scenario_accounts) -> FakeSourceLedger:
    return FakeSourceLedger(scenario_accounts)


@pytest.fixture
def target_ledger() -> FakeTargetLedger:
    return FakeTargetLedger()


class FakeLedgerProvider(Provider):
    """Serves the fake ledgers under the ledger component."""

    component = "ledger"
    scope = Scope.APP

    def __init__(self, source: SourceLedger, target: TargetLedger):
        super().__init__()
        self.source = source
        self.target = target

    @provide
    def get_source_ledger(self) -> SourceLedger:
        return self.source

    @provide
    def get_target_ledger(self) -> TargetLedger:
        return self.target


@pytest_asyncio.fixture
async def client(source_ledger, target_ledger):
    """
    Fixture for async test client backed by fake ledgers.

    Parameters
    ----------
    source_ledger : FakeSourceLedger
        Legacy ledger fixture
    target_ledger : FakeTargetLedger
        Successor ledger fixture

    Yields
    ------
    AsyncClient
        Async HTTP client for testing
    """
    from main import create_app

    container = make_async_container(
        FastapiProvider(),
        EnvironmentProvider(),
        LoggerProvider(),
        CacheProvider(),
        FakeLedgerProvider(source_ledger, target_ledger),
        MigrationProvider()
    )
    app = create_app(container)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await container.close()


@pytest.fixture
def make_source_ledger():
    """Factory for source ledgers with custom accounts."""
    return FakeSourceLedger


@pytest.fixture
def make_target_ledger():
    """Factory for target ledgers with custom state."""
    return FakeTargetLedger
