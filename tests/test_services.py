from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock
from eth_utils import event_abi_to_log_topic
from web3 import AsyncWeb3

from core.exceptions import ConnectivityError, MigrationConfigException
from core.redis.providers import CacheService
from migration.abi import LEGACY_ESCROW_ABI, SUCCESSOR_ESCROW_ABI
from migration.abi_service import ABIService
from migration.services import LedgerClient, Web3SourceLedger, Web3TargetLedger, _serialize_value

UNREACHABLE_URL = "http://127.0.0.1:9"
CONTRACT = '0x' + '11' * 20
PRIVATE_KEY = '0x' + '01' * 32


class StubEth:
    """Node stub serving a fixed head block and log list."""

    def __init__(self, head: int, logs: list[dict]):
        self.head = head
        self.logs = logs

    @property
    def block_number(self):
        return self._block_number()

    async def _block_number(self) -> int:
        return self.head

    async def get_logs(self, filter_params: dict) -> list[dict]:
        return self.logs


@pytest.fixture
def ledger_client(logger) -> LedgerClient:
    web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(UNREACHABLE_URL))
    return LedgerClient(web3=web3, logger=logger, cache_service=CacheService(None, logger))


class TestLedgerClient:
    """
    Tests for signer selection and write plumbing.
    """

    def test_wallet_address_from_private_key(self, logger):
        web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(UNREACHABLE_URL))
        client = LedgerClient(web3, logger, CacheService(None, logger), private_key=PRIVATE_KEY)

        assert client.wallet_address == client.account.address
        assert client.wallet_address.startswith("0x")

    def test_wallet_address_from_sender(self, logger):
        web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(UNREACHABLE_URL))
        client = LedgerClient(web3, logger, CacheService(None, logger), sender_address='0x' + 'ab' * 20)

        assert client.wallet_address == web3.to_checksum_address('0x' + 'ab' * 20)

    @pytest.mark.asyncio
    async def test_write_without_signer_is_rejected(self, ledger_client):
        target = Web3TargetLedger(ledger_client, CONTRACT, SUCCESSOR_ESCROW_ABI)

        with pytest.raises(MigrationConfigException):
            await target.migrate_balances(['0x' + 'aa' * 20], ["10"], ["0"])


class TestWeb3Ledgers:
    """
    Tests for read error mapping on the contract-backed ledgers.
    """

    @pytest.mark.asyncio
    async def test_unreachable_read_is_connectivity_error(self, ledger_client):
        source = Web3SourceLedger(ledger_client, CONTRACT, LEGACY_ESCROW_ABI)

        with pytest.raises(ConnectivityError):
            await source.escrowed_balance('0x' + 'aa' * 20)

    @pytest.mark.asyncio
    async def test_unknown_event_is_rejected(self, ledger_client):
        source = Web3SourceLedger(ledger_client, CONTRACT, LEGACY_ESCROW_ABI)

        with pytest.raises(ValueError):
            await source.events("NoSuchEvent")

    @pytest.mark.asyncio
    async def test_event_args_follow_abi_order(self, ledger_client):
        event_abi = {
            "type": "event",
            "name": "Escrowed",
            "anonymous": False,
            "inputs": [
                {"name": "amount", "type": "uint256", "indexed": False},
                {"name": "account", "type": "address", "indexed": True},
                {"name": "time", "type": "uint256", "indexed": False},
            ],
        }
        account = '0x' + 'ab' * 20
        log = {
            "address": ledger_client.web3.to_checksum_address(CONTRACT),
            "topics": [
                event_abi_to_log_topic(event_abi),
                bytes(12) + bytes.fromhex(account[2:]),
            ],
            "data": ledger_client.web3.codec.encode(["uint256", "uint256"], [500, 1_700_000_000]),
            "blockNumber": 7,
            "blockHash": bytes(32),
            "transactionHash": b"\x01" * 32,
            "transactionIndex": 0,
            "logIndex": 3,
        }
        source = Web3SourceLedger(ledger_client, CONTRACT, [event_abi])
        source.web3 = SimpleNamespace(eth=StubEth(head=10, logs=[log]), to_hex=AsyncWeb3.to_hex)

        (event,) = await source.events("Escrowed")

        amount, emitted_by, time = event.args
        assert amount == 500
        assert emitted_by.lower() == account
        assert time == 1_700_000_000
        assert (event.block_number, event.log_index) == (7, 3)
        assert event.transaction_hash == "0x" + "01" * 32

    def test_serialize_value(self):
        assert _serialize_value(b"\x01\x02") == "0x0102"
        assert _serialize_value((1, "a", [b"\xff"])) == [1, "a", ["0xff"]]


class TestABIService:
    """
    Tests for ABI resolution.
    """

    @pytest.mark.asyncio
    async def test_without_api_key_uses_bundled_abi(self, logger):
        service = ABIService(CacheService(None, logger), logger)

        assert await service.get_abi(CONTRACT, "mainnet", LEGACY_ESCROW_ABI) is LEGACY_ESCROW_ABI

    @pytest.mark.asyncio
    async def test_incomplete_explorer_abi_falls_back(self, logger):
        service = ABIService(CacheService(None, logger), logger, api_key="key")
        service._fetch_from_explorer = AsyncMock(return_value=[{"type": "function", "name": "owner"}])

        assert await service.get_abi(CONTRACT, "mainnet", SUCCESSOR_ESCROW_ABI) is SUCCESSOR_ESCROW_ABI

    @pytest.mark.asyncio
    async def test_complete_explorer_abi_is_used(self, logger):
        explorer_abi = SUCCESSOR_ESCROW_ABI + [{"type": "function", "name": "owner"}]
        service = ABIService(CacheService(None, logger), logger, api_key="key")
        service._fetch_from_explorer = AsyncMock(return_value=explorer_abi)

        assert await service.get_abi(CONTRACT, "mainnet", SUCCESSOR_ESCROW_ABI) == explorer_abi
