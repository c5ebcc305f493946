import asyncio
import hashlib
import logging
from typing import Any

import aiohttp
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import encode_hex, event_abi_to_log_topic
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from core.exceptions import (
    ConnectivityError,
    MigrationConfigException,
    TransactionRevertedException,
)
from core.redis.providers import CacheService
from core.tasks import gather_or_cancel
from migration.entities import LedgerEvent
from migration.ledgers import SourceLedger, TargetLedger

# Chunks ending this many blocks below head are treated as final and cached.
CACHE_CONFIRMATIONS = 64

READ_ERRORS = (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError, OSError)


class LedgerClient:
    """
    Connectivity to the ledger network: RPC client, write signer and
    contract handles.

    Parameters
    ----------
    web3 : AsyncWeb3
        Web3 client instance
    logger : logging.Logger
        Logger instance
    cache_service : CacheService
        Cache service for event chunks
    private_key : str | None
        Key used to sign writes
    sender_address : str | None
        Unlocked sender used when no key is given (local fork)
    receipt_timeout : int
        Seconds to wait for a transaction receipt
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        logger: logging.Logger,
        cache_service: CacheService,
        private_key: str | None = None,
        sender_address: str | None = None,
        receipt_timeout: int = 600
    ):
        self.web3 = web3
        self.logger = logger
        self.cache = cache_service
        self.receipt_timeout = receipt_timeout
        self.account: LocalAccount | None = Account.from_key(private_key) if private_key else None
        self.sender_address = (
            web3.to_checksum_address(sender_address) if sender_address else None
        )

    @property
    def wallet_address(self) -> str | None:
        if self.account is not None:
            return self.account.address
        return self.sender_address

    def contract(self, address: str, abi: list[dict]) -> Any:
        return self.web3.eth.contract(address=self.web3.to_checksum_address(address), abi=abi)

    async def send(self, function: Any) -> str:
        """
        Submit a contract write and wait for it to be mined.

        Parameters
        ----------
        function : AsyncContractFunction
            Bound contract function call

        Returns
        -------
        str
            Transaction hash

        Raises
        ------
        MigrationConfigException
            If neither a private key nor a sender address is configured
        TransactionRevertedException
            If the receipt reports failure
        """
        if self.account is not None:
            nonce = await self.web3.eth.get_transaction_count(self.account.address, "pending")
            tx = await function.build_transaction({"from": self.account.address, "nonce": nonce})
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
        elif self.sender_address is not None:
            tx_hash = await function.transact({"from": self.sender_address})
        else:
            raise MigrationConfigException("No PRIVATE_KEY or SENDER_ADDRESS configured for writes")

        tx_hex = self.web3.to_hex(tx_hash)
        self.logger.info(f"Submitted transaction {tx_hex}, waiting for receipt")
        receipt = await self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt["status"] != 1:
            raise TransactionRevertedException(f"Transaction {tx_hex} reverted")
        self.logger.info(f"Transaction {tx_hex} mined in block {receipt['blockNumber']}")
        return tx_hex


class _Web3Ledger:
    """Shared read plumbing for contract-backed ledgers."""

    def __init__(self, client: LedgerClient, address: str, abi: list[dict], name: str):
        self.client = client
        self.web3 = client.web3
        self.logger = client.logger
        self.contract = client.contract(address, abi)
        self.abi = abi
        self.name = name

    async def _read(self, function_name: str, *args: Any) -> Any:
        try:
            return await getattr(self.contract.functions, function_name)(*args).call()
        except READ_ERRORS as e:
            raise ConnectivityError(
                f"{self.name}.{function_name}{args} failed: {e}"
            ) from e

    def _checksum(self, address: str) -> str:
        return self.web3.to_checksum_address(address)


class Web3SourceLedger(_Web3Ledger, SourceLedger):
    """
    Legacy escrow contract.

    Parameters
    ----------
    client : LedgerClient
        Ledger client
    address : str
        Contract address
    abi : list[dict]
        Contract ABI
    from_block : int
        First block scanned for events
    chunk_size : int
        Blocks per log request
    chunk_concurrency : int
        Log requests in flight at once
    """

    def __init__(
        self,
        client: LedgerClient,
        address: str,
        abi: list[dict],
        from_block: int = 0,
        chunk_size: int = 2000,
        chunk_concurrency: int = 10
    ):
        super().__init__(client, address, abi, name="RewardEscrow")
        self.cache = client.cache
        self.from_block = from_block
        self.chunk_size = chunk_size
        self.chunk_concurrency = chunk_concurrency

    async def escrowed_balance(self, address: str) -> int:
        return int(await self._read("totalEscrowedAccountBalance", self._checksum(address)))

    async def vested_balance(self, address: str) -> int:
        return int(await self._read("totalVestedAccountBalance", self._checksum(address)))

    async def schedule(self, address: str) -> list[int]:
        return [int(v) for v in await self._read("checkAccountSchedule", self._checksum(address))]

    async def events(self, name: str) -> list[LedgerEvent]:
        """
        Get every event ``name`` emitted by the contract since ``from_block``.

        Block ranges are fetched in chunks, ``chunk_concurrency`` at a time.
        Any failed chunk fails the whole query.

        Parameters
        ----------
        name : str
            Event name

        Returns
        -------
        list[LedgerEvent]
            Decoded events ordered by block number and log index

        Raises
        ------
        ConnectivityError
            If the head block or any chunk cannot be fetched
        """
        event_abi = next(
            (item for item in self.abi if item.get("type") == "event" and item.get("name") == name),
            None
        )
        if event_abi is None:
            raise ValueError(f"Event {name} is not in the {self.name} ABI")
        topic = encode_hex(event_abi_to_log_topic(event_abi))

        try:
            current_block = await self.web3.eth.block_number
        except READ_ERRORS as e:
            raise ConnectivityError(f"Cannot read head block: {e}") from e

        ranges = [
            (start, min(start + self.chunk_size - 1, current_block))
            for start in range(self.from_block, current_block + 1, self.chunk_size)
        ]
        self.logger.info(
            f"Fetching {name} logs from block {self.from_block} to {current_block} "
            f"({len(ranges):,} chunks)"
        )

        events: list[LedgerEvent] = []
        for batch_start in range(0, len(ranges), self.chunk_concurrency):
            batch = ranges[batch_start:batch_start + self.chunk_concurrency]
            results = await gather_or_cancel(*(
                self._fetch_events_chunk(event_abi, topic, from_block, to_block, current_block)
                for from_block, to_block in batch
            ))
            for chunk in results:
                events.extend(chunk)
            self.logger.debug(
                f"Processed chunks {batch_start + len(batch)}/{len(ranges)}, {len(events)} events so far"
            )

        events.sort(key=lambda x: (x.block_number, x.log_index))
        self.logger.info(f"Fetched {len(events)} {name} events")
        return events

    async def _fetch_events_chunk(
        self,
        event_abi: dict,
        topic: str,
        from_block: int,
        to_block: int,
        current_block: int
    ) -> list[LedgerEvent]:
        """
        Fetch and decode events for one block range, with caching.

        Parameters
        ----------
        event_abi : dict
            ABI entry of the event
        topic : str
            Event signature topic
        from_block : int
            Starting block number
        to_block : int
            Ending block number
        current_block : int
            Head block at the start of the scan

        Returns
        -------
        list[LedgerEvent]
            Decoded events in the range
        """
        cache_key_data = f"{self.contract.address}:{topic}:{from_block}:{to_block}"
        cache_key = f"events_chunk:{hashlib.md5(cache_key_data.encode()).hexdigest()}"
        cacheable = to_block <= current_block - CACHE_CONFIRMATIONS

        if cacheable:
            cached = await self.cache.get(cache_key)
            if isinstance(cached, list):
                self.logger.debug(f"Cache hit for chunk {from_block}-{to_block}")
                return [LedgerEvent(**item) for item in cached]

        filter_params = {
            'address': self.contract.address,
            'fromBlock': from_block,
            'toBlock': to_block,
            'topics': [topic]
        }
        try:
            logs = await self.web3.eth.get_logs(filter_params)
        except READ_ERRORS as e:
            self.logger.warning(f"Error fetching logs for chunk {from_block}-{to_block}: {e}")
            raise ConnectivityError(f"get_logs {from_block}-{to_block} failed: {e}") from e

        event = getattr(self.contract.events, event_abi["name"])()
        arg_names = [item["name"] for item in event_abi["inputs"]]
        events = []
        for log in logs:
            decoded = event.process_log(log)
            events.append(
                LedgerEvent(
                    transaction_hash=self.web3.to_hex(log['transactionHash']),
                    block_number=log['blockNumber'],
                    log_index=log['logIndex'],
                    event_name=decoded['event'],
                    args=[_serialize_value(decoded["args"][arg]) for arg in arg_names],
                    address=log['address']
                )
            )

        if cacheable:
            await self.cache.set(cache_key, [e.model_dump() for e in events], ttl=86400)
        return events


class Web3TargetLedger(_Web3Ledger, TargetLedger):
    """
    Successor escrow contract.

    Parameters
    ----------
    client : LedgerClient
        Ledger client
    address : str
        Contract address
    abi : list[dict]
        Contract ABI
    """

    def __init__(self, client: LedgerClient, address: str, abi: list[dict]):
        super().__init__(client, address, abi, name="RewardEscrowV2")

    async def pending_migration_amount(self, address: str) -> int:
        return int(await self._read("totalBalancePendingMigration", self._checksum(address)))

    async def escrowed_balance(self, address: str) -> int:
        return int(await self._read("totalEscrowedAccountBalance", self._checksum(address)))

    async def num_vesting_entries(self, address: str) -> int:
        return int(await self._read("numVestingEntries", self._checksum(address)))

    async def migrate_balances(
        self,
        addresses: list[str],
        balances: list[str],
        vested_amounts: list[str]
    ) -> None:
        function = self.contract.functions.migrateAccountEscrowBalances(
            [self._checksum(a) for a in addresses],
            [int(b) for b in balances],
            [int(v) for v in vested_amounts]
        )
        await self.client.send(function)

    async def import_schedule(
        self,
        addresses: list[str],
        timestamps: list[int],
        entries: list[int]
    ) -> None:
        function = self.contract.functions.importVestingSchedule(
            [self._checksum(a) for a in addresses],
            list(timestamps),
            list(entries)
        )
        await self.client.send(function)


def _serialize_value(value: Any) -> Any:
    """
    Serialize a decoded event value into a JSON-compatible one.

    Parameters
    ----------
    value : Any
        Value to serialize

    Returns
    -------
    Any
        Serialized value
    """
    if isinstance(value, bytes):
        return encode_hex(value)
    elif isinstance(value, (list, tuple)):
        return [_serialize_value(v) for v in value]
    elif isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    else:
        return str(value) if not isinstance(value, (int, float, str, bool, type(None))) else value
