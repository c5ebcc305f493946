from dishka import Provider, Scope, provide, FromComponent
from migration.abi import LEGACY_ESCROW_ABI, SUCCESSOR_ESCROW_ABI
from migration.abi_service import ABIService
from migration.collector import EventCollector
from migration.executor import BatchExecutor
from migration.ledgers import SourceLedger, TargetLedger
from migration.planner import MigrationPlanner
from migration.reconciler import AccountReconciler
from migration.services import LedgerClient, Web3SourceLedger, Web3TargetLedger
from migration.usecases import RunMigrationUseCase
from migration.verifier import Verifier
from typing import Annotated, AsyncIterable
from web3 import AsyncWeb3
from core.environment.config import Settings
from core.redis.providers import CacheService
import logging


class LedgerProvider(Provider):
    """
    Provider for ledger connectivity and the web3-backed ledgers.
    """

    component = "ledger"

    @provide(scope=Scope.APP)
    async def get_web3_client(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> AsyncIterable[AsyncWeb3]:
        """
        Provide Web3 client for the configured network.

        Parameters
        ----------
        settings : Settings
            Application settings

        Yields
        ------
        AsyncWeb3
            Web3 client
        """
        web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(settings.get_rpc_url()))
        try:
            yield web3
        finally:
            await web3.provider.disconnect()

    @provide(scope=Scope.APP)
    def get_abi_service(
        self,
        cache_service: Annotated[CacheService, FromComponent("cache")],
        logger: Annotated[logging.Logger, FromComponent("logger")],
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> ABIService:
        return ABIService(
            cache_service=cache_service,
            logger=logger,
            api_key=settings.etherscan_api_key
        )

    @provide(scope=Scope.APP)
    def get_ledger_client(
        self,
        web3: Annotated[AsyncWeb3, FromComponent("ledger")],
        cache_service: Annotated[CacheService, FromComponent("cache")],
        logger: Annotated[logging.Logger, FromComponent("logger")],
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> LedgerClient:
        """
        Provide ledger client with the configured signer.

        Parameters
        ----------
        web3 : AsyncWeb3
            Web3 client
        cache_service : CacheService
            Cache service instance
        logger : logging.Logger
            Logger instance
        settings : Settings
            Application settings

        Returns
        -------
        LedgerClient
            Ledger client
        """
        client = LedgerClient(
            web3=web3,
            logger=logger,
            cache_service=cache_service,
            private_key=settings.get_private_key(),
            sender_address=settings.sender_address,
            receipt_timeout=settings.receipt_timeout
        )
        logger.info(f"Using wallet with address {client.wallet_address}")
        return client

    @provide(scope=Scope.APP)
    async def get_source_ledger(
        self,
        client: Annotated[LedgerClient, FromComponent("ledger")],
        abi_service: Annotated[ABIService, FromComponent("ledger")],
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> SourceLedger:
        abi = await abi_service.get_abi(
            settings.legacy_escrow_address, settings.network, LEGACY_ESCROW_ABI
        )
        return Web3SourceLedger(
            client=client,
            address=settings.legacy_escrow_address,
            abi=abi,
            from_block=settings.from_block,
            chunk_size=settings.log_chunk_size,
            chunk_concurrency=settings.log_chunk_concurrency
        )

    @provide(scope=Scope.APP)
    async def get_target_ledger(
        self,
        client: Annotated[LedgerClient, FromComponent("ledger")],
        abi_service: Annotated[ABIService, FromComponent("ledger")],
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> TargetLedger:
        abi = await abi_service.get_abi(
            settings.successor_escrow_address, settings.network, SUCCESSOR_ESCROW_ABI
        )
        return Web3TargetLedger(
            client=client,
            address=settings.successor_escrow_address,
            abi=abi
        )


class MigrationProvider(Provider):
    """
    Provider for the migration pipeline components.
    """

    component = "migration"
    scope = Scope.REQUEST

    @provide
    def get_event_collector(
        self,
        source_ledger: Annotated[SourceLedger, FromComponent("ledger")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> EventCollector:
        return EventCollector(source_ledger=source_ledger, logger=logger)

    @provide
    def get_account_reconciler(
        self,
        source_ledger: Annotated[SourceLedger, FromComponent("ledger")],
        target_ledger: Annotated[TargetLedger, FromComponent("ledger")],
        logger: Annotated[logging.Logger, FromComponent("logger")],
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> AccountReconciler:
        return AccountReconciler(
            source_ledger=source_ledger,
            target_ledger=target_ledger,
            logger=logger,
            concurrency=settings.reconcile_concurrency
        )

    @provide
    def get_migration_planner(
        self,
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> MigrationPlanner:
        return MigrationPlanner(logger=logger)

    @provide
    def get_batch_executor(
        self,
        target_ledger: Annotated[TargetLedger, FromComponent("ledger")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> BatchExecutor:
        return BatchExecutor(target_ledger=target_ledger, logger=logger)

    @provide
    def get_verifier(
        self,
        target_ledger: Annotated[TargetLedger, FromComponent("ledger")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> Verifier:
        return Verifier(target_ledger=target_ledger, logger=logger)

    @provide
    def get_run_migration_use_case(
        self,
        collector: Annotated[EventCollector, FromComponent("migration")],
        reconciler: Annotated[AccountReconciler, FromComponent("migration")],
        planner: Annotated[MigrationPlanner, FromComponent("migration")],
        executor: Annotated[BatchExecutor, FromComponent("migration")],
        verifier: Annotated[Verifier, FromComponent("migration")],
        settings: Annotated[Settings, FromComponent("environment")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> RunMigrationUseCase:
        """
        Provide run migration use case.

        Returns
        -------
        RunMigrationUseCase
            Run migration use case
        """
        return RunMigrationUseCase(
            collector=collector,
            reconciler=reconciler,
            planner=planner,
            executor=executor,
            verifier=verifier,
            settings=settings,
            logger=logger
        )
