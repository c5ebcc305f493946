import asyncio
import logging
from core.tasks import gather_or_cancel
from migration.entities import AccountSnapshot, DataQualityWarning, ScheduleEntry
from migration.ledgers import SourceLedger, TargetLedger


def flatten_schedule(
    address: str,
    flat_schedule: list[int],
    logger: logging.Logger
) -> tuple[list[ScheduleEntry], list[DataQualityWarning]]:
    """
    Turn a flat ``[timestamp, entry, ...]`` sequence into schedule entries.

    ``(0, 0)`` pairs are padding and dropped. Pairs with exactly one zero
    field are kept as-is and reported once each.

    Parameters
    ----------
    address : str
        Account owning the schedule, for log messages
    flat_schedule : list[int]
        Raw schedule as returned by the source ledger
    logger : logging.Logger
        Logger instance

    Returns
    -------
    tuple[list[ScheduleEntry], list[DataQualityWarning]]
        Processed entries in source order and the anomalies found
    """
    if len(flat_schedule) % 2:
        logger.warning(
            f"Schedule of {address} has odd length {len(flat_schedule)}, ignoring trailing value"
        )

    schedule: list[ScheduleEntry] = []
    warnings: list[DataQualityWarning] = []
    for i in range(0, len(flat_schedule) - 1, 2):
        entry = ScheduleEntry(timestamp=int(flat_schedule[i]), entry=int(flat_schedule[i + 1]))
        if entry.is_padding:
            continue
        if entry.is_anomalous:
            logger.warning(
                f"Address {address} has schedule entry "
                f"(timestamp={entry.timestamp}, entry={entry.entry}) with one field 0"
            )
            warnings.append(
                DataQualityWarning(address=address, timestamp=entry.timestamp, entry=entry.entry)
            )
        schedule.append(entry)

    return schedule, warnings


class AccountReconciler:
    """
    Builds one snapshot per account from the source and target ledgers.

    Parameters
    ----------
    source_ledger : SourceLedger
        Legacy escrow ledger
    target_ledger : TargetLedger
        Successor escrow ledger
    logger : logging.Logger
        Logger instance
    concurrency : int
        Accounts reconciled at once
    """

    def __init__(
        self,
        source_ledger: SourceLedger,
        target_ledger: TargetLedger,
        logger: logging.Logger,
        concurrency: int = 1
    ):
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        self.source_ledger = source_ledger
        self.target_ledger = target_ledger
        self.logger = logger
        self.concurrency = concurrency

    async def reconcile(self, addresses: list[str]) -> list[AccountSnapshot]:
        """
        Snapshot every address.

        Parameters
        ----------
        addresses : list[str]
            Accounts to reconcile

        Returns
        -------
        list[AccountSnapshot]
            Snapshots in the order of ``addresses``

        Raises
        ------
        ConnectivityError
            If any ledger read fails
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(address: str) -> AccountSnapshot:
            async with semaphore:
                return await self.reconcile_account(address)

        # results come back in argument order; a failure cancels the other accounts
        snapshots = await gather_or_cancel(*(bounded(address) for address in addresses))

        self.logger.info(
            f"Reconciled {len(snapshots)} accounts: "
            f"{sum(s.pending for s in snapshots)} pending import, "
            f"{sum(s.has_escrow_balance for s in snapshots)} already escrowed"
        )
        return list(snapshots)

    async def reconcile_account(self, address: str) -> AccountSnapshot:
        pending = await self.target_ledger.pending_migration_amount(address) > 0
        has_escrow_balance = await self.target_ledger.escrowed_balance(address) > 0
        num_vesting_entries = await self.target_ledger.num_vesting_entries(address)

        if pending:
            self.logger.info(f"Note: {address} already migrated pending entry import")
        elif has_escrow_balance:
            self.logger.info(f"Note: {address} escrow amounts already exist")

        balance, vested, flat_schedule = await gather_or_cancel(
            self.source_ledger.escrowed_balance(address),
            self.source_ledger.vested_balance(address),
            self.source_ledger.schedule(address),
        )
        schedule, warnings = flatten_schedule(address, flat_schedule, self.logger)

        return AccountSnapshot(
            address=address,
            balance=str(balance),
            vested=str(vested),
            schedule=schedule,
            pending=pending,
            has_escrow_balance=has_escrow_balance,
            num_vesting_entries=num_vesting_entries,
            warnings=warnings
        )
