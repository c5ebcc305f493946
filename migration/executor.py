import logging
from typing import Iterator, Sequence, TypeVar
from core.exceptions import WriteError
from migration.entities import AccountSnapshot, ImportBatch, ImportEntry, MigrationBatch
from migration.ledgers import TargetLedger

T = TypeVar("T")

BALANCE_MIGRATION = "balance_migration"
SCHEDULE_IMPORT = "schedule_import"


def paginate(items: Sequence[T], page_size: int) -> Iterator[list[T]]:
    """
    Split ``items`` into consecutive pages of at most ``page_size``.

    Parameters
    ----------
    items : Sequence[T]
        Items to split
    page_size : int
        Maximum page length

    Yields
    ------
    list[T]
        Next page, in original order
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    for start in range(0, len(items), page_size):
        yield list(items[start:start + page_size])


class BatchExecutor:
    """
    Writes work queues to the target ledger one page at a time.

    Pages are written in order and the first failure stops the phase.
    Pages committed before the failure stay committed.

    Parameters
    ----------
    target_ledger : TargetLedger
        Successor escrow ledger
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, target_ledger: TargetLedger, logger: logging.Logger):
        self.target_ledger = target_ledger
        self.logger = logger

    async def migrate_balances(
        self,
        candidates: list[AccountSnapshot],
        page_size: int,
        dry_run: bool = False
    ) -> int:
        """
        Migrate balances of ``candidates``.

        Parameters
        ----------
        candidates : list[AccountSnapshot]
            Accounts to migrate
        page_size : int
            Accounts per write
        dry_run : bool
            Log pages instead of writing them

        Returns
        -------
        int
            Number of accounts committed (0 in dry-run)

        Raises
        ------
        WriteError
            If a page write fails
        """
        committed = 0
        for page_index, page in enumerate(paginate(candidates, page_size)):
            batch = MigrationBatch.from_snapshots(page_index, page)
            self.logger.info(f"Migrating {len(batch.addresses)} accounts (page {page_index})")
            if dry_run:
                self.logger.info(f"[DRY-RUN] Migrating {batch.model_dump_json()}")
                continue
            try:
                await self.target_ledger.migrate_balances(
                    batch.addresses, batch.balances, batch.vested_amounts
                )
            except Exception as e:
                raise WriteError(BALANCE_MIGRATION, page_index, batch.addresses, str(e)) from e
            committed += len(batch.addresses)
        return committed

    async def import_schedules(
        self,
        entries: list[ImportEntry],
        page_size: int,
        dry_run: bool = False
    ) -> int:
        """
        Import vesting schedule rows.

        Parameters
        ----------
        entries : list[ImportEntry]
            Rows to import
        page_size : int
            Rows per write
        dry_run : bool
            Log pages instead of writing them

        Returns
        -------
        int
            Number of rows committed (0 in dry-run)

        Raises
        ------
        WriteError
            If a page write fails
        """
        committed = 0
        for page_index, page in enumerate(paginate(entries, page_size)):
            batch = ImportBatch(page_index=page_index, entries=page)
            self.logger.info(f"Importing vesting entries {len(batch.entries)} (page {page_index})")
            if dry_run:
                self.logger.info(f"[DRY-RUN] Importing {batch.model_dump_json()}")
                continue
            try:
                await self.target_ledger.import_schedule(
                    batch.addresses, batch.timestamps, batch.amounts
                )
            except Exception as e:
                raise WriteError(SCHEDULE_IMPORT, page_index, batch.addresses, str(e)) from e
            committed += len(batch.entries)
        return committed
