import logging
from migration.entities import AccountSnapshot, ImportEntry, MigrationPlan


class MigrationPlanner:
    """
    Classifies snapshots into the balance-migration and schedule-import queues.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def plan(self, snapshots: list[AccountSnapshot]) -> MigrationPlan:
        """
        Build the work queues.

        An account is migrated only when the target shows neither a pending
        migration nor an escrowed balance. Schedule entries are imported only
        for accounts pending import at reconciliation time; accounts migrated
        in this run are imported by the next one.

        Parameters
        ----------
        snapshots : list[AccountSnapshot]
            Reconciled accounts

        Returns
        -------
        MigrationPlan
            Balance candidates, import rows and skipped accounts, all in
            snapshot order
        """
        balance_candidates = [
            s for s in snapshots
            if not s.pending and not s.has_escrow_balance
        ]

        import_entries: list[ImportEntry] = []
        skipped: list[str] = []
        for snapshot in snapshots:
            if not snapshot.pending:
                self.logger.info(f"Skipping entries for {snapshot.address} as no longer pending")
                skipped.append(snapshot.address)
                continue
            import_entries.extend(
                ImportEntry(address=snapshot.address, timestamp=e.timestamp, entry=e.entry)
                for e in snapshot.schedule
            )

        self.logger.info(
            f"Planned {len(balance_candidates)} balance migrations and "
            f"{len(import_entries)} schedule entry imports"
        )
        return MigrationPlan(
            balance_candidates=balance_candidates,
            import_entries=import_entries,
            skipped_import_addresses=skipped
        )
