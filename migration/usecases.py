import logging
from core.environment.config import Settings
from migration.collector import EventCollector
from migration.entities import MigrationOptions, MigrationSummary
from migration.executor import BatchExecutor
from migration.planner import MigrationPlanner
from migration.reconciler import AccountReconciler
from migration.verifier import Verifier


class RunMigrationUseCase:
    """
    Use case for one escrow migration run.

    Collects accounts, reconciles them, plans, migrates balances, imports
    schedules and verifies, strictly in that order.

    Parameters
    ----------
    collector : EventCollector
        Account discovery
    reconciler : AccountReconciler
        Per-account snapshotting
    planner : MigrationPlanner
        Work queue classification
    executor : BatchExecutor
        Paged writer
    verifier : Verifier
        Post-run checks
    settings : Settings
        Application settings (default page sizes)
    logger : logging.Logger
        Logger instance
    """

    def __init__(
        self,
        collector: EventCollector,
        reconciler: AccountReconciler,
        planner: MigrationPlanner,
        executor: BatchExecutor,
        verifier: Verifier,
        settings: Settings,
        logger: logging.Logger
    ):
        self.collector = collector
        self.reconciler = reconciler
        self.planner = planner
        self.executor = executor
        self.verifier = verifier
        self.settings = settings
        self.logger = logger

    async def __call__(self, options: MigrationOptions) -> MigrationSummary:
        """
        Execute use case.

        Parameters
        ----------
        options : MigrationOptions
            Dry-run flag and optional page sizes

        Returns
        -------
        MigrationSummary
            Counts, data-quality warnings and verification issues

        Raises
        ------
        ConnectivityError
            If a ledger cannot be read
        WriteError
            If a page write fails
        """
        balance_page_size = options.balance_page_size or self.settings.balance_page_size
        import_page_size = options.import_page_size or self.settings.import_page_size
        self.logger.info(
            f"Running escrow migration on {self.settings.network} "
            f"(dry_run={options.dry_run}, balance_page_size={balance_page_size}, "
            f"import_page_size={import_page_size})"
        )

        accounts = await self.collector.collect()
        snapshots = await self.reconciler.reconcile(accounts)
        plan = self.planner.plan(snapshots)

        migrated = await self.executor.migrate_balances(
            plan.balance_candidates, balance_page_size, dry_run=options.dry_run
        )
        imported = await self.executor.import_schedules(
            plan.import_entries, import_page_size, dry_run=options.dry_run
        )

        issues = await self.verifier.verify(
            snapshots,
            migration_candidates={s.address for s in plan.balance_candidates},
            dry_run=options.dry_run
        )

        summary = MigrationSummary(
            dry_run=options.dry_run,
            discovered_account_count=len(accounts),
            planned_migration_count=len(plan.balance_candidates),
            planned_import_count=len(plan.import_entries),
            migrated_account_count=migrated,
            imported_entry_count=imported,
            data_quality_warnings=[w for s in snapshots for w in s.warnings],
            verification_issues=issues
        )
        self.logger.info(
            f"Migration finished: {summary.migrated_account_count} accounts migrated, "
            f"{summary.imported_entry_count} entries imported, "
            f"{len(summary.data_quality_warnings)} data warnings, "
            f"{len(summary.verification_issues)} verification issues"
        )
        return summary
