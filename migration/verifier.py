import logging
from migration.entities import AccountSnapshot, VerificationMismatch
from migration.ledgers import TargetLedger


class Verifier:
    """
    Re-reads the target ledger after execution and reports mismatches.

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

    async def verify(
        self,
        snapshots: list[AccountSnapshot],
        migration_candidates: set[str] | None = None,
        dry_run: bool = False
    ) -> list[VerificationMismatch]:
        """
        Check every account against its expected final state.

        Parameters
        ----------
        snapshots : list[AccountSnapshot]
            Snapshots taken during reconciliation
        migration_candidates : set[str] | None
            Addresses planned for balance migration in this run
        dry_run : bool
            Whether the run suppressed writes; only then are untouched
            candidates reported as ``not_migrated``

        Returns
        -------
        list[VerificationMismatch]
            Mismatches in snapshot order; empty when everything matches
        """
        migration_candidates = migration_candidates or set()
        issues: list[VerificationMismatch] = []

        for snapshot in snapshots:
            address = snapshot.address
            pending_amount = await self.target_ledger.pending_migration_amount(address)
            num_entries = await self.target_ledger.num_vesting_entries(address)
            expected_entries = len(snapshot.schedule)

            untouched = pending_amount == 0 and num_entries == 0
            if dry_run and address in migration_candidates and untouched:
                if await self.target_ledger.escrowed_balance(address) == 0:
                    issues.append(VerificationMismatch(
                        address=address,
                        kind="not_migrated",
                        expected=int(snapshot.balance),
                        actual=0,
                        message=f"{address} has not been migrated yet"
                    ))

            if pending_amount != 0:
                issues.append(VerificationMismatch(
                    address=address,
                    kind="migration_incomplete",
                    expected=0,
                    actual=pending_amount,
                    message=f"{address} still has {pending_amount} migration left"
                ))

            if num_entries != expected_entries:
                issues.append(VerificationMismatch(
                    address=address,
                    kind="import_incomplete",
                    expected=expected_entries,
                    actual=num_entries,
                    message=f"{address} only has {num_entries} instead of {expected_entries} vesting entries"
                ))

        for issue in issues:
            self.logger.error(f"Verification: {issue.message}")
        self.logger.info(f"Verified {len(snapshots)} accounts, {len(issues)} issues")
        return issues
