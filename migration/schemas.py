from pydantic import BaseModel, ConfigDict, Field

from migration.entities import DataQualityWarning, VerificationMismatch


class RunMigrationRequest(BaseModel):
    """
    Request schema for a migration run.

    Attributes
    ----------
    dry_run : bool
        Log pages instead of writing them (defaults to true)
    balance_page_size : int | None
        Accounts per balance-migration write
    import_page_size : int | None
        Entries per schedule-import write
    """
    dry_run: bool = Field(default=True, description="Log pages instead of writing them")
    balance_page_size: int | None = Field(
        default=None, gt=0, description="Accounts per balance-migration write"
    )
    import_page_size: int | None = Field(
        default=None, gt=0, description="Entries per schedule-import write"
    )


class MigrationSummaryResponse(BaseModel):
    """
    Response schema for a migration run.

    Attributes
    ----------
    dry_run : bool
        Whether writes were suppressed
    discovered_account_count : int
        Distinct accounts found in the event log
    planned_migration_count : int
        Accounts queued for balance migration
    planned_import_count : int
        Entries queued for import
    migrated_account_count : int
        Accounts committed
    imported_entry_count : int
        Entries committed
    data_quality_warnings : list[DataQualityWarning]
        Anomalous schedule pairs
    verification_issues : list[VerificationMismatch]
        Post-run inconsistencies
    """
    dry_run: bool
    discovered_account_count: int
    planned_migration_count: int
    planned_import_count: int
    migrated_account_count: int
    imported_entry_count: int
    data_quality_warnings: list[DataQualityWarning]
    verification_issues: list[VerificationMismatch]

    model_config = ConfigDict(from_attributes=True)
