from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _validate_amount(v: str | int) -> str:
    value = str(v)
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"Amount must be a non-negative integer, got {value!r}")
    return value


class LedgerEvent(BaseModel):
    """
    Entity representing a decoded ledger event.

    Attributes
    ----------
    transaction_hash : str
        Transaction hash
    block_number : int
        Block number where event occurred
    log_index : int
        Log index in the block
    event_name : str
        Name of the event
    args : list[Any]
        Event arguments in ABI (positional) order
    address : str
        Emitting contract address
    """
    transaction_hash: str
    block_number: int
    log_index: int
    event_name: str
    args: list[Any]
    address: str

    model_config = ConfigDict(from_attributes=True)


class VestingEvent(BaseModel):
    """One historical vesting-entry creation; only the account is kept."""
    address: str


class ScheduleEntry(BaseModel):
    """
    One vesting commitment.

    Attributes
    ----------
    timestamp : int
        Release timestamp
    entry : int
        Amount released at ``timestamp``
    """
    timestamp: int = Field(..., ge=0)
    entry: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def is_padding(self) -> bool:
        return self.timestamp == 0 and self.entry == 0

    @property
    def is_anomalous(self) -> bool:
        return (self.timestamp == 0) != (self.entry == 0)


class DataQualityWarning(BaseModel):
    """
    Schedule pair with exactly one zero field.

    Attributes
    ----------
    address : str
        Account owning the schedule
    timestamp : int
        Raw timestamp of the pair
    entry : int
        Raw amount of the pair
    """
    address: str
    timestamp: int
    entry: int


class AccountSnapshot(BaseModel):
    """
    Per-account state across both ledgers, captured once per run.

    Attributes
    ----------
    address : str
        Account address
    balance : str
        Escrowed balance on the source ledger (decimal integer string)
    vested : str
        Vested balance on the source ledger (decimal integer string)
    schedule : list[ScheduleEntry]
        Processed vesting schedule, padding removed
    pending : bool
        Target ledger holds an unconsumed balance-migration record
    has_escrow_balance : bool
        Target ledger already shows a nonzero escrowed balance
    num_vesting_entries : int
        Vesting entries already present on the target ledger
    warnings : list[DataQualityWarning]
        Anomalies found while processing the schedule
    """
    address: str
    balance: str
    vested: str
    schedule: list[ScheduleEntry] = Field(default_factory=list)
    pending: bool = False
    has_escrow_balance: bool = False
    num_vesting_entries: int = Field(default=0, ge=0)
    warnings: list[DataQualityWarning] = Field(default_factory=list)

    @field_validator('balance', 'vested', mode='before')
    @classmethod
    def validate_amount(cls, v: str | int) -> str:
        return _validate_amount(v)


class ImportEntry(BaseModel):
    """One schedule entry queued for import, tagged with its account."""
    address: str
    timestamp: int = Field(..., ge=0)
    entry: int = Field(..., ge=0)


class MigrationBatch(BaseModel):
    """
    One balance-migration write: three index-aligned sequences.

    Attributes
    ----------
    page_index : int
        Zero-based page number within the phase
    addresses : list[str]
        Accounts to migrate
    balances : list[str]
        Escrowed balance per account
    vested_amounts : list[str]
        Vested balance per account
    """
    page_index: int = Field(..., ge=0)
    addresses: list[str]
    balances: list[str]
    vested_amounts: list[str]

    @model_validator(mode='after')
    def check_aligned(self) -> 'MigrationBatch':
        if not (len(self.addresses) == len(self.balances) == len(self.vested_amounts)):
            raise ValueError("addresses, balances and vested_amounts must have equal length")
        return self

    @classmethod
    def from_snapshots(cls, page_index: int, snapshots: list[AccountSnapshot]) -> 'MigrationBatch':
        return cls(
            page_index=page_index,
            addresses=[s.address for s in snapshots],
            balances=[s.balance for s in snapshots],
            vested_amounts=[s.vested for s in snapshots]
        )


class ImportBatch(BaseModel):
    """
    One schedule-import write.

    Attributes
    ----------
    page_index : int
        Zero-based page number within the phase
    entries : list[ImportEntry]
        Rows to import, in queue order
    """
    page_index: int = Field(..., ge=0)
    entries: list[ImportEntry]

    @property
    def addresses(self) -> list[str]:
        return [e.address for e in self.entries]

    @property
    def timestamps(self) -> list[int]:
        return [e.timestamp for e in self.entries]

    @property
    def amounts(self) -> list[int]:
        return [e.entry for e in self.entries]


class MigrationPlan(BaseModel):
    """
    Work queues derived from the reconciled snapshots.

    Attributes
    ----------
    balance_candidates : list[AccountSnapshot]
        Accounts needing balance migration, in discovery order
    import_entries : list[ImportEntry]
        Schedule rows to import, grouped by account in discovery order
    skipped_import_addresses : list[str]
        Accounts not pending, hence skipped for schedule import
    """
    balance_candidates: list[AccountSnapshot] = Field(default_factory=list)
    import_entries: list[ImportEntry] = Field(default_factory=list)
    skipped_import_addresses: list[str] = Field(default_factory=list)


VerificationKind = Literal["migration_incomplete", "import_incomplete", "not_migrated"]


class VerificationMismatch(BaseModel):
    """
    Post-run inconsistency between expected and observed target state.

    Attributes
    ----------
    address : str
        Account address
    kind : VerificationKind
        What did not match
    expected : int
        Expected value on the target ledger
    actual : int
        Observed value on the target ledger
    message : str
        Human-readable description
    """
    address: str
    kind: VerificationKind
    expected: int
    actual: int
    message: str


class MigrationOptions(BaseModel):
    """
    Per-run options. Page sizes fall back to settings when omitted.
    """
    dry_run: bool = False
    balance_page_size: int | None = Field(default=None, gt=0)
    import_page_size: int | None = Field(default=None, gt=0)


class MigrationSummary(BaseModel):
    """
    Outcome of one migration run.

    Attributes
    ----------
    dry_run : bool
        Whether writes were suppressed
    discovered_account_count : int
        Distinct accounts found in the event log
    planned_migration_count : int
        Accounts queued for balance migration
    planned_import_count : int
        Schedule entries queued for import
    migrated_account_count : int
        Accounts whose balance-migration page was committed
    imported_entry_count : int
        Schedule entries whose import page was committed
    data_quality_warnings : list[DataQualityWarning]
        Anomalous schedule pairs (retained in the schedule)
    verification_issues : list[VerificationMismatch]
        Post-run inconsistencies
    """
    dry_run: bool
    discovered_account_count: int = 0
    planned_migration_count: int = 0
    planned_import_count: int = 0
    migrated_account_count: int = 0
    imported_entry_count: int = 0
    data_quality_warnings: list[DataQualityWarning] = Field(default_factory=list)
    verification_issues: list[VerificationMismatch] = Field(default_factory=list)
