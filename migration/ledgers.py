from abc import ABC, abstractmethod
from migration.entities import LedgerEvent


class SourceLedger(ABC):
    """
    Read-only view of the legacy escrow ledger.

    Amounts are returned as Python ints; implementations raise
    ``ConnectivityError`` when a read cannot complete.
    """

    @abstractmethod
    async def escrowed_balance(self, address: str) -> int:
        ...

    @abstractmethod
    async def vested_balance(self, address: str) -> int:
        ...

    @abstractmethod
    async def schedule(self, address: str) -> list[int]:
        """
        Flat vesting schedule: ``[timestamp0, entry0, timestamp1, entry1, ...]``.
        """
        ...

    @abstractmethod
    async def events(self, name: str) -> list[LedgerEvent]:
        """
        Every historical event called ``name``, ordered by block and log index.
        """
        ...


class TargetLedger(ABC):
    """
    Read-write view of the successor escrow ledger.

    Write methods return once the state transition is committed and raise
    on failure; they never partially apply a page.
    """

    @abstractmethod
    async def pending_migration_amount(self, address: str) -> int:
        ...

    @abstractmethod
    async def escrowed_balance(self, address: str) -> int:
        ...

    @abstractmethod
    async def num_vesting_entries(self, address: str) -> int:
        ...

    @abstractmethod
    async def migrate_balances(
        self,
        addresses: list[str],
        balances: list[str],
        vested_amounts: list[str]
    ) -> None:
        ...

    @abstractmethod
    async def import_schedule(
        self,
        addresses: list[str],
        timestamps: list[int],
        entries: list[int]
    ) -> None:
        ...
