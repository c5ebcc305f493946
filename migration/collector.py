import logging
from migration.abi import VESTING_ENTRY_CREATED
from migration.entities import VestingEvent
from migration.ledgers import SourceLedger


class EventCollector:
    """
    Discovers participating accounts from the source ledger's event log.

    Parameters
    ----------
    source_ledger : SourceLedger
        Legacy escrow ledger
    logger : logging.Logger
        Logger instance
    event_name : str
        Event marking a vesting-entry creation
    """

    def __init__(
        self,
        source_ledger: SourceLedger,
        logger: logging.Logger,
        event_name: str = VESTING_ENTRY_CREATED
    ):
        self.source_ledger = source_ledger
        self.logger = logger
        self.event_name = event_name

    async def collect(self) -> list[str]:
        """
        Get the distinct accounts that ever had a vesting entry created.

        Returns
        -------
        list[str]
            Unique addresses in order of first appearance

        Raises
        ------
        ConnectivityError
            If the event query cannot complete
        """
        events = await self.source_ledger.events(self.event_name)
        vesting_events = [VestingEvent(address=event.args[0]) for event in events]

        # dict keeps first-appearance order
        accounts = list(dict.fromkeys(event.address for event in vesting_events))

        self.logger.info(f"Found {len(accounts)} accounts in {len(vesting_events)} {self.event_name} events")
        return accounts
