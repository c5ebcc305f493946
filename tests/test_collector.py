import pytest

from core.exceptions import ConnectivityError
from migration.collector import EventCollector

ACCOUNT_A = '0x' + 'aa' * 20
ACCOUNT_B = '0x' + 'bb' * 20
ACCOUNT_C = '0x' + 'cc' * 20


class TestEventCollector:
    """
    Tests for account discovery from vesting events.
    """

    @pytest.mark.asyncio
    async def test_addresses_are_deduplicated_in_first_appearance_order(
        self, make_source_ledger, logger
    ):
        source = make_source_ledger(
            {},
            events=[ACCOUNT_B, ACCOUNT_A, ACCOUNT_B, ACCOUNT_C, ACCOUNT_A]
        )

        accounts = await EventCollector(source, logger).collect()

        assert accounts == [ACCOUNT_B, ACCOUNT_A, ACCOUNT_C]

    @pytest.mark.asyncio
    async def test_no_events(self, make_source_ledger, logger):
        accounts = await EventCollector(make_source_ledger({}, events=[]), logger).collect()

        assert accounts == []

    @pytest.mark.asyncio
    async def test_query_failure_propagates(self, source_ledger, logger):
        source_ledger.fail_events = True

        with pytest.raises(ConnectivityError):
            await EventCollector(source_ledger, logger).collect()
