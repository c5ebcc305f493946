import pytest
from pydantic import ValidationError

from migration.entities import AccountSnapshot, MigrationBatch

ACCOUNT_A = '0x' + 'aa' * 20


class TestAccountSnapshot:
    """
    Tests for amount validation on snapshots.
    """

    def test_large_amount_string_is_accepted(self):
        snapshot = AccountSnapshot(address=ACCOUNT_A, balance=str(10 ** 30), vested=7)

        assert snapshot.balance == str(10 ** 30)
        assert snapshot.vested == "7"

    @pytest.mark.parametrize("amount", ["-1", "1.5", "", " 1", "²", "١٢"])
    def test_non_ascii_or_malformed_amount_is_rejected(self, amount):
        with pytest.raises(ValidationError):
            AccountSnapshot(address=ACCOUNT_A, balance=amount, vested="0")


class TestMigrationBatch:
    """
    Tests for balance batch alignment.
    """

    def test_misaligned_sequences_are_rejected(self):
        with pytest.raises(ValidationError):
            MigrationBatch(page_index=0, addresses=[ACCOUNT_A], balances=["1", "2"], vested_amounts=["0"])
