from abc import ABC


class BaseCustomException(Exception, ABC):
    """
    Base class for all custom exceptions.
    """

    def __init__(self, message: str | None = None):
        self.message = message or self.get_default_message()
        super().__init__(self.message)

    def get_default_message(self) -> str:
        """
        Return default error message.

        Returns
        -------
        str
            Default error message
        """
        return "error.unknown"

    def get_status_code(self) -> int:
        """
        Return HTTP status code for exception.

        Returns
        -------
        int
            HTTP status code
        """
        return 500


class BadRequestException(BaseCustomException):
    """Bad request exception (400)."""

    def get_status_code(self) -> int:
        return 400


class MigrationConfigException(BadRequestException):
    """Configuration does not allow a ledger connection to be set up."""

    def get_default_message(self) -> str:
        return "error.config.invalid"


class ConnectivityError(BaseCustomException):
    """
    A ledger read or event query could not complete.

    Aborts the run. Retrying is left to the ledger client.
    """

    def get_default_message(self) -> str:
        return "error.ledger.unreachable"

    def get_status_code(self) -> int:
        return 503


class TransactionRevertedException(BaseCustomException):
    """Transaction was mined but its receipt reports failure."""

    def get_default_message(self) -> str:
        return "error.tx.reverted"

    def get_status_code(self) -> int:
        return 502


class WriteError(BaseCustomException):
    """
    A page write against the target ledger failed.

    Parameters
    ----------
    phase : str
        Executor phase (``balance_migration`` or ``schedule_import``)
    page_index : int
        Zero-based index of the failed page
    addresses : list[str]
        Addresses contained in the failed page
    reason : str | None
        Underlying failure description
    """

    def __init__(
        self,
        phase: str,
        page_index: int,
        addresses: list[str],
        reason: str | None = None
    ):
        self.phase = phase
        self.page_index = page_index
        self.addresses = addresses
        self.reason = reason
        super().__init__(
            f"{phase} page {page_index} ({len(addresses)} rows) failed: "
            f"{reason or 'unknown error'}"
        )

    def get_status_code(self) -> int:
        return 502
