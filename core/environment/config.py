import os
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import MigrationConfigException


class Settings(BaseSettings):
    """
    Application settings using Pydantic Settings.

    Attributes
    ----------
    network : str
        Network name, substituted into infura-style provider URLs
    provider_url : str | None
        RPC endpoint of the ledger network
    use_fork : bool
        Talk to a local fork instead of ``provider_url``
    fork_url : str
        RPC endpoint of the local fork
    private_key : SecretStr | None
        Key used to sign write transactions
    sender_address : str | None
        Unlocked account used for writes on a fork when no key is given
    legacy_escrow_address : str
        Address of the legacy (source) escrow contract
    successor_escrow_address : str
        Address of the successor (target) escrow contract
    from_block : int
        First block scanned for vesting events
    log_chunk_size : int
        Number of blocks per ``eth_getLogs`` request
    log_chunk_concurrency : int
        Number of log requests in flight at once
    reconcile_concurrency : int
        Number of accounts reconciled at once
    balance_page_size : int
        Default number of accounts per balance-migration write
    import_page_size : int
        Default number of entries per schedule-import write
    receipt_timeout : int
        Seconds to wait for a transaction receipt
    cache_enabled : bool
        Cache event chunks and ABIs in Redis
    redis_host : str
        Redis host for caching
    redis_port : int
        Redis port
    redis_db : int
        Redis database number
    redis_password : str
        Redis password (optional)
    etherscan_api_key : str
        Etherscan API key for fetching ABIs (optional)
    log_level : str
        Root log level
    """

    network: str = "mainnet"
    provider_url: str | None = None
    use_fork: bool = False
    fork_url: str = "http://localhost:8545"
    private_key: SecretStr | None = None
    sender_address: str | None = None

    legacy_escrow_address: str
    successor_escrow_address: str
    from_block: int = Field(default=0, ge=0)

    log_chunk_size: int = Field(default=2000, gt=0)
    log_chunk_concurrency: int = Field(default=10, gt=0)
    reconcile_concurrency: int = Field(default=1, gt=0)
    balance_page_size: int = Field(default=500, gt=0)
    import_page_size: int = Field(default=200, gt=0)
    receipt_timeout: int = Field(default=600, gt=0)

    cache_enabled: bool = False
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str = ""

    etherscan_api_key: str = ""
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_rpc_url(self) -> str:
        """
        Get RPC URL for the configured network.

        Returns
        -------
        str
            Fork URL when ``use_fork`` is set, otherwise ``provider_url``
            with the ``network`` placeholder replaced for infura endpoints

        Raises
        ------
        MigrationConfigException
            If no provider URL is configured
        """
        if self.use_fork:
            return self.fork_url
        if not self.provider_url:
            raise MigrationConfigException("Cannot set up a provider: PROVIDER_URL is not set")
        if "infura" in self.provider_url:
            return self.provider_url.replace("network", self.network)
        return self.provider_url

    def get_private_key(self) -> str | None:
        if self.private_key is None:
            return None
        return self.private_key.get_secret_value() or None
