import aiohttp
import json
import logging
from core.redis.providers import CacheService
from migration.abi import required_names


class ABIService:
    """
    Service for resolving contract ABIs.

    Verified ABIs come from the block explorer when an API key is
    configured; otherwise, or when the explorer ABI lacks a function the
    migration calls, the bundled fragment is used.

    Parameters
    ----------
    cache_service : CacheService
        Cache service for storing ABIs
    logger : logging.Logger
        Logger instance
    api_key : str
        Explorer API key, empty to skip the explorer
    """

    EXPLORER_APIS = {
        "mainnet": "https://api.etherscan.io/api",
        "goerli": "https://api-goerli.etherscan.io/api",
        "sepolia": "https://api-sepolia.etherscan.io/api",
        "optimism": "https://api-optimistic.etherscan.io/api",
    }

    def __init__(self, cache_service: CacheService, logger: logging.Logger, api_key: str = ""):
        self.cache = cache_service
        self.logger = logger
        self.api_key = api_key

    async def get_abi(
        self,
        contract_address: str,
        network: str,
        fallback_abi: list[dict]
    ) -> list[dict]:
        """
        Get contract ABI from cache, explorer API or the bundled fragment.

        Parameters
        ----------
        contract_address : str
            Contract address
        network : str
            Network name
        fallback_abi : list[dict]
            Bundled ABI fragment; also defines the names that must be present

        Returns
        -------
        list[dict]
            Contract ABI
        """
        if not self.api_key:
            return fallback_abi

        cache_key = f"abi:{network}:{contract_address.lower()}"
        required = required_names(fallback_abi)

        cached = await self.cache.get(cache_key)
        if cached and isinstance(cached, list):
            self.logger.info(f"ABI found in cache for {contract_address}")
            return cached

        abi = await self._fetch_from_explorer(contract_address, network)
        missing = required - required_names(abi)
        if not abi or missing:
            self.logger.warning(
                f"Explorer ABI for {contract_address} unusable "
                f"(missing: {sorted(missing)}), using bundled ABI"
            )
            return fallback_abi

        await self.cache.set(cache_key, abi, ttl=86400 * 7)
        return abi

    async def _fetch_from_explorer(
        self,
        contract_address: str,
        network: str
    ) -> list[dict]:
        """
        Fetch ABI from blockchain explorer API.

        Parameters
        ----------
        contract_address : str
            Contract address
        network : str
            Network name

        Returns
        -------
        list[dict]
            Contract ABI, empty if the explorer has none
        """
        api_url = self.EXPLORER_APIS.get(network)
        if not api_url:
            return []

        params = {
            "module": "contract",
            "action": "getabi",
            "address": contract_address,
            "apikey": self.api_key
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(api_url, params=params) as response:
                    if response.status == 200:
                        data = await response.json()
                        if data.get("status") == "1" and data.get("result"):
                            return json.loads(data["result"])
        except (aiohttp.ClientError, json.JSONDecodeError) as e:
            self.logger.warning(f"Explorer ABI request for {contract_address} failed: {e}")

        return []
