from dishka import Provider, Scope, provide, FromComponent
from typing import Annotated, Any, AsyncIterable
from core.environment.config import Settings
from redis.asyncio import Redis
import json
import logging


class CacheService:
    """
    Service for caching data in Redis.

    A service built without a client is a pass-through: every read misses
    and every write is dropped.

    Parameters
    ----------
    redis_client : Redis | None
        Redis client instance, ``None`` when caching is disabled
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, redis_client: Redis | None, logger: logging.Logger):
        self.redis = redis_client
        self.logger = logger

    async def get(self, key: str) -> Any | None:
        """
        Get cached value.

        Parameters
        ----------
        key : str
            Cache key

        Returns
        -------
        Any | None
            Cached value or None
        """
        if self.redis is None:
            return None
        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
        except Exception as e:
            self.logger.debug(f"Cache read error for {key}: {e}")
        return None

    async def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """
        Set cached value.

        Parameters
        ----------
        key : str
            Cache key
        value : Any
            JSON-serializable value to cache
        ttl : int
            Time to live in seconds

        Returns
        -------
        bool
            Success status
        """
        if self.redis is None:
            return False
        try:
            await self.redis.setex(
                key,
                ttl,
                json.dumps(value)
            )
            return True
        except Exception as e:
            self.logger.debug(f"Cache write error for {key}: {e}")
            return False


class CacheProvider(Provider):
    """
    Provider for the Redis-backed cache service.
    """

    component = "cache"
    scope = Scope.APP

    @provide(scope=Scope.APP)
    async def provide_cache_service(
        self,
        settings: Annotated[Settings, FromComponent("environment")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> AsyncIterable[CacheService]:
        """
        Provide cache service, connecting to Redis when caching is enabled.

        Parameters
        ----------
        settings : Settings
            Application settings
        logger : logging.Logger
            Logger instance

        Yields
        ------
        CacheService
            Cache service instance

        Raises
        ------
        ConnectionError
            If caching is enabled but Redis does not answer
        """
        if not settings.cache_enabled:
            yield CacheService(None, logger)
            return

        redis_client = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password if settings.redis_password else None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )

        try:
            try:
                await redis_client.ping()
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Redis: {e}") from e
            yield CacheService(redis_client, logger)
        finally:
            await redis_client.aclose()
