from dishka import AsyncContainer, Provider, make_async_container

from core.environment.providers import EnvironmentProvider
from core.logging.providers import LoggerProvider
from core.redis.providers import CacheProvider
from migration.providers import LedgerProvider, MigrationProvider


def create_container(
    *extra_providers: Provider,
    environment: EnvironmentProvider | None = None
) -> AsyncContainer:
    """
    Build the application container.

    Parameters
    ----------
    *extra_providers : Provider
        Surface-specific providers (e.g. the FastAPI request provider)
    environment : EnvironmentProvider | None
        Environment provider carrying setting overrides

    Returns
    -------
    AsyncContainer
        Dishka container
    """
    return make_async_container(
        *extra_providers,
        environment or EnvironmentProvider(),
        LoggerProvider(),
        CacheProvider(),
        LedgerProvider(),
        MigrationProvider()
    )
