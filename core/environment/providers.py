from typing import Any
from dishka import Provider, Scope, provide
from core.environment.config import Settings


class EnvironmentProvider(Provider):
    """
    Provider for environment configuration.

    Parameters
    ----------
    **overrides : Any
        Values taking precedence over the environment (e.g. CLI flags)
    """

    component = "environment"
    scope = Scope.APP

    def __init__(self, **overrides: Any):
        super().__init__()
        self.overrides = {k: v for k, v in overrides.items() if v is not None}

    @provide
    def get_environment(self) -> Settings:
        """
        Provide application settings.

        Returns
        -------
        Settings
            Application settings instance
        """
        return Settings(**self.overrides)
