from enum import StrEnum
from functools import lru_cache

from rentory.core.settings.base import Settings as BaseSettings
from rentory.core.settings.local import Settings as LocalSettings
from rentory.core.settings.production import Settings as ProductionSettings
from rentory.core.settings.staging import Settings as StagingSettings


class Environment(StrEnum):
    LOCAL = "local"
    STAGING = "staging"
    PRODUCTION = "production"


@lru_cache
def _get_settings() -> BaseSettings:
    """
    Returns the appropriate settings based on the ENVIRONMENT variable.

    Returns:
        BaseSettings: The settings for the current environment

    Raises:
        ValueError: If an invalid environment is specified
    """

    environment = Environment(BaseSettings().ENVIRONMENT.lower())  # type: ignore

    settings_map = {
        Environment.LOCAL: LocalSettings,
        Environment.STAGING: StagingSettings,
        Environment.PRODUCTION: ProductionSettings,
    }

    if environment not in settings_map:
        raise ValueError(
            f"Invalid environment: {environment.value}. "
            f"Must be one of {', '.join(env.value for env in Environment)}"
        )

    return settings_map[environment]()  # type: ignore


settings = _get_settings()


def get_settings() -> BaseSettings:
    """Return the cached settings for the current environment."""
    return _get_settings()


def reload_settings() -> BaseSettings:
    """
    Drop the cached settings and read the environment again.

    The module level ``settings`` object is left untouched; callers that need
    the refreshed values should use the returned instance.
    """
    _get_settings.cache_clear()
    return _get_settings()
