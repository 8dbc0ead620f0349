from typing import Literal

from .base import Settings as BaseSettings


class Settings(BaseSettings):
    """Settings for the staging deployment, running against a copy of the catalog with a smaller pool."""

    ENVIRONMENT: Literal["local", "staging", "production"] = "staging"

    DATABASE_POOL_SIZE: int = 5
