from typing import Literal

from .base import Settings as BaseSettings


class Settings(BaseSettings):
    """Settings for development machines and the test suite."""

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
