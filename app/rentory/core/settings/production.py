from typing import Literal, Self

from pydantic import model_validator

from .base import Settings as BaseSettings


class Settings(BaseSettings):
    """Settings to use in a production environment."""

    ENVIRONMENT: Literal["local", "staging", "production"] = "production"

    @model_validator(mode="after")
    def _enforce_allocation_safety(self) -> Self:
        # NOTE: without row locks two concurrent allocations can oversubscribe a product
        if not self.ALLOCATION_ROW_LOCKING:
            raise ValueError("ALLOCATION_ROW_LOCKING cannot be disabled in production.")

        if self.DATABASE_URL and self.DATABASE_URL.startswith("sqlite"):
            raise ValueError("SQLite does not support row level locks, use PostgreSQL in production.")

        if self.POSTGRES_PASSWORD == "changethis":
            raise ValueError('The value of POSTGRES_PASSWORD is "changethis", change it before deploying.')

        return self
