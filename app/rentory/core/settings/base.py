import warnings
from pathlib import Path
from typing import Literal, Self

from dotenv import load_dotenv
from pydantic import PostgresDsn, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    BASE_DIR: str = str(Path(__file__).resolve().parent.parent.parent.parent)

    APP_NAME: str = "Rentory"
    APP_DESCRIPTION: str = "Inventory core for event-equipment rental"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str

    # NOTE: When set, takes precedence over the POSTGRES_* settings.
    DATABASE_URL: str | None = None
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 0
    DATABASE_POOL_RECYCLE: int = 3600  # 1 hour
    DATABASE_ECHO: bool = False

    POOLED_CRITICAL_THRESHOLD: int = 5
    SERIALIZED_CRITICAL_THRESHOLD: int = 2
    MAINTENANCE_INTERVAL_MONTHS: int = 4
    PRODUCT_CODE_PREFIX: str = "PRD"
    SERIAL_NUMBER_PADDING: int = 4
    SERIAL_NUMBER_MAX_LENGTH: int = 50
    BULK_INSTANCE_MAX_COUNT: int = 500
    RECENT_MOVEMENTS_LIMIT: int = 50

    # Row level locks (SELECT ... FOR UPDATE) taken by the allocation engine
    ALLOCATION_ROW_LOCKING: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL

        return str(
            PostgresDsn.build(
                scheme="postgresql+psycopg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_HOST,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    def _check_default_secret(self, var_name: str, value: str | None) -> None:
        if value == "changethis":
            message = (
                f'The value of {var_name} is "changethis", ' "for security, please change it, at least for deployments."
            )
            if self.ENVIRONMENT in ["local", "staging"]:
                warnings.warn(message, stacklevel=1)
            else:
                raise ValueError(message)

    @model_validator(mode="after")
    def _enforce_non_default_secrets(self) -> Self:
        self._check_default_secret("POSTGRES_PASSWORD", self.POSTGRES_PASSWORD)

        return self

    @model_validator(mode="after")
    def _enforce_inventory_config(self) -> Self:
        if self.POOLED_CRITICAL_THRESHOLD < 0 or self.SERIALIZED_CRITICAL_THRESHOLD < 0:
            raise ValueError("Critical stock thresholds cannot be negative.")

        if self.MAINTENANCE_INTERVAL_MONTHS < 1:
            raise ValueError("MAINTENANCE_INTERVAL_MONTHS must be at least 1.")

        if not 1 <= self.SERIAL_NUMBER_PADDING <= 10:
            raise ValueError("SERIAL_NUMBER_PADDING must be between 1 and 10.")

        if self.BULK_INSTANCE_MAX_COUNT < 1:
            raise ValueError("BULK_INSTANCE_MAX_COUNT must be at least 1.")

        return self
