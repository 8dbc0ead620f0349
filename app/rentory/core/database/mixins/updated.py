from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel
from rentory.core.helpers.dates import utcnow


class UpdatedDateTimeMixin(SQLModel):
    """
    Mixin that adds a last-update timestamp column to a model.

    The value is set from Python on every UPDATE so it never needs to be
    reloaded from the database after a flush.

    Attributes:\n
        updated_datetime (datetime | None): The datetime when the record was last updated.
    """

    updated_datetime: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[call-overload]
        sa_column_kwargs={"onupdate": utcnow},
        nullable=True,
    )
