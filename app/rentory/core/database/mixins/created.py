from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel
from rentory.core.helpers.dates import utcnow


class CreatedDateTimeMixin(SQLModel):
    """
    Mixin that adds a creation timestamp column to a model.

    Attributes:\n
        created_datetime (datetime): The datetime when the record was created.
    """

    created_datetime: datetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=True),  # type: ignore[call-overload]
        nullable=False,
        index=True,
    )
