import inflection
from sqlalchemy.orm import declared_attr
from sqlmodel import Field, SQLModel
from rentory.core.types import GUID


class BaseIDMixin(SQLModel):
    """
    A base mixin for models with a primary key.\n

    Table names are the pluralized snake case of the class name
    (``StockMovement`` -> ``stock_movements``).
    """

    @declared_attr  # type: ignore
    def __tablename__(cls) -> str:  # type: ignore
        return inflection.pluralize(inflection.underscore(cls.__name__))


class GUIDMixin(BaseIDMixin):
    """
    A mixin for models with GUID primary keys.\n

    GUIDs follow the format: gid://rentory/{ResourceType}/{base64_encoded_id}
    and are assigned on construction, so a record's id is known before flush
    (ledger rows can reference an instance created in the same transaction).

    Attributes:\n
        id (GUID): The GUID primary key field.
    """

    id: GUID = Field(
        default=None,
        primary_key=True,
        index=True,
        nullable=False,
    )

    def __init__(self, **data):
        if data.get("id") is None:
            data["id"] = GUID.encode_guid(resource_type=type(self).__name__)
        super().__init__(**data)
