from rentory.core.database.mixins.created import CreatedDateTimeMixin
from rentory.core.database.mixins.updated import UpdatedDateTimeMixin


class TimestampMixin(CreatedDateTimeMixin, UpdatedDateTimeMixin):
    """
    Creation and last update datetimes of a catalog record (products,
    instances, reservation lines). Ledger rows only carry the creation
    datetime since they are never updated.
    """
