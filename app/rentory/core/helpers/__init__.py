from .schema import optional  # noqa: F401
