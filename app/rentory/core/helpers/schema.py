from typing import Annotated, Any, Optional, TypeVar, overload

from pydantic import BaseModel, Field, create_model

ModelT = TypeVar("ModelT", bound=type[BaseModel])


def _make_optional(model: ModelT, names: tuple[str, ...]) -> ModelT:
    overrides: dict[str, Any] = {}

    for name, field in model.model_fields.items():
        if names and name not in names:
            continue

        annotation: Any = field.annotation
        if field.metadata:
            annotation = Annotated[annotation, *field.metadata]
        annotation = Optional[annotation]

        overrides[name] = (annotation, Field(default=None, description=field.description, alias=field.alias))

    return create_model(  # type: ignore[call-overload]
        model.__name__,
        __base__=model,
        __module__=model.__module__,
        __doc__=model.__doc__,
        **overrides,
    )


@overload
def optional(model: ModelT) -> ModelT: ...


@overload
def optional(*names: str) -> Any: ...


def optional(*args: Any) -> Any:
    """
    Make the fields of a pydantic model optional, defaulting to None.

    Validation constraints are kept, so a partial update still rejects e.g. a
    negative quantity. Used for update schemas where only the fields sent by
    the caller (``model_dump(exclude_unset=True)``) are applied.

    Usage:
        @optional
        class ProductUpdate(ProductBase): ...

        @optional("observation", "physical_condition")
        class InstanceUpdate(InstanceBase): ...
    """
    if len(args) == 1 and isinstance(args[0], type) and issubclass(args[0], BaseModel):
        return _make_optional(args[0], ())

    def decorator(model: ModelT) -> ModelT:
        return _make_optional(model, tuple(args))

    return decorator
