from fastapi import status

from .base import NotFoundError, ServiceError


class UnknownProductError(NotFoundError):
    """
    This error is raised when a product id or code does not match any product.
    """

    type_ = "unknown_product"
    title = "Unknown Product"
    detail = "The requested product does not exist"


class DuplicateProductCodeError(ServiceError):
    """
    This error is raised when a product is created with a code already in use.
    """

    type_ = "duplicate_product_code"
    title = "Duplicate Product Code"
    detail = "A product with the provided code already exists"
    status = status.HTTP_409_CONFLICT


class ProductTypeChangeError(ServiceError):
    """
    This error is raised when an update tries to change the type of a product.
    The type of a product is fixed at creation.
    """

    type_ = "product_type_change"
    title = "Product Type Change"
    detail = "The type of a product cannot be changed after creation"


class UnsupportedForProductTypeError(ServiceError):
    """
    This error is raised when an operation is called on a product of the wrong
    type (e.g. counter operations on a serialized product).
    """

    type_ = "unsupported_for_product_type"
    title = "Unsupported For Product Type"
    detail = "This operation is not supported for the type of this product"


class NegativeStockError(ServiceError):
    """
    This error is raised when a counter operation would bring the available
    quantity of a pooled product below zero.
    """

    type_ = "negative_stock"
    title = "Negative Stock"
    detail = "The available quantity cannot become negative"
    status = status.HTTP_409_CONFLICT
