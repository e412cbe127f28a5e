"""
Service-layer error taxonomy.

Each error carries the HTTP status and a short ``kind`` that the errors
blueprint renders as the ``error`` field of the JSON envelope. Services only
classify; they never build responses.
"""


class ServiceError(Exception):
    status = 400
    kind = "service_error"

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_message)
        self.details = details

    default_message = "Request could not be completed"

    @property
    def message(self):
        return str(self)


class EmptyCartError(ServiceError):
    kind = "empty_cart"
    default_message = "cart is empty"


class InsufficientStockError(ServiceError):
    kind = "insufficient_stock"

    def __init__(self, product_id, product_name=None):
        self.product_id = product_id
        self.product_name = product_name
        label = product_name or product_id
        super().__init__(
            f"insufficient stock for product {label}",
            details={"product_id": product_id, "product_name": product_name},
        )


class MixedCurrencyError(ServiceError):
    kind = "mixed_currency"
    default_message = "cart contains products priced in different currencies"


class InvalidStatusError(ServiceError):
    kind = "invalid_status"
    default_message = "invalid order status"


class PaymentError(ServiceError):
    kind = "payment_failed"
    default_message = "payment processing failed"


class InvalidCredentialsError(ServiceError):
    status = 401
    kind = "invalid_credentials"
    default_message = "invalid email or password"


class NotFoundError(ServiceError):
    status = 404
    kind = "not_found"
    default_message = "not found"


class AuthorizationError(ServiceError):
    # Rendered like NotFoundError so a non-owner cannot probe for existence
    status = 404
    kind = "not_found"
    default_message = "not found"


class ConflictError(ServiceError):
    status = 409
    kind = "conflict"
    default_message = "resource already exists"


class PersistenceError(ServiceError):
    status = 500
    kind = "persistence_error"
    default_message = "storage operation failed"


__all__ = [
    "ServiceError",
    "EmptyCartError",
    "InsufficientStockError",
    "MixedCurrencyError",
    "InvalidStatusError",
    "PaymentError",
    "InvalidCredentialsError",
    "NotFoundError",
    "AuthorizationError",
    "ConflictError",
    "PersistenceError",
]
