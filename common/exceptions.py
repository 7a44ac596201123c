"""
Marketplace - Custom Exceptions
================================
Business-level exceptions that can be caught and converted to HTTP responses.
Each class carries the status code the boundary maps it to.
"""


class MarketplaceError(Exception):
    """Base exception for all business logic errors."""
    status_code = 400

    def __init__(self, message: str = "Internal error"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(MarketplaceError):
    """Raised when a requested resource doesn't exist."""
    status_code = 404


class InsufficientStockError(MarketplaceError):
    """Raised when the requested quantity exceeds available stock."""
    def __init__(self, product_name: str = ""):
        msg = f"Insufficient stock: {product_name}" if product_name else "Insufficient stock"
        super().__init__(msg)


class IdentityRequiredError(MarketplaceError):
    """Raised when neither a user id nor a session id is present."""
    def __init__(self):
        super().__init__("User or session identity is required")


class EmptyCartError(MarketplaceError):
    def __init__(self):
        super().__init__("Cart is empty")


class DuplicateError(MarketplaceError):
    """Raised for unique constraint violations at the business level."""
    pass


class ProductInUseError(MarketplaceError):
    """Raised when deleting a product that historical orders reference."""
    pass


class AuthenticationError(MarketplaceError):
    """Raised when authentication fails."""
    status_code = 401


class AuthorizationError(MarketplaceError):
    """Raised when user lacks permission."""
    status_code = 403


class ThrottledError(MarketplaceError):
    status_code = 429

    def __init__(self):
        super().__init__("Too many requests")


class TransactionFailedError(MarketplaceError):
    """Raised when a storage error aborts a multi-statement commit."""
    status_code = 500

    def __init__(self, message: str = "Transaction failed and was rolled back"):
        super().__init__(message)
