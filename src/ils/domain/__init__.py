from .models import Actor, Customer, MonthlyRevenue, Order, Product
from .errors import (
    AuthorizationError,
    InsufficientStockError,
    InvalidReferenceError,
    NotFoundError,
    StockUnderflowError,
    StorageError,
    ValidationError,
)

__all__ = [
    "Actor",
    "Customer",
    "MonthlyRevenue",
    "Order",
    "Product",
    "AuthorizationError",
    "InsufficientStockError",
    "InvalidReferenceError",
    "NotFoundError",
    "StockUnderflowError",
    "StorageError",
    "ValidationError",
]
