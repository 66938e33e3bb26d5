from .auth_service import AuthService
from .customer_service import CustomerDirectory
from .product_service import ProductStore
from .revenue_service import RevenueAggregator
from .order_service import OrderLedger
from .query_service import QueryFacade
from .reporting_service import ReportingService

__all__ = [
    "AuthService",
    "CustomerDirectory",
    "ProductStore",
    "RevenueAggregator",
    "OrderLedger",
    "QueryFacade",
    "ReportingService",
]
