from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable

from ils.config import Settings
from ils.repositories.sqlite_repo import SqliteRepository
from ils.repositories.unit_of_work import SqliteUnitOfWork
from ils.services.auth_service import AuthService
from ils.services.customer_service import CustomerDirectory
from ils.services.order_service import OrderLedger
from ils.services.product_service import ProductStore
from ils.services.query_service import QueryFacade
from ils.services.reporting_service import ReportingService
from ils.services.revenue_service import RevenueAggregator


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    auth: AuthService
    customers: CustomerDirectory
    products: ProductStore
    revenue: RevenueAggregator
    orders: OrderLedger
    queries: QueryFacade
    reporting: ReportingService


def build_container(
    db_path: Path | str,
    settings: Settings | None = None,
    today: Callable[[], date] = date.today,
) -> AppContainer:
    settings = settings or Settings()
    repo = SqliteRepository(db_path, timeout=settings.busy_timeout_seconds)
    repo.init_db()

    def uow_factory() -> SqliteUnitOfWork:
        return SqliteUnitOfWork(repo)

    auth = AuthService()
    customers = CustomerDirectory(repo)
    products = ProductStore(repo, auth, uow_factory, today=today)
    revenue = RevenueAggregator(repo, auth, uow_factory)
    orders = OrderLedger(repo, auth, products, customers, revenue, uow_factory, today=today)
    queries = QueryFacade(repo, settings)
    reporting = ReportingService(repo, auth)

    return AppContainer(
        repo=repo,
        auth=auth,
        customers=customers,
        products=products,
        revenue=revenue,
        orders=orders,
        queries=queries,
        reporting=reporting,
    )
