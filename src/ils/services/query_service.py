from __future__ import annotations

import math

from ils.config import Settings
from ils.domain.errors import ValidationError
from ils.domain.models import (
    BestSeller,
    CardData,
    CustomerSummary,
    MonthlyRevenue,
    OrderRow,
    Product,
)


class QueryFacade:
    """Read projections for the dashboard pages.

    Search is a case-insensitive substring match; pages start at 1.
    """

    def __init__(self, repo, settings: Settings | None = None):
        self.repo = repo
        self.settings = settings or Settings()

    def _offset(self, page: int) -> int:
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationError("Page must be >= 1.")
        return (page - 1) * self.settings.items_per_page

    def _pages(self, count: int) -> int:
        return math.ceil(count / self.settings.items_per_page)

    def filtered_orders(self, query: str = "", page: int = 1) -> list[OrderRow]:
        return self.repo.search_orders((query or "").strip(), self.settings.items_per_page, self._offset(page))

    def orders_pages(self, query: str = "") -> int:
        return self._pages(self.repo.count_orders((query or "").strip()))

    def filtered_products(self, query: str = "", page: int = 1) -> list[Product]:
        return self.repo.search_products((query or "").strip(), self.settings.items_per_page, self._offset(page))

    def products_pages(self, query: str = "") -> int:
        return self._pages(self.repo.count_products((query or "").strip()))

    def filtered_customers(self, query: str = "", page: int = 1) -> list[CustomerSummary]:
        return self.repo.search_customers((query or "").strip(), self.settings.items_per_page, self._offset(page))

    def customers_pages(self, query: str = "") -> int:
        return self._pages(self.repo.count_customers((query or "").strip()))

    def latest_orders(self, limit: int | None = None) -> list[OrderRow]:
        return self.repo.search_orders("", limit or self.settings.latest_orders_limit, 0)

    def best_selling_products(self, limit: int | None = None) -> list[BestSeller]:
        return self.repo.best_selling_products(limit or self.settings.best_selling_limit)

    def card_data(self) -> CardData:
        return self.repo.card_totals()

    def revenue(self) -> list[MonthlyRevenue]:
        return self.repo.list_revenue()
