from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from ils.domain.models import Actor, MonthlyRevenue, month_key
from ils.domain.money import from_cents
from ils.repositories.unit_of_work import SqliteUnitOfWork, UnitOfWork, join_or_begin

log = logging.getLogger("ils.orders")


class RevenueAggregator:
    """Monthly rollup of paid order amounts.

    The stored total is always recomputed from the orders table rather than
    incremented, so calling ``recompute_month`` again is harmless.
    """

    def __init__(self, repo, auth, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.repo = repo
        self.auth = auth
        self.uow_factory = uow_factory or (lambda: SqliteUnitOfWork(repo))

    def recompute_month(self, day: date, uow: UnitOfWork | None = None) -> MonthlyRevenue:
        month = month_key(day)
        with join_or_begin(self.uow_factory, uow) as u:
            total = self.repo.paid_total_for_month(u.cur, month)
            self.repo.upsert_revenue(u.cur, month, total)
        return MonthlyRevenue(month=month, revenue=from_cents(total))

    def get_month(self, day: date) -> Optional[MonthlyRevenue]:
        return self.repo.get_revenue(month_key(day))

    def list_revenue(self) -> list[MonthlyRevenue]:
        return self.repo.list_revenue()

    def rebuild_all(self, actor: Optional[Actor]) -> list[MonthlyRevenue]:
        """Recompute every month that has orders or a stored total.

        Deleting an order never touches the rollup; this is the explicit way
        to bring stale months back in line.
        """
        self.auth.require_action(actor, "rebuild_revenue")
        out: list[MonthlyRevenue] = []
        with self.uow_factory() as uow:
            for month in self.repo.revenue_months(uow.cur):
                total = self.repo.paid_total_for_month(uow.cur, month)
                self.repo.upsert_revenue(uow.cur, month, total)
                out.append(MonthlyRevenue(month=month, revenue=from_cents(total)))
        log.info("revenue_rebuilt months=%s", len(out))
        return out
