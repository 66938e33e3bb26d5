from datetime import date
from decimal import Decimal
from pathlib import Path

from conftest import ADMIN, build, seed_basics


class Clock:
    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


def test_recompute_month_is_idempotent(tmp_path: Path):
    app = build(tmp_path)
    cid, p = seed_basics(app, stock=20, price="1.25")
    app.orders.place_order(ADMIN, cid, p.id, 4, "paid")

    first = app.revenue.recompute_month(date(2024, 3, 1))
    second = app.revenue.recompute_month(date(2024, 3, 31))

    assert first == second
    assert second.month == "2024-03"
    assert second.revenue == Decimal("5.00")
    assert app.revenue.list_revenue() == [second]


def test_revenue_sums_paid_orders_per_month(tmp_path: Path):
    clock = Clock(date(2024, 1, 20))
    app = build(tmp_path, today=clock)
    cid, p = seed_basics(app, stock=100, price="3.00")

    app.orders.place_order(ADMIN, cid, p.id, 2, "paid")
    app.orders.place_order(ADMIN, cid, p.id, 5, "pending")
    app.orders.place_order(ADMIN, cid, p.id, 1, "paid")
    clock.today = date(2024, 2, 3)
    app.orders.place_order(ADMIN, cid, p.id, 10, "paid")

    months = {m.month: m.revenue for m in app.revenue.list_revenue()}
    assert months == {"2024-01": Decimal("9.00"), "2024-02": Decimal("30.00")}


def test_paying_a_pending_order_adds_it_to_its_own_month(tmp_path: Path):
    clock = Clock(date(2024, 1, 31))
    app = build(tmp_path, today=clock)
    cid, p = seed_basics(app, stock=10, price="2.00")

    order = app.orders.place_order(ADMIN, cid, p.id, 3, "pending")
    clock.today = date(2024, 2, 1)
    app.orders.update_order(ADMIN, order.id, cid, p.id, 3, "paid")

    assert app.revenue.get_month(date(2024, 1, 1)).revenue == Decimal("6.00")
    assert app.revenue.get_month(date(2024, 2, 1)) is None


def test_rebuild_all_covers_every_month_with_orders(tmp_path: Path):
    clock = Clock(date(2023, 12, 5))
    app = build(tmp_path, today=clock)
    cid, p = seed_basics(app, stock=10, price="2.00")

    dec = app.orders.place_order(ADMIN, cid, p.id, 1, "paid")
    clock.today = date(2024, 1, 5)
    app.orders.place_order(ADMIN, cid, p.id, 2, "paid")
    app.orders.delete_order(ADMIN, dec.id)

    rebuilt = app.revenue.rebuild_all(ADMIN)

    assert [(m.month, m.revenue) for m in rebuilt] == [
        ("2023-12", Decimal("0.00")),
        ("2024-01", Decimal("4.00")),
    ]
