from decimal import Decimal
from pathlib import Path

import pytest

from conftest import ADMIN, TODAY, build, seed_basics

from ils.domain.errors import (
    InsufficientStockError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)


def test_paid_order_decrements_stock_and_rolls_up_revenue(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10, price="2.00")

    order = app.orders.place_order(ADMIN, cid, p1.id, 4, "paid")

    assert order.amount == Decimal("8.00")
    assert order.date == TODAY
    after = app.products.get_by_id(p1.id)
    assert after.stock == 6
    assert after.status == "in-stock"
    assert app.revenue.get_month(TODAY).revenue == Decimal("8.00")


def test_order_over_stock_is_rejected_without_side_effects(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=3)

    with pytest.raises(InsufficientStockError):
        app.orders.place_order(ADMIN, cid, p1.id, 5, "pending")

    assert app.products.get_by_id(p1.id).stock == 3
    assert app.queries.card_data().number_of_orders == 0


def test_order_for_whole_stock_marks_product_out_of_stock(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10)

    app.orders.place_order(ADMIN, cid, p1.id, 10, "paid")

    after = app.products.get_by_id(p1.id)
    assert after.stock == 0
    assert after.status == "out-of-stock"


def test_pending_order_does_not_touch_revenue(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app)

    app.orders.place_order(ADMIN, cid, p1.id, 2, "pending")

    assert app.revenue.get_month(TODAY) is None


def test_unknown_customer_or_product_is_invalid_reference(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app)

    with pytest.raises(InvalidReferenceError):
        app.orders.place_order(ADMIN, "no-such-customer", p1.id, 1, "paid")
    with pytest.raises(InvalidReferenceError):
        app.orders.place_order(ADMIN, cid, "no-such-product", 1, "paid")

    assert app.products.get_by_id(p1.id).stock == 10


@pytest.mark.parametrize("quantity", [0, -3, 1.5, True])
def test_quantity_must_be_positive_whole_number(tmp_path: Path, quantity):
    app = build(tmp_path)
    cid, p1 = seed_basics(app)

    with pytest.raises(ValidationError):
        app.orders.place_order(ADMIN, cid, p1.id, quantity, "paid")


def test_status_must_be_pending_or_paid(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app)

    with pytest.raises(ValidationError, match="order status"):
        app.orders.place_order(ADMIN, cid, p1.id, 1, "shipped")


def test_amount_uses_price_at_time_of_placement(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10, price="2.00")

    first = app.orders.place_order(ADMIN, cid, p1.id, 3, "pending")
    app.products.set_fields(ADMIN, p1.id, price=Decimal("2.50"))
    second = app.orders.place_order(ADMIN, cid, p1.id, 3, "pending")

    assert first.amount == Decimal("6.00")
    assert second.amount == Decimal("7.50")
    assert app.orders.get_order(first.id).amount == Decimal("6.00")


def test_delete_restores_stock(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10)

    order = app.orders.place_order(ADMIN, cid, p1.id, 7, "pending")
    app.orders.delete_order(ADMIN, order.id)

    assert app.products.get_by_id(p1.id).stock == 10
    assert app.products.get_by_id(p1.id).status == "in-stock"
    with pytest.raises(NotFoundError):
        app.orders.get_order(order.id)


def test_delete_of_paid_order_keeps_revenue_until_rebuilt(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10)

    order = app.orders.place_order(ADMIN, cid, p1.id, 4, "paid")
    app.orders.delete_order(ADMIN, order.id)

    assert app.revenue.get_month(TODAY).revenue == Decimal("8.00")

    app.revenue.rebuild_all(ADMIN)
    assert app.revenue.get_month(TODAY).revenue == Decimal("0.00")


def test_delete_unknown_order_is_not_found(tmp_path: Path):
    app = build(tmp_path)
    seed_basics(app)

    with pytest.raises(NotFoundError):
        app.orders.delete_order(ADMIN, "missing")


def test_update_reverts_old_quantity_before_applying_new_one(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10, price="2.00")

    order = app.orders.place_order(ADMIN, cid, p1.id, 4, "pending")
    assert app.products.get_by_id(p1.id).stock == 6

    updated = app.orders.update_order(ADMIN, order.id, cid, p1.id, 2, "paid")

    assert app.products.get_by_id(p1.id).stock == 8
    assert updated.amount == Decimal("4.00")
    assert updated.date == order.date
    assert app.revenue.get_month(TODAY).revenue == Decimal("4.00")


def test_update_may_use_stock_freed_by_its_own_revert(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10)

    order = app.orders.place_order(ADMIN, cid, p1.id, 8, "pending")
    app.orders.update_order(ADMIN, order.id, cid, p1.id, 10, "pending")

    assert app.products.get_by_id(p1.id).stock == 0


def test_update_moving_to_another_product_restores_the_old_one(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10, price="2.00")
    p2 = app.products.create(ADMIN, "Cold Brew", "coffee", Decimal("5.25"), 4)

    order = app.orders.place_order(ADMIN, cid, p1.id, 3, "pending")
    updated = app.orders.update_order(ADMIN, order.id, cid, p2.id, 4, "pending")

    assert app.products.get_by_id(p1.id).stock == 10
    p2_after = app.products.get_by_id(p2.id)
    assert p2_after.stock == 0
    assert p2_after.status == "out-of-stock"
    assert updated.amount == Decimal("21.00")


def test_failed_update_leaves_stock_and_order_untouched(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app, stock=10)
    p2 = app.products.create(ADMIN, "Cold Brew", "coffee", Decimal("5.25"), 2)

    order = app.orders.place_order(ADMIN, cid, p1.id, 4, "pending")

    with pytest.raises(InsufficientStockError):
        app.orders.update_order(ADMIN, order.id, cid, p2.id, 3, "paid")

    assert app.products.get_by_id(p1.id).stock == 6
    assert app.products.get_by_id(p2.id).stock == 2
    assert app.orders.get_order(order.id) == order
    assert app.revenue.get_month(TODAY) is None


def test_update_unknown_order_is_not_found(tmp_path: Path):
    app = build(tmp_path)
    cid, p1 = seed_basics(app)

    with pytest.raises(NotFoundError):
        app.orders.update_order(ADMIN, "missing", cid, p1.id, 1, "paid")
