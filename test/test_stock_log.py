import logging
from pathlib import Path

import pytest

from conftest import ADMIN, build, seed_basics

from ils.domain.errors import InsufficientStockError


def _stock_lines(caplog):
    return [r.getMessage() for r in caplog.records if r.name == "ils.stock" and r.getMessage().startswith("stock_adjusted")]


def test_direct_adjustment_is_logged(tmp_path: Path, caplog):
    app = build(tmp_path)
    _, p = seed_basics(app, stock=5)

    with caplog.at_level(logging.INFO, logger="ils.stock"):
        app.products.update_stock(ADMIN, p.id, 3)

    lines = _stock_lines(caplog)
    assert len(lines) == 1
    assert "delta=3 stock_after=8" in lines[0]


def test_rolled_back_update_leaves_no_stock_entry(tmp_path: Path, caplog):
    app = build(tmp_path)
    cid, p = seed_basics(app, stock=5)
    order = app.orders.place_order(ADMIN, cid, p.id, 4, "pending")

    with caplog.at_level(logging.INFO, logger="ils.stock"):
        with pytest.raises(InsufficientStockError):
            app.orders.update_order(ADMIN, order.id, cid, p.id, 10, "pending")

    assert _stock_lines(caplog) == []
    assert app.products.get_by_id(p.id).stock == 1


def test_order_update_logs_net_change_once(tmp_path: Path, caplog):
    app = build(tmp_path)
    cid, p = seed_basics(app, stock=10)
    order = app.orders.place_order(ADMIN, cid, p.id, 4, "pending")

    with caplog.at_level(logging.INFO, logger="ils.stock"):
        app.orders.update_order(ADMIN, order.id, cid, p.id, 2, "pending")

    lines = _stock_lines(caplog)
    assert len(lines) == 1
    assert "delta=2 stock_after=8" in lines[0]
    assert f"order_id={order.id}" in lines[0]
