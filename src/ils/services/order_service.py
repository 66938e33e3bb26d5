from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from ils.domain.errors import (
    InsufficientStockError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from ils.domain.models import ORDER_STATUSES, PAID, Actor, Order, Product
from ils.repositories.unit_of_work import SqliteUnitOfWork, UnitOfWork

log = logging.getLogger("ils.orders")
stock_log = logging.getLogger("ils.stock")


def _check_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be a whole number.")
    if quantity <= 0:
        raise ValidationError("Quantity must be >= 1.")
    return quantity


def _check_status(status: str) -> str:
    if status not in ORDER_STATUSES:
        raise ValidationError("Please select an order status.")
    return status


class OrderLedger:
    """Places, edits and removes orders while keeping stock and revenue in step.

    Every public mutation is one unit of work: the stock check, the amount,
    the order row, the stock change and the revenue rollup commit together or
    not at all. Amount is always ``quantity * current price``.
    """

    def __init__(
        self,
        repo,
        auth,
        products,
        customers,
        revenue,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.repo = repo
        self.auth = auth
        self.products = products
        self.customers = customers
        self.revenue = revenue
        self.uow_factory = uow_factory or (lambda: SqliteUnitOfWork(repo))
        self.today = today

    def get_order(self, order_id: str) -> Order:
        order = self.repo.get_order(str(order_id))
        if not order:
            raise NotFoundError("Order not found.")
        return order

    def _require_customer(self, uow: UnitOfWork, customer_id: str) -> None:
        if not self.customers.exists(str(customer_id), cur=uow.cur):
            raise InvalidReferenceError(f"Customer {customer_id} does not exist.")

    def _require_product(self, uow: UnitOfWork, product_id: str) -> Product:
        product = self.repo.get_product(str(product_id), cur=uow.cur)
        if not product:
            raise InvalidReferenceError(f"Product {product_id} does not exist.")
        return product

    @staticmethod
    def _log_stock(product: Product, delta: int, order_id: str) -> None:
        stock_log.info(
            "stock_adjusted product_id=%s delta=%s stock_after=%s order_id=%s",
            product.id, delta, product.stock, order_id,
        )

    @staticmethod
    def _check_stock(product: Product, quantity: int) -> None:
        if quantity > product.stock:
            raise InsufficientStockError(
                f"Not enough stock for {product.name}. Available: {product.stock}, requested: {quantity}"
            )

    def place_order(
        self,
        actor: Optional[Actor],
        customer_id: str,
        product_id: str,
        quantity: int,
        status: str,
    ) -> Order:
        self.auth.require_action(actor, "place_order")
        quantity = _check_quantity(quantity)
        status = _check_status(status)

        try:
            with self.uow_factory() as uow:
                self._require_customer(uow, customer_id)
                product = self._require_product(uow, product_id)
                self._check_stock(product, quantity)

                order = Order(
                    id=str(uuid.uuid4()),
                    customer_id=str(customer_id),
                    product_id=product.id,
                    quantity=quantity,
                    amount=product.price * quantity,
                    date=self.today(),
                    status=status,
                )
                self.repo.insert_order(uow.cur, order)
                taken = self.products.update_stock(actor, product.id, -quantity, uow=uow)
                if status == PAID:
                    self.revenue.recompute_month(order.date, uow=uow)
        except InsufficientStockError as e:
            log.warning("order_rejected product_id=%s qty=%s reason=%s", product_id, quantity, e)
            raise

        self._log_stock(taken, -quantity, order.id)
        log.info(
            "order_placed order_id=%s product_id=%s qty=%s amount=%s status=%s",
            order.id, order.product_id, quantity, order.amount, status,
            extra={"actor": actor.name},
        )
        return order

    def update_order(
        self,
        actor: Optional[Actor],
        order_id: str,
        customer_id: str,
        product_id: str,
        quantity: int,
        status: str,
    ) -> Order:
        """Replace an order's customer, product, quantity and status.

        The old quantity goes back to the old product first, then the new
        quantity is checked against and taken from the new product (which may
        be the same one). A failure anywhere undoes the give-back too.
        """
        self.auth.require_action(actor, "edit_order")
        quantity = _check_quantity(quantity)
        status = _check_status(status)

        try:
            with self.uow_factory() as uow:
                existing = self.repo.get_order(str(order_id), cur=uow.cur)
                if not existing:
                    raise NotFoundError("Order not found.")

                restored = self.products.update_stock(actor, existing.product_id, existing.quantity, uow=uow)

                self._require_customer(uow, customer_id)
                product = self._require_product(uow, product_id)
                self._check_stock(product, quantity)

                updated = replace(
                    existing,
                    customer_id=str(customer_id),
                    product_id=product.id,
                    quantity=quantity,
                    amount=product.price * quantity,
                    status=status,
                )
                self.repo.update_order(uow.cur, updated)
                taken = self.products.update_stock(actor, product.id, -quantity, uow=uow)
                if status == PAID:
                    self.revenue.recompute_month(updated.date, uow=uow)
        except InsufficientStockError as e:
            log.warning("order_update_rejected order_id=%s qty=%s reason=%s", order_id, quantity, e)
            raise

        if restored.id == taken.id:
            self._log_stock(taken, existing.quantity - quantity, updated.id)
        else:
            self._log_stock(restored, existing.quantity, updated.id)
            self._log_stock(taken, -quantity, updated.id)
        log.info(
            "order_updated order_id=%s product_id=%s qty=%s->%s amount=%s status=%s",
            updated.id, updated.product_id, existing.quantity, quantity, updated.amount, status,
            extra={"actor": actor.name},
        )
        return updated

    def delete_order(self, actor: Optional[Actor], order_id: str) -> None:
        """Remove an order and return its quantity to stock.

        The revenue rollup is left as is, even for paid orders; see
        ``RevenueAggregator.rebuild_all``.
        """
        self.auth.require_action(actor, "delete_order")
        with self.uow_factory() as uow:
            existing = self.repo.get_order(str(order_id), cur=uow.cur)
            if not existing:
                raise NotFoundError("Order not found.")
            restored = self.products.update_stock(actor, existing.product_id, existing.quantity, uow=uow)
            self.repo.delete_order(uow.cur, existing.id)

        self._log_stock(restored, existing.quantity, existing.id)

        log.info(
            "order_deleted order_id=%s product_id=%s qty=%s status=%s",
            existing.id, existing.product_id, existing.quantity, existing.status,
            extra={"actor": actor.name},
        )
