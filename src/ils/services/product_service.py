from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from ils.domain.errors import NotFoundError, StockUnderflowError, ValidationError
from ils.domain.models import CATEGORIES, NON_PERISHABLE_CATEGORIES, Actor, Product, stock_status
from ils.domain.money import to_decimal
from ils.repositories.unit_of_work import SqliteUnitOfWork, UnitOfWork, join_or_begin

log = logging.getLogger("ils.stock")

_KEEP = object()


def _check_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Please input a name")
    return name


def _check_category(category: str) -> str:
    if category not in CATEGORIES:
        raise ValidationError("Please select a category")
    return category


def _check_price(price: object) -> Decimal:
    amount = to_decimal(price, "Price")
    if amount <= 0:
        raise ValidationError("Price must be > 0.")
    return amount


def _check_stock(stock: object) -> int:
    if isinstance(stock, bool) or not isinstance(stock, int):
        raise ValidationError("Stock must be a whole number.")
    if stock < 0:
        raise ValidationError("Stock must be >= 0.")
    return stock


class ProductStore:
    def __init__(
        self,
        repo,
        auth,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.repo = repo
        self.auth = auth
        self.uow_factory = uow_factory or (lambda: SqliteUnitOfWork(repo))
        self.today = today

    def _check_expiry(self, category: str, expiry: Optional[date]) -> Optional[date]:
        if expiry is None:
            return None
        if not isinstance(expiry, date):
            raise ValidationError("Expiry must be a date.")
        if category in NON_PERISHABLE_CATEGORIES:
            raise ValidationError(f"Products in '{category}' do not expire.")
        if expiry <= self.today():
            raise ValidationError("Expiry date must be in the future")
        return expiry

    def list_products(self) -> list[Product]:
        return self.repo.list_products()

    def get_by_id(self, product_id: str) -> Product:
        p = self.repo.get_product(str(product_id))
        if not p:
            raise NotFoundError("Product not found.")
        return p

    def create(
        self,
        actor: Optional[Actor],
        name: str,
        category: str,
        price: object,
        stock: int,
        expiry: Optional[date] = None,
    ) -> Product:
        self.auth.require_action(actor, "create_product")
        category = _check_category(category)
        stock = _check_stock(stock)
        product = Product(
            id=str(uuid.uuid4()),
            name=_check_name(name),
            category=category,
            price=_check_price(price),
            stock=stock,
            expiry=self._check_expiry(category, expiry),
            status=stock_status(stock),
        )
        with self.uow_factory() as uow:
            self.repo.insert_product(uow.cur, product)
        log.info("product_created product_id=%s category=%s stock=%s", product.id, category, stock)
        return product

    def update_stock(
        self,
        actor: Optional[Actor],
        product_id: str,
        delta: int,
        uow: UnitOfWork | None = None,
    ) -> Product:
        """Add ``delta`` (may be negative) to stock and re-derive status.

        Fails instead of clamping when the result would drop below zero. Pass
        ``uow`` to make the change part of a larger transaction; the caller
        then owns the log line, written once its transaction commits.
        """
        self.auth.require_action(actor, "adjust_stock")
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError("Stock delta must be a whole number.")

        with join_or_begin(self.uow_factory, uow) as u:
            new_stock = self.repo.apply_stock_delta(u.cur, str(product_id), delta)
            if new_stock is None:
                current = self.repo.get_product(str(product_id), cur=u.cur)
                if not current:
                    raise NotFoundError("Product not found.")
                raise StockUnderflowError(
                    f"Stock for {current.name} can not go below zero. Available: {current.stock}, change: {delta}"
                )
            product = self.repo.get_product(str(product_id), cur=u.cur)
        if uow is None:
            log.info("stock_adjusted product_id=%s delta=%s stock_after=%s", product_id, delta, new_stock)
        return product

    def set_fields(
        self,
        actor: Optional[Actor],
        product_id: str,
        *,
        name: object = _KEEP,
        category: object = _KEEP,
        price: object = _KEEP,
        stock: object = _KEEP,
        expiry: object = _KEEP,
    ) -> Product:
        """Edit any subset of fields. ``expiry=None`` clears the expiry."""
        self.auth.require_action(actor, "edit_product")
        with self.uow_factory() as uow:
            current = self.repo.get_product(str(product_id), cur=uow.cur)
            if not current:
                raise NotFoundError("Product not found.")

            new_category = current.category if category is _KEEP else _check_category(category)
            new_stock = current.stock if stock is _KEEP else _check_stock(stock)
            if expiry is _KEEP:
                new_expiry = current.expiry
                if new_expiry is not None and new_category in NON_PERISHABLE_CATEGORIES:
                    raise ValidationError(f"Products in '{new_category}' do not expire.")
            elif expiry == current.expiry and new_category not in NON_PERISHABLE_CATEGORIES:
                new_expiry = current.expiry
            else:
                new_expiry = self._check_expiry(new_category, expiry)

            updated = replace(
                current,
                name=current.name if name is _KEEP else _check_name(name),
                category=new_category,
                price=current.price if price is _KEEP else _check_price(price),
                stock=new_stock,
                expiry=new_expiry,
                status=stock_status(new_stock),
            )
            self.repo.update_product(uow.cur, updated)
        log.info("product_updated product_id=%s stock=%s status=%s", updated.id, updated.stock, updated.status)
        return updated

    def delete(self, actor: Optional[Actor], product_id: str) -> None:
        self.auth.require_action(actor, "delete_product")
        with self.uow_factory() as uow:
            if not self.repo.get_product(str(product_id), cur=uow.cur):
                raise NotFoundError("Product not found.")
            if self.repo.count_orders_for_product(uow.cur, str(product_id)) > 0:
                raise ValidationError("Can not delete a product that has orders.")
            self.repo.delete_product(uow.cur, str(product_id))
        log.info("product_deleted product_id=%s", product_id)
