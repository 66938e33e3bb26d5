"""Turn raw form input into typed values or per-field error lists.

The presentation layer posts strings; the services want ``Decimal``, ``int``
and ``date``. Each parser collects every field error instead of stopping at
the first one, so a form can show them all at once.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional

from ils.domain.errors import ValidationError
from ils.domain.models import CATEGORIES, ORDER_STATUSES
from ils.domain.money import to_decimal


@dataclass
class FormResult:
    values: Optional[dict[str, Any]] = None
    errors: dict[str, list[str]] = field(default_factory=dict)
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors


def _text(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    return "" if value is None else str(value).strip()


def _positive_money(text: str) -> Decimal | None:
    try:
        amount = to_decimal(text, "Price")
    except ValidationError:
        return None
    return amount if amount > 0 else None


def _whole_number(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


def _finish(values: dict[str, Any], errors: dict[str, list[str]], what: str) -> FormResult:
    if errors:
        return FormResult(errors=errors, message=f"Missing Fields. Failed to {what}.")
    return FormResult(values=values)


def parse_product_form(raw: Mapping[str, Any], today: date | None = None, what: str = "Create Product") -> FormResult:
    today = today or date.today()
    errors: dict[str, list[str]] = {}
    values: dict[str, Any] = {}

    name = _text(raw, "name")
    if not name:
        errors.setdefault("name", []).append("Please input a name")
    values["name"] = name

    category = _text(raw, "category")
    if category not in CATEGORIES:
        errors.setdefault("category", []).append("Please select a category")
    values["category"] = category

    price = _positive_money(_text(raw, "price"))
    if price is None:
        errors.setdefault("price", []).append("Please enter an amount greater than $0.")
    values["price"] = price

    stock = _whole_number(_text(raw, "stock"))
    if stock is None or stock < 0:
        errors.setdefault("stock", []).append("Please enter a valid amount.")
    values["stock"] = stock

    expiry_raw = raw.get("expiry")
    expiry: date | None = None
    if isinstance(expiry_raw, date):
        expiry = expiry_raw
    elif _text(raw, "expiry"):
        try:
            expiry = date.fromisoformat(_text(raw, "expiry"))
        except ValueError:
            errors.setdefault("expiry", []).append("Please enter a valid date.")
    if expiry is not None and expiry <= today:
        errors.setdefault("expiry", []).append("Expiry date must be in the future")
    values["expiry"] = expiry

    return _finish(values, errors, what)


def parse_order_form(raw: Mapping[str, Any], what: str = "Create Order") -> FormResult:
    errors: dict[str, list[str]] = {}
    values: dict[str, Any] = {}

    customer_id = _text(raw, "customerId")
    if not customer_id:
        errors.setdefault("customerId", []).append("Please select a customer.")
    values["customer_id"] = customer_id

    product_id = _text(raw, "productId")
    if not product_id:
        errors.setdefault("productId", []).append("Please select a product.")
    values["product_id"] = product_id

    quantity = _whole_number(_text(raw, "quantity"))
    if quantity is None or quantity <= 0:
        errors.setdefault("quantity", []).append("Please enter a quantity greater than 0.")
    values["quantity"] = quantity

    status = _text(raw, "status")
    if status not in ORDER_STATUSES:
        errors.setdefault("status", []).append("Please select an order status.")
    values["status"] = status

    return _finish(values, errors, what)
