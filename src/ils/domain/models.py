from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


CATEGORIES: tuple[str, ...] = (
    "snacks",
    "pantry",
    "candy",
    "beverages",
    "meatAndSeafood",
    "bakeryAndDesserts",
    "breakfast",
    "coffee",
    "deli",
    "organic",
    "cleaning",
    "floral",
    "household",
)
NON_PERISHABLE_CATEGORIES = frozenset({"cleaning", "floral", "household"})

IN_STOCK = "in-stock"
OUT_OF_STOCK = "out-of-stock"

PENDING = "pending"
PAID = "paid"
ORDER_STATUSES: tuple[str, ...] = (PENDING, PAID)

ROLES: tuple[str, ...] = ("admin", "user")


def stock_status(stock: int) -> str:
    return IN_STOCK if stock > 0 else OUT_OF_STOCK


def month_key(d: date) -> str:
    return d.strftime("%Y-%m")


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    price: Decimal
    stock: int
    expiry: Optional[date]
    status: str


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    email: str
    image_url: str


@dataclass(frozen=True)
class Order:
    id: str
    customer_id: str
    product_id: str
    quantity: int
    amount: Decimal
    date: date
    status: str


@dataclass(frozen=True)
class MonthlyRevenue:
    month: str
    revenue: Decimal


@dataclass(frozen=True)
class Actor:
    """Whoever the external auth provider says is calling."""

    role: str
    name: str = ""


@dataclass(frozen=True)
class OrderRow:
    id: str
    customer_id: str
    product_id: str
    customer_name: str
    customer_email: str
    image_url: str
    product_name: str
    quantity: int
    amount: Decimal
    date: date
    status: str


@dataclass(frozen=True)
class CustomerSummary:
    id: str
    name: str
    email: str
    image_url: str
    total_orders: int
    total_pending: Decimal
    total_paid: Decimal


@dataclass(frozen=True)
class BestSeller:
    id: str
    name: str
    category: str
    units_sold: int
    revenue: Decimal


@dataclass(frozen=True)
class CardData:
    number_of_orders: int
    number_of_customers: int
    number_of_products: int
    products_in_stock: int
    products_out_of_stock: int
    total_paid: Decimal
    total_pending: Decimal
