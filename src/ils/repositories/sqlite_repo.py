from __future__ import annotations

import shutil
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, Optional

from ils.domain.models import (
    BestSeller,
    CardData,
    Customer,
    CustomerSummary,
    MonthlyRevenue,
    Order,
    OrderRow,
    Product,
)
from ils.domain.money import from_cents, to_cents

_PRODUCT_COLUMNS = "id, name, category, price_cents, stock, expiry, status"
_ORDER_COLUMNS = "id, customer_id, product_id, quantity, amount_cents, date, status"


def _product_from_row(r) -> Product:
    return Product(
        id=str(r[0]),
        name=str(r[1]),
        category=str(r[2]),
        price=from_cents(r[3]),
        stock=int(r[4]),
        expiry=date.fromisoformat(r[5]) if r[5] else None,
        status=str(r[6]),
    )


def _order_from_row(r) -> Order:
    return Order(
        id=str(r[0]),
        customer_id=str(r[1]),
        product_id=str(r[2]),
        quantity=int(r[3]),
        amount=from_cents(r[4]),
        date=date.fromisoformat(r[5]),
        status=str(r[6]),
    )


class SqliteRepository:
    def __init__(self, db_path: Path | str, timeout: float = 5.0):
        self.db_path = str(db_path)
        self.timeout = float(timeout)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def begin(self) -> sqlite3.Connection:
        """Open a connection that already holds the write lock.

        ``BEGIN IMMEDIATE`` makes concurrent writers queue on the busy timeout
        instead of interleaving their stock checks.
        """
        conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("BEGIN IMMEDIATE")
        return conn

    @contextmanager
    def _cursor(self, cur: sqlite3.Cursor | None = None) -> Iterator[sqlite3.Cursor]:
        if cur is not None:
            yield cur
            return
        conn = self._conn()
        try:
            yield conn.cursor()
            conn.commit()
        finally:
            conn.close()

    def init_db(self) -> None:
        self.run_migrations()

    def _migrations(self):
        return [
            (1, self._migration_v1_base),
            (2, self._migration_v2_lookup_indexes),
        ]

    @staticmethod
    def _schema_version(cur: sqlite3.Cursor) -> int:
        cur.execute("SELECT 1 FROM sqlite_master WHERE type='table' AND name='schema_migrations'")
        if cur.fetchone() is None:
            return 0
        cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
        return int(cur.fetchone()[0])

    def run_migrations(self) -> None:
        """Apply pending migrations; a no-op (and no backup) when the schema is current."""
        conn = self._conn()
        try:
            current_version = self._schema_version(conn.cursor())
        finally:
            conn.close()
        latest = max(version for version, _ in self._migrations())
        if current_version >= latest:
            return

        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            current_version = self._schema_version(cur)

            for version, migration in self._migrations():
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS customers (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            image_url TEXT NOT NULL DEFAULT ''
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS products (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            category TEXT NOT NULL CHECK(category IN (
                'snacks','pantry','candy','beverages','meatAndSeafood','bakeryAndDesserts',
                'breakfast','coffee','deli','organic','cleaning','floral','household'
            )),
            price_cents INTEGER NOT NULL CHECK(price_cents > 0),
            stock INTEGER NOT NULL DEFAULT 0 CHECK(stock >= 0),
            expiry TEXT,
            status TEXT NOT NULL CHECK(
                (stock > 0 AND status = 'in-stock') OR (stock = 0 AND status = 'out-of-stock')
            )
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS orders (
            id TEXT PRIMARY KEY,
            customer_id TEXT NOT NULL,
            product_id TEXT NOT NULL,
            quantity INTEGER NOT NULL CHECK(quantity > 0),
            amount_cents INTEGER NOT NULL CHECK(amount_cents >= 0),
            date TEXT NOT NULL,
            status TEXT NOT NULL CHECK(status IN ('pending','paid')),
            FOREIGN KEY(customer_id) REFERENCES customers(id),
            FOREIGN KEY(product_id) REFERENCES products(id)
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS revenue (
            month TEXT PRIMARY KEY,
            revenue_cents INTEGER NOT NULL DEFAULT 0 CHECK(revenue_cents >= 0)
        )
        """
        )

    def _migration_v2_lookup_indexes(self, cur: sqlite3.Cursor) -> None:
        cur.execute("CREATE INDEX IF NOT EXISTS idx_orders_product ON orders(product_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_orders_status_date ON orders(status, date)")

    # ---------- Customers ----------
    def add_customer(self, name: str, email: str, image_url: str = "", customer_id: str | None = None) -> str:
        cid = customer_id or str(uuid.uuid4())
        with self._cursor() as cur:
            cur.execute(
                "INSERT INTO customers (id, name, email, image_url) VALUES (?, ?, ?, ?)",
                (cid, name, email, image_url),
            )
        return cid

    def get_customer(self, customer_id: str, cur: sqlite3.Cursor | None = None) -> Optional[Customer]:
        with self._cursor(cur) as c:
            c.execute("SELECT id, name, email, image_url FROM customers WHERE id=?", (str(customer_id),))
            r = c.fetchone()
        if not r:
            return None
        return Customer(id=str(r[0]), name=str(r[1]), email=str(r[2]), image_url=str(r[3] or ""))

    def list_customers(self) -> list[Customer]:
        with self._cursor() as cur:
            cur.execute("SELECT id, name, email, image_url FROM customers ORDER BY name ASC")
            rows = cur.fetchall()
        return [Customer(id=str(r[0]), name=str(r[1]), email=str(r[2]), image_url=str(r[3] or "")) for r in rows]

    # ---------- Products ----------
    def get_product(self, product_id: str, cur: sqlite3.Cursor | None = None) -> Optional[Product]:
        with self._cursor(cur) as c:
            c.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id=?", (str(product_id),))
            r = c.fetchone()
        return _product_from_row(r) if r else None

    def list_products(self) -> list[Product]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products ORDER BY name ASC")
            rows = cur.fetchall()
        return [_product_from_row(r) for r in rows]

    def insert_product(self, cur: sqlite3.Cursor, product: Product) -> None:
        cur.execute(
            f"INSERT INTO products ({_PRODUCT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                product.id,
                product.name,
                product.category,
                to_cents(product.price),
                int(product.stock),
                product.expiry.isoformat() if product.expiry else None,
                product.status,
            ),
        )

    def update_product(self, cur: sqlite3.Cursor, product: Product) -> bool:
        cur.execute(
            """
            UPDATE products
            SET name=?, category=?, price_cents=?, stock=?, expiry=?, status=?
            WHERE id=?
            """,
            (
                product.name,
                product.category,
                to_cents(product.price),
                int(product.stock),
                product.expiry.isoformat() if product.expiry else None,
                product.status,
                product.id,
            ),
        )
        return cur.rowcount > 0

    def apply_stock_delta(self, cur: sqlite3.Cursor, product_id: str, delta: int) -> Optional[int]:
        """Add ``delta`` to stock unless that would go below zero.

        Returns the new stock, or ``None`` when no row was changed (unknown id
        or underflow). Every SET expression reads the pre-update row.
        """
        cur.execute(
            """
            UPDATE products
            SET stock = stock + :delta,
                status = CASE WHEN stock + :delta > 0 THEN 'in-stock' ELSE 'out-of-stock' END
            WHERE id = :id AND stock + :delta >= 0
            """,
            {"delta": int(delta), "id": str(product_id)},
        )
        if cur.rowcount == 0:
            return None
        cur.execute("SELECT stock FROM products WHERE id=?", (str(product_id),))
        return int(cur.fetchone()[0])

    def count_orders_for_product(self, cur: sqlite3.Cursor, product_id: str) -> int:
        cur.execute("SELECT COUNT(*) FROM orders WHERE product_id=?", (str(product_id),))
        return int(cur.fetchone()[0])

    def delete_product(self, cur: sqlite3.Cursor, product_id: str) -> bool:
        cur.execute("DELETE FROM products WHERE id=?", (str(product_id),))
        return cur.rowcount > 0

    # ---------- Orders ----------
    def get_order(self, order_id: str, cur: sqlite3.Cursor | None = None) -> Optional[Order]:
        with self._cursor(cur) as c:
            c.execute(f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id=?", (str(order_id),))
            r = c.fetchone()
        return _order_from_row(r) if r else None

    def insert_order(self, cur: sqlite3.Cursor, order: Order) -> None:
        cur.execute(
            f"INSERT INTO orders ({_ORDER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                order.id,
                order.customer_id,
                order.product_id,
                int(order.quantity),
                to_cents(order.amount),
                order.date.isoformat(),
                order.status,
            ),
        )

    def update_order(self, cur: sqlite3.Cursor, order: Order) -> bool:
        cur.execute(
            """
            UPDATE orders
            SET customer_id=?, product_id=?, quantity=?, amount_cents=?, date=?, status=?
            WHERE id=?
            """,
            (
                order.customer_id,
                order.product_id,
                int(order.quantity),
                to_cents(order.amount),
                order.date.isoformat(),
                order.status,
                order.id,
            ),
        )
        return cur.rowcount > 0

    def delete_order(self, cur: sqlite3.Cursor, order_id: str) -> bool:
        cur.execute("DELETE FROM orders WHERE id=?", (str(order_id),))
        return cur.rowcount > 0

    # ---------- Revenue ----------
    def paid_total_for_month(self, cur: sqlite3.Cursor, month: str) -> int:
        cur.execute(
            """
            SELECT COALESCE(SUM(amount_cents), 0)
            FROM orders
            WHERE status = 'paid' AND substr(date, 1, 7) = ?
            """,
            (month,),
        )
        return int(cur.fetchone()[0])

    def upsert_revenue(self, cur: sqlite3.Cursor, month: str, revenue_cents: int) -> None:
        cur.execute(
            """
            INSERT INTO revenue (month, revenue_cents) VALUES (?, ?)
            ON CONFLICT(month) DO UPDATE SET revenue_cents=excluded.revenue_cents
            """,
            (month, int(revenue_cents)),
        )

    def get_revenue(self, month: str, cur: sqlite3.Cursor | None = None) -> Optional[MonthlyRevenue]:
        with self._cursor(cur) as c:
            c.execute("SELECT month, revenue_cents FROM revenue WHERE month=?", (month,))
            r = c.fetchone()
        return MonthlyRevenue(month=str(r[0]), revenue=from_cents(r[1])) if r else None

    def list_revenue(self) -> list[MonthlyRevenue]:
        with self._cursor() as cur:
            cur.execute("SELECT month, revenue_cents FROM revenue ORDER BY month ASC")
            rows = cur.fetchall()
        return [MonthlyRevenue(month=str(r[0]), revenue=from_cents(r[1])) for r in rows]

    def revenue_months(self, cur: sqlite3.Cursor) -> list[str]:
        cur.execute(
            """
            SELECT substr(date, 1, 7) FROM orders
            UNION
            SELECT month FROM revenue
            ORDER BY 1
            """
        )
        return [str(r[0]) for r in cur.fetchall()]

    # ---------- Read projections ----------
    def search_orders(self, query: str, limit: int, offset: int) -> list[OrderRow]:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT o.id, o.customer_id, o.product_id, c.name, c.email, c.image_url,
                       p.name, o.quantity, o.amount_cents, o.date, o.status
                FROM orders o
                JOIN customers c ON c.id = o.customer_id
                JOIN products p ON p.id = o.product_id
                WHERE c.name LIKE :q OR c.email LIKE :q OR p.name LIKE :q
                   OR printf('%.2f', o.amount_cents / 100.0) LIKE :q
                   OR o.date LIKE :q OR o.status LIKE :q
                ORDER BY o.date DESC, o.rowid DESC
                LIMIT :limit OFFSET :offset
                """,
                {"q": f"%{query}%", "limit": int(limit), "offset": int(offset)},
            )
            rows = cur.fetchall()
        return [
            OrderRow(
                id=str(r[0]),
                customer_id=str(r[1]),
                product_id=str(r[2]),
                customer_name=str(r[3]),
                customer_email=str(r[4]),
                image_url=str(r[5] or ""),
                product_name=str(r[6]),
                quantity=int(r[7]),
                amount=from_cents(r[8]),
                date=date.fromisoformat(r[9]),
                status=str(r[10]),
            )
            for r in rows
        ]

    def count_orders(self, query: str) -> int:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT COUNT(*)
                FROM orders o
                JOIN customers c ON c.id = o.customer_id
                JOIN products p ON p.id = o.product_id
                WHERE c.name LIKE :q OR c.email LIKE :q OR p.name LIKE :q
                   OR printf('%.2f', o.amount_cents / 100.0) LIKE :q
                   OR o.date LIKE :q OR o.status LIKE :q
                """,
                {"q": f"%{query}%"},
            )
            return int(cur.fetchone()[0])

    _PRODUCT_FILTER = """
        id LIKE :q OR name LIKE :q OR category LIKE :q
        OR CAST(stock AS TEXT) LIKE :q OR COALESCE(expiry, '') LIKE :q
        OR printf('%.2f', price_cents / 100.0) LIKE :q OR status LIKE :q
    """

    def search_products(self, query: str, limit: int, offset: int) -> list[Product]:
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                WHERE {self._PRODUCT_FILTER}
                ORDER BY name DESC
                LIMIT :limit OFFSET :offset
                """,
                {"q": f"%{query}%", "limit": int(limit), "offset": int(offset)},
            )
            rows = cur.fetchall()
        return [_product_from_row(r) for r in rows]

    def count_products(self, query: str) -> int:
        with self._cursor() as cur:
            cur.execute(f"SELECT COUNT(*) FROM products WHERE {self._PRODUCT_FILTER}", {"q": f"%{query}%"})
            return int(cur.fetchone()[0])

    def search_customers(self, query: str, limit: int, offset: int) -> list[CustomerSummary]:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT c.id, c.name, c.email, c.image_url,
                       COUNT(o.id) AS total_orders,
                       COALESCE(SUM(CASE WHEN o.status = 'pending' THEN o.amount_cents ELSE 0 END), 0),
                       COALESCE(SUM(CASE WHEN o.status = 'paid' THEN o.amount_cents ELSE 0 END), 0)
                FROM customers c
                LEFT JOIN orders o ON o.customer_id = c.id
                WHERE c.name LIKE :q OR c.email LIKE :q
                GROUP BY c.id, c.name, c.email, c.image_url
                ORDER BY c.name ASC
                LIMIT :limit OFFSET :offset
                """,
                {"q": f"%{query}%", "limit": int(limit), "offset": int(offset)},
            )
            rows = cur.fetchall()
        return [
            CustomerSummary(
                id=str(r[0]),
                name=str(r[1]),
                email=str(r[2]),
                image_url=str(r[3] or ""),
                total_orders=int(r[4]),
                total_pending=from_cents(r[5]),
                total_paid=from_cents(r[6]),
            )
            for r in rows
        ]

    def count_customers(self, query: str) -> int:
        with self._cursor() as cur:
            cur.execute(
                "SELECT COUNT(*) FROM customers WHERE name LIKE :q OR email LIKE :q",
                {"q": f"%{query}%"},
            )
            return int(cur.fetchone()[0])

    def best_selling_products(self, limit: int) -> list[BestSeller]:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT p.id, p.name, p.category,
                       SUM(o.quantity) AS units_sold,
                       SUM(o.amount_cents)
                FROM orders o
                JOIN products p ON p.id = o.product_id
                GROUP BY p.id, p.name, p.category
                ORDER BY units_sold DESC, p.name ASC
                LIMIT ?
                """,
                (int(limit),),
            )
            rows = cur.fetchall()
        return [
            BestSeller(id=str(r[0]), name=str(r[1]), category=str(r[2]), units_sold=int(r[3]), revenue=from_cents(r[4]))
            for r in rows
        ]

    def card_totals(self) -> CardData:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) FROM orders")
            orders = int(cur.fetchone()[0])
            cur.execute("SELECT COUNT(*) FROM customers")
            customers = int(cur.fetchone()[0])
            cur.execute(
                """
                SELECT COUNT(*),
                       COALESCE(SUM(CASE WHEN status = 'in-stock' THEN 1 ELSE 0 END), 0),
                       COALESCE(SUM(CASE WHEN status = 'out-of-stock' THEN 1 ELSE 0 END), 0)
                FROM products
                """
            )
            products, in_stock, out_of_stock = cur.fetchone()
            cur.execute(
                """
                SELECT COALESCE(SUM(CASE WHEN status = 'paid' THEN amount_cents ELSE 0 END), 0),
                       COALESCE(SUM(CASE WHEN status = 'pending' THEN amount_cents ELSE 0 END), 0)
                FROM orders
                """
            )
            paid, pending = cur.fetchone()
        return CardData(
            number_of_orders=orders,
            number_of_customers=customers,
            number_of_products=int(products),
            products_in_stock=int(in_stock),
            products_out_of_stock=int(out_of_stock),
            total_paid=from_cents(paid),
            total_pending=from_cents(pending),
        )
