"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID

from storefront_ledger.domain.catalog import Product
from storefront_ledger.domain.orders import Order, OrderLine, OrderShipping
from storefront_ledger.domain.pricing import OrderPricingResult
from storefront_ledger.domain.value_objects import OrderStatus
from storefront_ledger.repositories.interfaces import CatalogRepository, OrderRepository


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            -- Catalog
            CREATE TABLE IF NOT EXISTS products (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                price INTEGER NOT NULL,
                original_price INTEGER,
                category TEXT,
                discount_active INTEGER NOT NULL DEFAULT 0,
                in_stock INTEGER NOT NULL DEFAULT 1,
                sort_order INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_products_sort ON products(sort_order);

            -- Orders; amounts in öre, items/shipping/breakdown as JSON
            CREATE TABLE IF NOT EXISTS orders (
                id TEXT PRIMARY KEY,
                email TEXT NOT NULL,
                items TEXT NOT NULL,
                shipping_address TEXT,
                total_amount INTEGER NOT NULL,
                discount_amount INTEGER NOT NULL DEFAULT 0,
                discount_code TEXT,
                status TEXT NOT NULL,
                session_id TEXT UNIQUE,
                transaction_id TEXT,
                vat_breakdown TEXT,
                newsletter_optin INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status);
            CREATE INDEX IF NOT EXISTS idx_orders_created ON orders(created_at);
            """
        )
        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class SQLiteCatalogRepository(CatalogRepository):
    """SQLite implementation of CatalogRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, product: Product) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO products (id, title, description, price, original_price, category,
                                  discount_active, in_stock, sort_order, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(product.id),
                product.title,
                product.description,
                product.price,
                product.original_price,
                product.tax_category.value if product.tax_category else None,
                1 if product.discount_active else 0,
                1 if product.in_stock else 0,
                product.sort_order,
                product.created_at.isoformat(),
            ),
        )
        conn.commit()

    def get(self, product_id: UUID) -> Product | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM products WHERE id = ?", (str(product_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_product(row)

    def update(self, product: Product) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            UPDATE products SET
                title = ?,
                description = ?,
                price = ?,
                original_price = ?,
                category = ?,
                discount_active = ?,
                in_stock = ?,
                sort_order = ?
            WHERE id = ?
            """,
            (
                product.title,
                product.description,
                product.price,
                product.original_price,
                product.tax_category.value if product.tax_category else None,
                1 if product.discount_active else 0,
                1 if product.in_stock else 0,
                product.sort_order,
                str(product.id),
            ),
        )
        conn.commit()

    def list_all(self) -> Iterable[Product]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM products ORDER BY sort_order").fetchall()
        return [self._row_to_product(row) for row in rows]

    def list_in_stock_products(self) -> list[Product]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM products WHERE in_stock = 1 ORDER BY sort_order, title"
        ).fetchall()
        return [self._row_to_product(row) for row in rows]

    def _row_to_product(self, row: sqlite3.Row) -> Product:
        return Product(
            id=UUID(row["id"]),
            title=row["title"],
            description=row["description"],
            price=row["price"],
            original_price=row["original_price"],
            tax_category=row["category"],
            discount_active=bool(row["discount_active"]),
            in_stock=bool(row["in_stock"]),
            sort_order=row["sort_order"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteOrderRepository(OrderRepository):
    """SQLite implementation of OrderRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def insert_pending_order(self, order: Order) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO orders (id, email, items, shipping_address, total_amount,
                                discount_amount, discount_code, status, session_id,
                                transaction_id, vat_breakdown, newsletter_optin,
                                created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(order.id),
                order.email,
                json.dumps([line.to_dict() for line in order.items]),
                json.dumps(order.shipping.to_dict()) if order.shipping else None,
                order.total_amount,
                order.discount_amount,
                order.discount_code,
                OrderStatus.PENDING.value,
                order.session_id,
                order.transaction_id,
                json.dumps(order.pricing.to_dict()) if order.pricing else None,
                1 if order.newsletter_optin else 0,
                order.created_at.isoformat(),
                order.updated_at.isoformat(),
            ),
        )
        conn.commit()

    def get(self, order_id: UUID) -> Order | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM orders WHERE id = ?", (str(order_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_order(row)

    def get_by_session_id(self, session_id: str) -> Order | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM orders WHERE session_id = ?", (session_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_order(row)

    def attach_session(self, order_id: UUID, session_id: str) -> None:
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE orders SET session_id = ?, updated_at = ? WHERE id = ?",
            (session_id, datetime.now(UTC).isoformat(), str(order_id)),
        )
        conn.commit()

    def update(self, order: Order) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            UPDATE orders SET
                email = ?,
                status = ?,
                session_id = ?,
                transaction_id = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                order.email,
                order.status.value,
                order.session_id,
                order.transaction_id,
                order.updated_at.isoformat(),
                str(order.id),
            ),
        )
        conn.commit()

    def list_all(self) -> Iterable[Order]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM orders ORDER BY created_at DESC").fetchall()
        return [self._row_to_order(row) for row in rows]

    def list_completed_orders_with_transaction_ids(self) -> list[Order]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM orders
            WHERE status = ? AND transaction_id IS NOT NULL
            ORDER BY created_at DESC
            """,
            (OrderStatus.COMPLETED.value,),
        ).fetchall()
        return [self._row_to_order(row) for row in rows]

    def _row_to_order(self, row: sqlite3.Row) -> Order:
        shipping = row["shipping_address"]
        breakdown = row["vat_breakdown"]
        return Order(
            id=UUID(row["id"]),
            email=row["email"],
            items=[OrderLine.from_dict(item) for item in json.loads(row["items"])],
            shipping=OrderShipping.from_dict(json.loads(shipping)) if shipping else None,
            total_amount=row["total_amount"],
            discount_amount=row["discount_amount"],
            discount_code=row["discount_code"],
            status=OrderStatus(row["status"]),
            session_id=row["session_id"],
            transaction_id=row["transaction_id"],
            pricing=OrderPricingResult.from_dict(json.loads(breakdown)) if breakdown else None,
            newsletter_optin=bool(row["newsletter_optin"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
