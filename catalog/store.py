"""
catalog/store.py -- SQLAlchemy-backed persistence layer for products and updates.

Uses SQLAlchemy Core (not ORM) so the dataclasses in catalog/models.py
remain the authoritative domain representation. The schema itself lives in
core/database.py, shared with auth/store.py.

Pattern: Repository + Data Mapper. CatalogStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers. Route
handlers never touch SQL directly.

Ownership scoping: product reads and writes that take an owner_id put it in
the WHERE clause, so a caller can never touch another user's product by
guessing its id. Update rows have no owner column; their ownership is
derived through the parent product by catalog/ownership.py.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = CatalogStore(engine)
    product_id = store.create_product(Product(name="Widget", belongs_to_id=user_id))
    store.create_update(Update(product_id=product_id, title="v1", body="First cut"))
    products = store.list_products_with_updates(user_id)
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.engine import Engine

from catalog.models import Product, Update
from core.database import products as _products
from core.database import updates as _updates

# Columns PUT /update/{id} may change. Anything else is ignored rather than
# written, so product_id can never be re-pointed to another product.
_EDITABLE_UPDATE_FIELDS = frozenset({"title", "body", "status", "version"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CatalogStore:
    """Repository for Product and Update entities."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def create_product(self, product: Product) -> str:
        """Insert a new product and return its assigned ID.

        Raises sqlalchemy.exc.IntegrityError if belongs_to_id names no user.
        """
        product_id = str(uuid.uuid4())
        with self.engine.connect() as conn:
            conn.execute(
                _products.insert().values(
                    id=product_id,
                    name=product.name,
                    belongs_to_id=product.belongs_to_id,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        return product_id

    def get_product(self, product_id: str) -> Optional[Product]:
        """Look up a product by id regardless of owner. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def get_owned_product(self, product_id: str, owner_id: str) -> Optional[Product]:
        """Look up a product only if owner_id owns it."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _products.select().where((_products.c.id == product_id) & (_products.c.belongs_to_id == owner_id))
            ).fetchone()
        return _row_to_product(row) if row is not None else None

    def list_products(self, owner_id: str) -> list[Product]:
        """Return the owner's products, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _products.select()
                .where(_products.c.belongs_to_id == owner_id)
                .order_by(_products.c.created_at, _products.c.seq)
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def list_products_with_updates(self, owner_id: str) -> list[Product]:
        """Return the owner's products with their updates eagerly attached.

        Two queries regardless of product count: one for the products, one
        for every update under them. Product order is oldest first; update
        order within a product is oldest first.
        """
        with self.engine.connect() as conn:
            product_rows = conn.execute(
                _products.select()
                .where(_products.c.belongs_to_id == owner_id)
                .order_by(_products.c.created_at, _products.c.seq)
            ).fetchall()
            products = [_row_to_product(r) for r in product_rows]
            if not products:
                return []
            update_rows = conn.execute(
                _updates.select()
                .where(_updates.c.product_id.in_([p.id for p in products]))
                .order_by(_updates.c.created_at, _updates.c.seq)
            ).fetchall()

        by_product = {p.id: p for p in products}
        for row in update_rows:
            by_product[row.product_id].updates.append(_row_to_update(row))
        return products

    def rename_product(self, product_id: str, owner_id: str, name: str) -> Optional[Product]:
        """Rename an owned product. Returns the updated record, or None if not owned."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _products.update()
                .where((_products.c.id == product_id) & (_products.c.belongs_to_id == owner_id))
                .values(name=name)
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_product(product_id)

    def delete_product(self, product_id: str, owner_id: str) -> Optional[Product]:
        """Delete an owned product and, by cascade, its updates.

        Returns the deleted record, or None if the product was not found or
        belongs to someone else.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                _products.select().where((_products.c.id == product_id) & (_products.c.belongs_to_id == owner_id))
            ).fetchone()
            if row is None:
                return None
            conn.execute(_products.delete().where(_products.c.id == product_id))
            conn.commit()
        return _row_to_product(row)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def create_update(self, update: Update) -> str:
        """Insert a new update and return its assigned ID.

        Does not check who owns update.product_id -- that policy belongs to
        the caller. Raises IntegrityError if the product does not exist.
        """
        update_id = str(uuid.uuid4())
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _updates.insert().values(
                    id=update_id,
                    product_id=update.product_id,
                    title=update.title,
                    body=update.body,
                    status=update.status,
                    version=update.version,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return update_id

    def get_update(self, update_id: str) -> Optional[Update]:
        """Look up an update by id regardless of owner. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_updates.select().where(_updates.c.id == update_id)).fetchone()
        return _row_to_update(row) if row is not None else None

    def edit_update(self, update_id: str, **fields) -> Optional[Update]:
        """Change title, body, status and/or version on an update.

        Unknown keys raise ValueError rather than being silently dropped.
        Returns the updated record, or None if update_id was not found.
        """
        unknown = set(fields) - _EDITABLE_UPDATE_FIELDS
        if unknown:
            raise ValueError(f"Unknown update fields: {sorted(unknown)!r}")
        values = dict(fields)
        values["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_updates.update().where(_updates.c.id == update_id).values(**values))
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_update(update_id)

    def delete_update(self, update_id: str) -> Optional[Update]:
        """Delete an update. Returns the deleted record, or None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_updates.select().where(_updates.c.id == update_id)).fetchone()
            if row is None:
                return None
            conn.execute(_updates.delete().where(_updates.c.id == update_id))
            conn.commit()
        return _row_to_update(row)


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        belongs_to_id=row.belongs_to_id,
        created_at=row.created_at,
    )


def _row_to_update(row) -> Update:
    return Update(
        id=row.id,
        product_id=row.product_id,
        title=row.title,
        body=row.body,
        status=row.status,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
