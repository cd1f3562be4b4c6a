"""
catalog/models.py -- Domain dataclasses for products and their updates.

These are pure data containers with zero logic. Ownership rules live in
catalog/ownership.py and persistence in catalog/store.py.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class UpdateStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    SHIPPED = "SHIPPED"
    DEPRECATED = "DEPRECATED"


@dataclass
class Update:
    """A changelog entry posted against a product.

    Mutable only by the owner of the parent product. id is None before the
    record is written to the database.
    """

    product_id: str
    title: str
    body: str
    status: str = UpdateStatus.IN_PROGRESS.value
    version: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass
class Product:
    """A product owned by exactly one user (belongs_to_id).

    updates is only populated by CatalogStore.list_products_with_updates();
    every other read leaves it empty.
    """

    name: str
    belongs_to_id: str
    id: Optional[str] = None
    created_at: str = ""
    updates: list[Update] = field(default_factory=list)
