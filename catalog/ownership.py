"""
catalog/ownership.py -- Ownership-chain authorization for updates.

An update is "owned" by a user iff it appears under one of the user's
products. OwnershipResolver recomputes that set from the store on every
call: user -> products (with updates) -> flattened updates -> match by id.
Nothing is cached between requests, so ownership always reflects current
data.

Callers depend only on list_updates_for_user() and find_owned_update(); an
indexed lookup can replace the full scan behind the same two methods.
"""

import logging

from catalog.models import Update
from catalog.store import CatalogStore
from core.errors import OwnershipNotFound

logger = logging.getLogger("shiplog.catalog")


class OwnershipResolver:
    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    def list_updates_for_user(self, user_id: str) -> list[Update]:
        """Return every update under the user's products, product-then-update order."""
        products = self.store.list_products_with_updates(user_id)
        return [update for product in products for update in product.updates]

    def find_owned_update(self, user_id: str, update_id: str) -> Update:
        """Return the update if user_id owns it; raise OwnershipNotFound otherwise.

        Only the id is matched. An update that exists but sits under another
        user's product is indistinguishable from one that does not exist.
        """
        for update in self.list_updates_for_user(user_id):
            if update.id == update_id:
                return update
        logger.info("Update %s not in ownership set of user %s", update_id, user_id)
        raise OwnershipNotFound()
