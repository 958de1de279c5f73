"""
Hearth — Shared shopping list.

One ordered list per household; insertion order is display order.
Items are only ever added or removed. Duplicate names are allowed and never
merged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hearth.core.errors import ValidationError
from hearth.data.models import Origin, ShoppingItem

if TYPE_CHECKING:
    from hearth.core.households import HouseholdRegistry
    from hearth.ports.store_port import DocumentStore

logger = logging.getLogger(__name__)

SHOPPING_ITEMS = "shopping_items"


class ShoppingListManager:
    """Store-backed shopping lists, one per household."""

    def __init__(self, store: DocumentStore, households: HouseholdRegistry) -> None:
        self._store = store
        self._households = households

    @staticmethod
    def _doc_to_item(doc: dict) -> ShoppingItem:
        return ShoppingItem(
            id=doc["id"],
            name=doc["name"],
            added_by=Origin(doc.get("added_by", Origin.MANUAL.value)),
        )

    def add(
        self,
        household_id: str,
        name: str,
        added_by: Origin | str = Origin.MANUAL,
    ) -> ShoppingItem:
        """Append an item. Blank names are rejected and nothing is stored."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Item name must not be empty")
        try:
            added_by = Origin(added_by)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        self._households.get(household_id)
        item_id = self._store.create(
            SHOPPING_ITEMS,
            {"household_id": household_id, "name": name, "added_by": added_by.value},
        )
        logger.info("Shopping item %s '%s' added to household %s", item_id, name, household_id)
        return ShoppingItem(id=item_id, name=name, added_by=added_by)

    def remove(self, household_id: str, item_id: str) -> None:
        """Remove an item if present; unknown ids are ignored."""
        self._households.get(household_id)
        doc = self._store.get(SHOPPING_ITEMS, item_id)
        if doc is None or doc.get("household_id") != household_id:
            logger.debug("Shopping item %s not in household %s, nothing to remove",
                         item_id, household_id)
            return
        if self._store.delete(SHOPPING_ITEMS, item_id):
            logger.info("Shopping item %s removed from household %s", item_id, household_id)

    def list_items(self, household_id: str) -> list[ShoppingItem]:
        self._households.get(household_id)
        docs = self._store.query(SHOPPING_ITEMS, "household_id", household_id)
        return [self._doc_to_item(d) for d in docs]
