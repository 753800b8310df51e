"""
Cart aggregation.

A cart holds one line entry per menu item. The functions at the top of this
module are pure and operate on the list of entries; ``CartStore`` persists
the result with a version check so concurrent writers cannot lose updates.
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

import config
import database
from errors import FailureKind, Internal, Outcome

logger = logging.getLogger(__name__)

Entry = Dict[str, Any]


def _same(entry: Entry, item_id) -> bool:
    return str(entry["item_id"]) == str(item_id)


def merge_item(entries: List[Entry], item_id, quantity: int = 1) -> Outcome:
    if quantity < 1:
        return Outcome.fail(FailureKind.VALIDATION, "Quantity must be at least 1.")
    merged = []
    found = False
    for entry in entries:
        if _same(entry, item_id):
            entry = {**entry, "quantity": entry["quantity"] + quantity}
            found = True
        merged.append(entry)
    if not found:
        merged.append({"item_id": item_id, "quantity": quantity})
    return Outcome.success(merged)


def update_quantity(entries: List[Entry], item_id, quantity: int) -> Outcome:
    """Overwrite an entry's quantity; zero or less removes the entry."""
    if not any(_same(e, item_id) for e in entries):
        return Outcome.fail(FailureKind.ITEM_NOT_IN_CART, "Item not in cart.")
    if quantity <= 0:
        return Outcome.success(drop_item(entries, item_id))
    return Outcome.success([
        {**e, "quantity": quantity} if _same(e, item_id) else e for e in entries
    ])


def drop_item(entries: List[Entry], item_id) -> List[Entry]:
    return [e for e in entries if not _same(e, item_id)]


def count_entries(entries: List[Entry]) -> int:
    return len(entries)


class CartStore:
    def __init__(self, collection_name: str = database.CARTS):
        self.collection_name = collection_name

    @property
    def col(self):
        return database.collection(self.collection_name)

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.col.find_one({"user_id": user_id})

    def get_or_create(self, user_id: str) -> Dict[str, Any]:
        try:
            return self.col.find_one_and_update(
                {"user_id": user_id},
                {"$setOnInsert": {"items": [], "version": 0, "updated_at": database.utcnow()}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # a concurrent first write created the cart between match and insert
            logger.info("Cart of %s was created concurrently, re-reading", user_id)
            return self.get(user_id)

    def _write(self, cart: Dict[str, Any], entries: List[Entry]) -> Optional[Dict[str, Any]]:
        version = cart.get("version", 0)
        now = database.utcnow()
        res = self.col.update_one(
            {"_id": cart["_id"], "version": cart.get("version")},
            {"$set": {"items": entries, "updated_at": now, "version": version + 1}},
        )
        if not res.matched_count:
            return None
        return {**cart, "items": entries, "updated_at": now, "version": version + 1}

    def _mutate(self, user_id: str, change: Callable[[List[Entry]], Outcome], create: bool = False) -> Outcome:
        for attempt in range(1, config.WRITE_RETRIES + 1):
            cart = self.get_or_create(user_id) if create else self.get(user_id)
            if cart is None:
                return Outcome.fail(FailureKind.CART_NOT_FOUND, "Cart not found.")

            outcome = change(list(cart.get("items", [])))
            if not outcome.ok:
                return outcome

            written = self._write(cart, outcome.value)
            if written is not None:
                return Outcome.success(written)
            logger.warning(
                "Cart of %s changed concurrently (attempt %d/%d)", user_id, attempt, config.WRITE_RETRIES
            )
        raise Internal("Cart update conflicted with concurrent writes.")

    def add_item(self, user_id: str, item_id, quantity: int = 1) -> Outcome:
        return self._mutate(user_id, lambda entries: merge_item(entries, item_id, quantity), create=True)

    def set_quantity(self, user_id: str, item_id, quantity: int) -> Outcome:
        return self._mutate(user_id, lambda entries: update_quantity(entries, item_id, quantity))

    def remove_item(self, user_id: str, item_id) -> Outcome:
        if self.get(user_id) is None:
            return Outcome.success(None)
        return self._mutate(user_id, lambda entries: Outcome.success(drop_item(entries, item_id)))

    def count(self, user_id: str) -> int:
        cart = self.get(user_id)
        return count_entries(cart.get("items", [])) if cart else 0
