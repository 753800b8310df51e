"""
Menu categories and items.

Updating a category's ``is_orderable`` flag cascades to the ``available``
flag of every item in that category (one way, unconditional overwrite).
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

import config
import database
from database import CATEGORIES, ITEMS
from errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    category_id: str
    available: bool
    matched: int = 0
    modified: int = 0
    complete: bool = True


def propagate_availability(category_id, is_orderable: bool) -> CascadeResult:
    """
    Set ``available`` on every item of the category to ``is_orderable``.

    The write touches many documents and is not atomic. ``update_many`` is
    idempotent, so transient failures are retried; if every attempt fails the
    cascade is reported incomplete and logged, never raised.
    """
    result = CascadeResult(category_id=str(category_id), available=is_orderable)
    last_err = None
    for attempt in range(1, config.WRITE_RETRIES + 1):
        try:
            res = database.collection(ITEMS).update_many(
                {"category_id": database.to_object_id(category_id)},
                {"$set": {"available": is_orderable, "updated_at": database.utcnow()}},
            )
            result.matched = res.matched_count
            result.modified = res.modified_count
            logger.info(
                "Category %s orderable=%s: %d item(s) matched, %d updated",
                category_id, is_orderable, res.matched_count, res.modified_count,
            )
            return result
        except PyMongoError as e:
            last_err = e
            logger.warning(
                "Availability cascade for category %s failed (attempt %d/%d): %s",
                category_id, attempt, config.WRITE_RETRIES, e,
            )
            time.sleep(config.RETRY_SLEEP_SECONDS * attempt)

    logger.error(
        "Availability cascade for category %s gave up after %d attempts; items may be partially updated: %s",
        category_id, config.WRITE_RETRIES, last_err,
    )
    result.complete = False
    return result


# ============== CATEGORIES ==================
def list_categories() -> List[Dict[str, Any]]:
    return list(database.collection(CATEGORIES).find({}).sort("created_at", -1))


def create_category(data: Dict[str, Any]) -> Dict[str, Any]:
    col = database.collection(CATEGORIES)
    if col.find_one({"name": data["name"]}):
        raise ValidationError("Category with this name already exists.")
    try:
        return database.create_document(CATEGORIES, data)
    except DuplicateKeyError:
        raise ValidationError("Category with this name already exists.")


def update_category(category_id, changes: Dict[str, Any]) -> Tuple[Dict[str, Any], CascadeResult | None]:
    _id = database.to_object_id(category_id, "category ID")
    col = database.collection(CATEGORIES)
    database.find_by_id(CATEGORIES, _id, "Category")

    if "name" in changes and col.find_one({"name": changes["name"], "_id": {"$ne": _id}}):
        raise ValidationError("Category with this name already exists.")

    try:
        category = col.find_one_and_update(
            {"_id": _id},
            {"$set": {**changes, "updated_at": database.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        raise ValidationError("Category with this name already exists.")
    if category is None:
        raise NotFound("Category not found.")

    cascade = None
    if "is_orderable" in changes:
        cascade = propagate_availability(_id, category["is_orderable"])
    return category, cascade


def delete_category(category_id) -> Tuple[Dict[str, Any], int]:
    category = database.find_by_id(CATEGORIES, category_id, "Category")
    deleted = database.collection(ITEMS).delete_many({"category_id": category["_id"]})
    database.collection(CATEGORIES).delete_one({"_id": category["_id"]})
    logger.info("Deleted category %s and %d item(s)", category["_id"], deleted.deleted_count)
    return category, deleted.deleted_count


# ============== ITEMS ==================
def list_items(category_id, page: int, limit: int):
    _id = database.to_object_id(category_id, "category ID")
    return database.paginate(ITEMS, {"category_id": _id}, page, limit)


def get_item(item_id) -> Dict[str, Any]:
    return database.find_by_id(ITEMS, item_id, "Menu item")


def create_item(category_id, data: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    try:
        category = database.find_by_id(CATEGORIES, category_id, "Category")
    except NotFound:
        raise NotFound("Category not found. Please create it first.")
    item = database.create_document(ITEMS, {
        **data,
        "category_id": category["_id"],
        "available": category.get("is_orderable", True),
    })
    return item, category


def update_item(item_id, changes: Dict[str, Any]) -> Dict[str, Any]:
    item = get_item(item_id)
    changes = dict(changes)
    if "category_id" in changes:
        new_category = database.collection(CATEGORIES).find_one(
            {"_id": database.to_object_id(changes["category_id"], "category ID")}
        )
        if not new_category:
            raise NotFound("New category not found. Please select a valid one.")
        changes["category_id"] = new_category["_id"]

    return database.collection(ITEMS).find_one_and_update(
        {"_id": item["_id"]},
        {"$set": {**changes, "updated_at": database.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def delete_item(item_id) -> Tuple[Dict[str, Any], str]:
    item = get_item(item_id)
    category = database.collection(CATEGORIES).find_one({"_id": item.get("category_id")})
    database.collection(ITEMS).delete_one({"_id": item["_id"]})
    return item, (category or {}).get("name", "Unknown")


def resolve_items(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Attach the referenced menu item document to each line entry as ``item``."""
    ids = [e["item_id"] for e in entries]
    found = {
        str(doc["_id"]): doc
        for doc in database.collection(ITEMS).find({"_id": {"$in": ids}})
    }
    return [{**e, "item": found.get(str(e["item_id"]))} for e in entries]
