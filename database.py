from __future__ import annotations
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection

import config
from errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

# Collections
CATEGORIES = "menu_category"
ITEMS = "menu_item"
ORDERS = "order"
RESERVATIONS = "reservation"
REVIEWS = "review"
CARTS = "cart"

_client: Optional[MongoClient] = None
_db = None


def get_db():
    global _client, _db
    if _db is None:
        _client = MongoClient(config.DATABASE_URL)
        _db = _client[config.DATABASE_NAME]
    return _db


def collection(name: str) -> Collection:
    return get_db()[name]


def utcnow() -> datetime:
    # Mongo hands datetimes back naive; keep everything naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ensure_indexes() -> None:
    collection(CATEGORIES).create_index([("name", ASCENDING)], unique=True)
    collection(ITEMS).create_index([("category_id", ASCENDING)])
    collection(CARTS).create_index([("user_id", ASCENDING)], unique=True)
    for name in (ORDERS, RESERVATIONS, REVIEWS):
        collection(name).create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    logger.info("MongoDB indexes ensured on %s", config.DATABASE_NAME)


def to_object_id(value: Any, label: str = "ID") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {label}.")


def oid(obj: Any) -> Any:
    if isinstance(obj, ObjectId):
        return str(obj)
    return obj


def serialize(doc: Any) -> Any:
    """Return a JSON-friendly copy: ``_id`` becomes ``id``, ObjectIds become strings."""
    if isinstance(doc, list):
        return [serialize(d) for d in doc]
    if not isinstance(doc, dict):
        return oid(doc)
    out: Dict[str, Any] = {}
    for key, value in doc.items():
        out["id" if key == "_id" else key] = serialize(value)
    return out


def create_document(collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    now = utcnow()
    data = {
        **data,
        "created_at": now,
        "updated_at": now,
    }
    res = collection(collection_name).insert_one(data)
    data["_id"] = res.inserted_id
    return data


def find_by_id(collection_name: str, doc_id: Any, label: str) -> Dict[str, Any]:
    doc = collection(collection_name).find_one({"_id": to_object_id(doc_id, f"{label} ID")})
    if not doc:
        raise NotFound(f"{label} not found.")
    return doc


def paginate(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    page: int = 1,
    limit: int = 10,
    sort: Tuple[str, int] = ("created_at", DESCENDING),
) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
    col = collection(collection_name)
    query = filter_dict or {}
    total = col.count_documents(query)
    cursor = col.find(query).sort([sort]).skip((page - 1) * limit).limit(limit)
    meta = {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalItems": total,
    }
    return list(cursor), meta
