from __future__ import annotations
import logging
from typing import Any, Dict

import database
from database import REVIEWS
from schemas import ReviewCreate

logger = logging.getLogger(__name__)


def create_review(user_id: str, review: ReviewCreate) -> Dict[str, Any]:
    now = database.utcnow()
    doc = {"user_id": user_id, **review.model_dump(), "created_at": now}
    doc["_id"] = database.collection(REVIEWS).insert_one(doc).inserted_id
    return doc


def list_reviews(page: int, limit: int):
    return database.paginate(REVIEWS, {}, page, limit)


def delete_review(review_id) -> Dict[str, Any]:
    review = database.find_by_id(REVIEWS, review_id, "Review")
    database.collection(REVIEWS).delete_one({"_id": review["_id"]})
    logger.info("Review %s by %s removed by moderation", review["_id"], review["user_id"])
    return review
