from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends

import analytics
import catalog
import orders
import reservations
import reviews
from auth import require_admin
from database import serialize
from schemas import (
    MenuCategoryIn, MenuCategoryOut, MenuCategoryUpdate,
    MenuItemIn, MenuItemOut, MenuItemUpdate,
    OrderOut,
    PageParams,
    ReservationOut,
    ReviewOut,
    StatusUpdate,
)

router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])


# ============== MENU ==================
@router.get("/menu/categories")
def list_categories():
    categories = [MenuCategoryOut(**serialize(c)).dump() for c in catalog.list_categories()]
    return {
        "success": True,
        "message": "Categories fetched." if categories else "No categories found.",
        "categories": categories,
    }


@router.post("/menu/category", status_code=201)
def add_category(category: MenuCategoryIn):
    doc = catalog.create_category(category.model_dump())
    return {
        "success": True,
        "message": "Category added successfully!",
        "category": MenuCategoryOut(**serialize(doc)).dump(),
    }


@router.put("/menu/category/{category_id}")
def update_category(category_id: str, changes: MenuCategoryUpdate):
    doc, cascade = catalog.update_category(category_id, changes.model_dump(exclude_none=True))
    body = {
        "success": True,
        "message": "Category updated successfully!",
        "category": MenuCategoryOut(**serialize(doc)).dump(),
    }
    if cascade is not None:
        body["itemsUpdated"] = cascade.modified
        body["cascadeComplete"] = cascade.complete
        if not cascade.complete:
            body["message"] = "Category updated, but item availability could not be fully updated. Please retry."
    return body


@router.delete("/menu/category/{category_id}")
def delete_category(category_id: str):
    doc, deleted = catalog.delete_category(category_id)
    return {
        "success": True,
        "message": f"Category \"{doc['name']}\" and {deleted} associated item(s) deleted successfully.",
        "deletedCategory": MenuCategoryOut(**serialize(doc)).dump(),
    }


@router.get("/menu/categories/{category_id}/items")
def list_items(category_id: str, paging: PageParams = Depends()):
    items, meta = catalog.list_items(category_id, paging.page, paging.limit)
    return {
        "success": True,
        "message": "Items fetched" if items else "No items yet",
        **meta,
        "items": [MenuItemOut(**serialize(i)).dump() for i in items],
    }


@router.post("/menu/categories/{category_id}/items", status_code=201)
def add_item(category_id: str, item: MenuItemIn):
    doc, category = catalog.create_item(category_id, item.model_dump())
    return {
        "success": True,
        "message": f"Item \"{doc['name']}\" added successfully under \"{category['name']}\" category!",
        "item": MenuItemOut(**serialize(doc)).dump(),
    }


@router.put("/menu/items/{item_id}")
def update_item(item_id: str, changes: MenuItemUpdate):
    doc = catalog.update_item(item_id, changes.model_dump(exclude_none=True))
    return {
        "success": True,
        "message": "Item updated successfully!",
        "updatedItem": MenuItemOut(**serialize(doc)).dump(),
    }


@router.delete("/menu/items/{item_id}")
def delete_item(item_id: str):
    doc, category_name = catalog.delete_item(item_id)
    return {
        "success": True,
        "message": f"Item \"{doc['name']}\" deleted successfully from category \"{category_name}\".",
        "deletedItem": MenuItemOut(**serialize(doc)).dump(),
    }


# ============== ORDERS ==================
@router.get("/orders")
def list_orders(status: Optional[str] = None, paging: PageParams = Depends()):
    docs, meta = orders.list_orders(status, paging.page, paging.limit)
    return {
        "success": True,
        "message": "Orders fetched" if docs else "No orders yet",
        **meta,
        "orders": [OrderOut(**serialize(o)).dump() for o in docs],
    }


@router.get("/orders/{order_id}")
def get_order(order_id: str):
    order = orders.get_order(order_id)
    return {
        "success": True,
        "message": "Order fetched successfully!",
        "order": OrderOut(**serialize(order)).dump(),
    }


@router.put("/orders/{order_id}/status")
def update_order_status(order_id: str, body: StatusUpdate):
    order = orders.set_status(order_id, body.status)
    return {
        "success": True,
        "message": "Order status updated successfully.",
        "order": OrderOut(**serialize(order)).dump(),
    }


# ============== RESERVATIONS ==================
@router.get("/reservations")
def list_reservations(paging: PageParams = Depends()):
    docs, meta = reservations.list_reservations(paging.page, paging.limit)
    return {
        "success": True,
        "message": "Reservations fetched" if docs else "No reservations yet",
        **meta,
        "reservations": [ReservationOut(**serialize(r)).dump() for r in docs],
    }


@router.get("/reservation/{reservation_id}")
def get_reservation(reservation_id: str):
    doc = reservations.get_reservation(reservation_id)
    return {
        "success": True,
        "message": "Reservation fetched successfully!",
        "reservation": ReservationOut(**serialize(doc)).dump(),
    }


@router.put("/reservation/{reservation_id}/status")
def update_reservation_status(reservation_id: str, body: StatusUpdate):
    doc = reservations.set_status(reservation_id, body.status)
    return {
        "success": True,
        "message": "Reservation status updated successfully.",
        "reservation": ReservationOut(**serialize(doc)).dump(),
    }


# ============== REVIEWS ==================
@router.get("/reviews")
def list_reviews(paging: PageParams = Depends()):
    docs, meta = reviews.list_reviews(paging.page, paging.limit)
    return {
        "success": True,
        "message": "Reviews fetched" if docs else "No reviews yet",
        **meta,
        "reviews": [ReviewOut(**serialize(r)).dump() for r in docs],
    }


@router.delete("/reviews/{review_id}")
def delete_review(review_id: str):
    doc = reviews.delete_review(review_id)
    return {
        "success": True,
        "message": "Review deleted successfully.",
        "deletedReview": ReviewOut(**serialize(doc)).dump(),
    }


# ============== ANALYTICS ==================
@router.get("/analytics/overview")
def analytics_overview():
    return {
        "success": True,
        "message": "Analytics fetched successfully.",
        "data": analytics.overview(),
    }
