from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

import catalog
import orders
import reservations
import reviews
from auth import Identity, get_current_user
from cart import CartStore
from database import CATEGORIES, serialize, collection, to_object_id
from errors import NotFound
from schemas import (
    CartAdd, CartOut, CartQuantity,
    InvoiceOut,
    MenuCategoryOut, MenuItemOut,
    OrderCreate, OrderOut,
    PageParams,
    ReservationCreate, ReservationOut,
    ReviewCreate, ReviewOut,
)

router = APIRouter(prefix="/api")
carts = CartStore()


def cart_payload(cart: Optional[Dict[str, Any]], user_id: str) -> Dict[str, Any]:
    if not cart:
        return {"id": "", "userId": user_id, "items": [], "updatedAt": None}
    resolved = {**cart, "items": catalog.resolve_items(cart.get("items", []))}
    return CartOut(**serialize(resolved)).dump()


# ============== MENU (public) ==================
@router.get("/menu/categories")
def get_categories():
    categories = [MenuCategoryOut(**serialize(c)).dump() for c in catalog.list_categories()]
    return {
        "success": True,
        "message": "Menu categories fetched successfully." if categories else "No categories found.",
        "categories": categories,
    }


@router.get("/menu/category/{category_id}")
def get_category_items(category_id: str, paging: PageParams = Depends()):
    if not collection(CATEGORIES).find_one({"_id": to_object_id(category_id, "category ID")}):
        raise NotFound("Category not found.")
    items, meta = catalog.list_items(category_id, paging.page, paging.limit)
    return {
        "success": True,
        "message": "Items fetched." if items else "No items in this category.",
        **meta,
        "items": [MenuItemOut(**serialize(i)).dump() for i in items],
    }


@router.get("/menu/item/{item_id}")
def get_menu_item(item_id: str):
    item = catalog.get_item(item_id)
    return {
        "success": True,
        "message": "Menu item fetched successfully.",
        "menuItem": MenuItemOut(**serialize(item)).dump(),
    }


# ============== ORDERS ==================
@router.post("/orders", status_code=201)
def create_order(order: OrderCreate, user: Identity = Depends(get_current_user)):
    doc = orders.create_order(user.user_id, order)
    return {
        "success": True,
        "message": "Order placed successfully.",
        "order": OrderOut(**serialize(doc)).dump(),
    }


@router.get("/orders/my")
def my_orders(paging: PageParams = Depends(), user: Identity = Depends(get_current_user)):
    docs, meta = orders.list_user_orders(user.user_id, paging.page, paging.limit)
    return {
        "success": True,
        "message": "Orders fetched successfully." if docs else "No orders yet.",
        **meta,
        "orders": [OrderOut(**serialize(o)).dump() for o in docs],
    }


@router.get("/orders/{order_id}")
def get_order(order_id: str, user: Identity = Depends(get_current_user)):
    order = orders.get_order(order_id, user_id=user.user_id)
    return {
        "success": True,
        "message": "Order fetched successfully.",
        "order": OrderOut(**serialize(order)).dump(),
    }


@router.put("/orders/{order_id}")
def cancel_order(order_id: str, user: Identity = Depends(get_current_user)):
    order = orders.cancel(order_id, user.user_id)
    return {
        "success": True,
        "message": "Order cancelled successfully.",
        "order": OrderOut(**serialize(order)).dump(),
    }


@router.get("/orders/{order_id}/invoice")
def get_invoice(order_id: str, user: Identity = Depends(get_current_user)):
    order = orders.get_invoice_order(order_id, user.user_id)
    return {
        "success": True,
        "message": "Invoice generated.",
        "invoice": InvoiceOut(**orders.build_invoice(order)).dump(),
    }


# ============== RESERVATIONS ==================
@router.post("/reservations", status_code=201)
def create_reservation(reservation: ReservationCreate, user: Identity = Depends(get_current_user)):
    doc = reservations.create_reservation(user.user_id, reservation)
    return {
        "success": True,
        "message": "Reservation created successfully!",
        "reservation": ReservationOut(**serialize(doc)).dump(),
    }


@router.get("/reservations/my")
def my_reservations(paging: PageParams = Depends(), user: Identity = Depends(get_current_user)):
    docs, meta = reservations.list_user_reservations(user.user_id, paging.page, paging.limit)
    return {
        "success": True,
        "message": "Reservations fetched successfully." if docs else "No reservations yet.",
        **meta,
        "reservations": [ReservationOut(**serialize(r)).dump() for r in docs],
    }


@router.put("/reservations/{reservation_id}")
def cancel_reservation(reservation_id: str, user: Identity = Depends(get_current_user)):
    doc = reservations.cancel(reservation_id, user.user_id)
    return {
        "success": True,
        "message": "Reservation cancelled successfully.",
        "reservation": ReservationOut(**serialize(doc)).dump(),
    }


# ============== REVIEWS ==================
@router.post("/reviews", status_code=201)
def create_review(review: ReviewCreate, user: Identity = Depends(get_current_user)):
    doc = reviews.create_review(user.user_id, review)
    return {
        "success": True,
        "message": "Review added successfully!",
        "review": ReviewOut(**serialize(doc)).dump(),
    }


@router.get("/reviews")
def list_reviews(paging: PageParams = Depends()):
    docs, meta = reviews.list_reviews(paging.page, paging.limit)
    return {
        "success": True,
        "message": "Reviews fetched successfully." if docs else "No reviews yet.",
        **meta,
        "reviews": [ReviewOut(**serialize(r)).dump() for r in docs],
    }


@router.get("/me")
def me(user: Identity = Depends(get_current_user)):
    return {
        "success": True,
        "message": "User authenticated successfully",
        "user": {"userId": user.user_id},
    }


# ============== CART ==================
@router.post("/cart/add")
def add_to_cart(body: CartAdd, user: Identity = Depends(get_current_user)):
    item = catalog.get_item(body.item_id)
    cart = carts.add_item(user.user_id, item["_id"], body.quantity).unwrap()
    return {"success": True, "message": "Item added to cart", "cart": cart_payload(cart, user.user_id)}


@router.get("/cart/my")
def my_cart(user: Identity = Depends(get_current_user)):
    cart = carts.get(user.user_id)
    if not cart or not cart.get("items"):
        return {"success": True, "message": "Your cart is empty.", "items": []}
    return {"success": True, "message": "Cart fetched.", "cart": cart_payload(cart, user.user_id)}


@router.get("/cart/count")
def cart_count(user: Identity = Depends(get_current_user)):
    return {"success": True, "message": "Cart count fetched.", "count": carts.count(user.user_id)}


@router.put("/cart/{item_id}")
def update_cart_item(item_id: str, body: CartQuantity, user: Identity = Depends(get_current_user)):
    cart = carts.set_quantity(user.user_id, item_id, body.quantity).unwrap()
    return {"success": True, "message": "Cart updated", "cart": cart_payload(cart, user.user_id)}


@router.delete("/cart/{item_id}")
def remove_cart_item(item_id: str, user: Identity = Depends(get_current_user)):
    cart = carts.remove_item(user.user_id, item_id).unwrap()
    return {"success": True, "message": "Item removed", "cart": cart_payload(cart, user.user_id)}
