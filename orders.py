from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import config
import database
from catalog import resolve_items
from database import ITEMS, ORDERS
from errors import Forbidden, NotFound, ValidationError
from schemas import OrderCreate
from transitions import ORDER_TRANSITIONS, apply_transition, customer_cancel, transition

logger = logging.getLogger(__name__)


def create_order(user_id: str, order: OrderCreate) -> Dict[str, Any]:
    # Compute totals
    total = 0.0
    line_items = []
    for it in order.items:
        item = database.collection(ITEMS).find_one({"_id": database.to_object_id(it.item_id, "item ID")})
        if not item:
            raise NotFound(f"Item {it.item_id} not found")
        if not item.get("available", True):
            raise ValidationError(f"Item \"{item.get('name')}\" is not available right now.")
        total += float(item.get("price", 0)) * it.quantity
        line_items.append({"item_id": item["_id"], "quantity": it.quantity})

    doc = database.create_document(ORDERS, {
        "user_id": user_id,
        "items": line_items,
        "total_amount": round(total, 2),
        "status": ORDER_TRANSITIONS.initial.value,
        "payment_method": order.payment_method,
        "table_number": order.table_number,
        "customer_phone": order.customer_phone,
        "customer_email": order.customer_email,
        "order_notes": order.order_notes or "",
    })
    logger.info("Order %s placed by %s for %.2f", doc["_id"], user_id, doc["total_amount"])
    return doc


def with_items(order: Dict[str, Any]) -> Dict[str, Any]:
    return {**order, "items": resolve_items(order.get("items", []))}


def list_user_orders(user_id: str, page: int, limit: int):
    return database.paginate(ORDERS, {"user_id": user_id}, page, limit)


def list_orders(status: Optional[str], page: int, limit: int):
    query = {"status": status} if status else {}
    orders, meta = database.paginate(ORDERS, query, page, limit)
    return [with_items(o) for o in orders], meta


def get_order(order_id, user_id: Optional[str] = None) -> Dict[str, Any]:
    order = database.find_by_id(ORDERS, order_id, "Order")
    if user_id is not None and order["user_id"] != user_id:
        raise NotFound("Order not found.")
    return with_items(order)


def set_status(order_id, requested: str) -> Dict[str, Any]:
    return apply_transition(
        ORDERS, "Order", order_id,
        lambda order: transition(ORDER_TRANSITIONS, order["status"], requested),
    )


def cancel(order_id, user_id: str) -> Dict[str, Any]:
    return apply_transition(
        ORDERS, "Order", order_id,
        lambda order: customer_cancel(ORDER_TRANSITIONS, order["status"], order["user_id"], user_id),
    )


def get_invoice_order(order_id, user_id: str) -> Dict[str, Any]:
    order = get_order(order_id)
    if order["user_id"] != user_id:
        logger.warning("User %s requested invoice of order %s owned by another user", user_id, order["_id"])
        raise Forbidden("You are not authorized to view this invoice.")
    return order


def build_invoice(order: Dict[str, Any]) -> Dict[str, Any]:
    """Invoice figures for an order whose items were resolved with ``with_items``."""
    lines: List[Dict[str, Any]] = []
    for entry in order["items"]:
        item = entry.get("item") or {}
        price = float(item.get("price", 0))
        lines.append({
            "name": item.get("name", "Removed item"),
            "quantity": entry["quantity"],
            "unit_price": price,
            "line_total": round(price * entry["quantity"], 2),
        })

    subtotal = round(sum(line["line_total"] for line in lines), 2)
    gst = round(subtotal * config.GST_RATE, 2)
    total = round(subtotal + gst + config.SERVICE_FEE, 2)
    payment_uri = "upi://pay?" + urlencode({
        "pa": config.UPI_ID,
        "pn": config.UPI_PAYEE_NAME,
        "am": f"{total:.2f}",
        "cu": config.CURRENCY,
    })
    return {
        "order_id": str(order["_id"]),
        "customer": order["user_id"],
        "created_at": order["created_at"],
        "lines": lines,
        "subtotal": subtotal,
        "gst_rate": config.GST_RATE,
        "gst": gst,
        "service_fee": config.SERVICE_FEE,
        "total": total,
        "currency": config.CURRENCY,
        "payment_uri": payment_uri,
    }
