from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import database
from database import ORDERS, RESERVATIONS
from transitions import OrderStatus, ReservationStatus


def daily_orders(since: datetime) -> List[Dict[str, Any]]:
    """Order count and Completed revenue per calendar day, oldest first."""
    rows = database.collection(ORDERS).aggregate([
        {"$match": {"created_at": {"$gte": since}}},
        {"$group": {
            "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$created_at"}},
            "orders": {"$sum": 1},
            "revenue": {"$sum": {
                "$cond": [{"$eq": ["$status", OrderStatus.COMPLETED.value]}, "$total_amount", 0],
            }},
        }},
        {"$sort": {"_id": 1}},
    ])
    return [
        {
            "date": row["_id"],
            "day": datetime.strptime(row["_id"], "%Y-%m-%d").strftime("%a"),
            "orders": row["orders"],
            "revenue": float(row["revenue"]),
        }
        for row in rows
    ]


def overview(now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or database.utcnow()
    orders = database.collection(ORDERS)
    reservations = database.collection(RESERVATIONS)

    revenue = list(orders.aggregate([
        {"$match": {"status": OrderStatus.COMPLETED.value}},
        {"$group": {"_id": None, "total": {"$sum": "$total_amount"}}},
    ]))
    by_status = orders.aggregate([
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ])

    week_ago = (now - timedelta(days=7)).replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        "totalOrders": orders.count_documents({}),
        "totalRevenue": revenue[0]["total"] if revenue else 0,
        "totalReservations": reservations.count_documents({}),
        "activeReservations": reservations.count_documents({
            "status": {"$in": [ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value]},
        }),
        "ordersByStatus": [{"status": row["_id"], "count": row["count"]} for row in by_status],
        "dailyOrders": daily_orders(week_ago),
    }
