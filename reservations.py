from __future__ import annotations
from datetime import datetime, time
from typing import Any, Dict

import database
from database import RESERVATIONS
from schemas import ReservationCreate
from transitions import RESERVATION_TRANSITIONS, apply_transition, customer_cancel, transition


def create_reservation(user_id: str, reservation: ReservationCreate) -> Dict[str, Any]:
    # BSON has no plain date type; store midnight of the reserved day.
    return database.create_document(RESERVATIONS, {
        "user_id": user_id,
        "name": reservation.name,
        "people_count": reservation.people_count,
        "date": datetime.combine(reservation.date, time.min),
        "time": reservation.time,
        "special_request": reservation.special_request,
        "status": RESERVATION_TRANSITIONS.initial.value,
    })


def list_user_reservations(user_id: str, page: int, limit: int):
    return database.paginate(RESERVATIONS, {"user_id": user_id}, page, limit)


def list_reservations(page: int, limit: int):
    return database.paginate(RESERVATIONS, {}, page, limit)


def get_reservation(reservation_id) -> Dict[str, Any]:
    return database.find_by_id(RESERVATIONS, reservation_id, "Reservation")


def set_status(reservation_id, requested: str) -> Dict[str, Any]:
    return apply_transition(
        RESERVATIONS, "Reservation", reservation_id,
        lambda r: transition(RESERVATION_TRANSITIONS, r["status"], requested),
    )


def cancel(reservation_id, user_id: str) -> Dict[str, Any]:
    return apply_transition(
        RESERVATIONS, "Reservation", reservation_id,
        lambda r: customer_cancel(RESERVATION_TRANSITIONS, r["status"], r["user_id"], user_id),
    )
