"""
Status transition engine for orders and reservations.

Each entity type has exactly one ``TransitionTable``. Both the admin path
("move to any allowed next status") and the customer path ("cancel my
pending order") go through ``transition`` with that table.
"""
from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Type

import config
import database
from errors import FailureKind, Internal, Outcome

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PREPARING = "Preparing"
    READY = "Ready"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ReservationStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class TransitionTable:
    def __init__(self, name: str, statuses: Type[Enum], allowed: Dict[Enum, FrozenSet[Enum]]):
        self.name = name
        self.statuses = statuses
        self.allowed = {status: frozenset(allowed.get(status, ())) for status in statuses}
        self.terminal = frozenset(s for s, nxt in self.allowed.items() if not nxt)
        self.initial = statuses("Pending")
        self.cancelled = statuses("Cancelled")

    def parse(self, value) -> Optional[Enum]:
        try:
            return self.statuses(value)
        except ValueError:
            return None

    def allowed_next(self, current: Enum) -> List[str]:
        return [s.value for s in self.statuses if s in self.allowed[current]]

    @property
    def values(self) -> List[str]:
        return [s.value for s in self.statuses]


ORDER_TRANSITIONS = TransitionTable("order", OrderStatus, {
    OrderStatus.PENDING: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
})

RESERVATION_TRANSITIONS = TransitionTable("reservation", ReservationStatus, {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED},
})


def transition(table: TransitionTable, current, requested) -> Outcome:
    """Validate ``current -> requested`` against ``table``; the new status is the outcome's value."""
    target = table.parse(requested)
    if target is None:
        return Outcome.fail(
            FailureKind.INVALID_TARGET,
            f"Invalid status value '{requested}'. Expected one of: {', '.join(table.values)}.",
        )

    state = table.parse(current)
    if state is None:
        return Outcome.fail(FailureKind.ILLEGAL_TRANSITION, f"Unknown current status '{current}'.")
    if state in table.terminal:
        return Outcome.fail(FailureKind.TERMINAL_STATE, f"Cannot change status from {state.value}.")

    if target not in table.allowed[state]:
        allowed = table.allowed_next(state)
        return Outcome.fail(
            FailureKind.ILLEGAL_TRANSITION,
            f"Invalid transition. Allowed: {', '.join(allowed) or 'none'}.",
        )
    return Outcome.success(target.value)


def customer_cancel(table: TransitionTable, current, owner_id: str, requester_id: str) -> Outcome:
    """Cancellation by the owner, allowed only while the entity is still in its initial status."""
    if owner_id != requester_id:
        return Outcome.fail(FailureKind.FORBIDDEN, f"You are not authorized to cancel this {table.name}.")

    state = table.parse(current)
    if state is not None and state not in table.terminal and state != table.initial:
        return Outcome.fail(FailureKind.ILLEGAL_TRANSITION, f"Only pending {table.name}s can be cancelled.")

    return transition(table, current, table.cancelled.value)


def apply_transition(
    collection_name: str,
    label: str,
    doc_id,
    decide: Callable[[dict], Outcome],
) -> dict:
    """
    Load a document, let ``decide`` pick its next status and persist it with a
    compare-and-set on the status it was read with.

    A lost race re-reads the document and decides again, so a concurrent
    writer can never be overwritten by a decision made on a stale status.
    """
    col = database.collection(collection_name)
    for attempt in range(1, config.WRITE_RETRIES + 1):
        doc = database.find_by_id(collection_name, doc_id, label)
        outcome = decide(doc)
        if not outcome.ok:
            logger.warning(
                "Rejected %s status change for %s: %s", label.lower(), doc["_id"], outcome.detail
            )
        new_status = outcome.unwrap()

        now = database.utcnow()
        res = col.update_one(
            {"_id": doc["_id"], "status": doc["status"]},
            {"$set": {"status": new_status, "updated_at": now}},
        )
        if res.matched_count:
            logger.info("%s %s: %s -> %s", label, doc["_id"], doc["status"], new_status)
            return {**doc, "status": new_status, "updated_at": now}

        logger.warning(
            "%s %s changed concurrently (attempt %d/%d)", label, doc["_id"], attempt, config.WRITE_RETRIES
        )

    raise Internal(f"{label} status update conflicted with concurrent writes.")
