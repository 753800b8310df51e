"""Tests for the order and reservation status tables."""
from datetime import datetime
from itertools import product

import pytest

import config
import database
import orders
import transitions
from database import ORDERS
from errors import FailureKind, IllegalTransition, Internal, InvalidTarget, TerminalState
from transitions import (
    ORDER_TRANSITIONS,
    RESERVATION_TRANSITIONS,
    OrderStatus,
    ReservationStatus,
    customer_cancel,
    transition,
)

ORDER_ALLOWED = {
    ("Pending", "Preparing"), ("Pending", "Cancelled"),
    ("Preparing", "Ready"), ("Preparing", "Cancelled"),
    ("Ready", "Completed"), ("Ready", "Cancelled"),
}
RESERVATION_ALLOWED = {
    ("Pending", "Confirmed"), ("Pending", "Cancelled"),
    ("Confirmed", "Completed"), ("Confirmed", "Cancelled"),
}


@pytest.mark.parametrize("current,target", list(product([s.value for s in OrderStatus], repeat=2)))
def test_order_table(current, target):
    outcome = transition(ORDER_TRANSITIONS, current, target)
    if (current, target) in ORDER_ALLOWED:
        assert outcome.ok
        assert outcome.value == target
    elif current in ("Completed", "Cancelled"):
        assert outcome.failure is FailureKind.TERMINAL_STATE
    else:
        assert outcome.failure is FailureKind.ILLEGAL_TRANSITION


@pytest.mark.parametrize("current,target", list(product([s.value for s in ReservationStatus], repeat=2)))
def test_reservation_table(current, target):
    outcome = transition(RESERVATION_TRANSITIONS, current, target)
    if (current, target) in RESERVATION_ALLOWED:
        assert outcome.ok
        assert outcome.value == target
    elif current in ("Completed", "Cancelled"):
        assert outcome.failure is FailureKind.TERMINAL_STATE
    else:
        assert outcome.failure is FailureKind.ILLEGAL_TRANSITION


@pytest.mark.parametrize("current", ["Pending", "Ready", "Completed", "Cancelled"])
def test_unknown_target_is_invalid_regardless_of_current(current):
    outcome = transition(ORDER_TRANSITIONS, current, "Deleted")
    assert outcome.failure is FailureKind.INVALID_TARGET
    with pytest.raises(InvalidTarget):
        outcome.unwrap()


def test_terminal_states():
    assert ORDER_TRANSITIONS.terminal == {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    assert RESERVATION_TRANSITIONS.terminal == {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}


def test_illegal_transition_lists_allowed_moves():
    outcome = transition(ORDER_TRANSITIONS, "Pending", "Completed")
    assert outcome.detail == "Invalid transition. Allowed: Preparing, Cancelled."
    with pytest.raises(IllegalTransition):
        outcome.unwrap()


def test_terminal_state_message():
    outcome = transition(RESERVATION_TRANSITIONS, "Cancelled", "Confirmed")
    assert outcome.detail == "Cannot change status from Cancelled."
    with pytest.raises(TerminalState):
        outcome.unwrap()


class TestCustomerCancel:
    def test_owner_can_cancel_pending(self):
        outcome = customer_cancel(ORDER_TRANSITIONS, "Pending", "u1", "u1")
        assert outcome.ok
        assert outcome.value == "Cancelled"

    def test_other_user_is_forbidden(self):
        outcome = customer_cancel(ORDER_TRANSITIONS, "Pending", "u1", "u2")
        assert outcome.failure is FailureKind.FORBIDDEN

    @pytest.mark.parametrize("current", ["Preparing", "Ready"])
    def test_only_pending_orders(self, current):
        outcome = customer_cancel(ORDER_TRANSITIONS, current, "u1", "u1")
        assert outcome.failure is FailureKind.ILLEGAL_TRANSITION
        assert outcome.detail == "Only pending orders can be cancelled."

    def test_admin_table_still_allows_ready_to_cancelled(self):
        assert transition(ORDER_TRANSITIONS, "Ready", "Cancelled").value == "Cancelled"

    def test_confirmed_reservation_not_customer_cancellable(self):
        outcome = customer_cancel(RESERVATION_TRANSITIONS, "Confirmed", "u1", "u1")
        assert outcome.failure is FailureKind.ILLEGAL_TRANSITION
        assert outcome.detail == "Only pending reservations can be cancelled."

    def test_already_cancelled_is_terminal(self):
        outcome = customer_cancel(ORDER_TRANSITIONS, "Cancelled", "u1", "u1")
        assert outcome.failure is FailureKind.TERMINAL_STATE


class TestStatusWrites:
    @pytest.fixture
    def order_id(self, db):
        return db[ORDERS].insert_one({
            "user_id": "u1",
            "items": [],
            "total_amount": 250.0,
            "status": "Pending",
            "created_at": datetime(2026, 10, 19, 12, 0),
        }).inserted_id

    def test_cancel_decides_again_after_concurrent_change(self, db, order_id, monkeypatch):
        read = database.find_by_id
        raced = []

        def racing_read(*args, **kwargs):
            doc = read(*args, **kwargs)
            if not raced:
                raced.append(True)
                db[ORDERS].update_one({"_id": order_id}, {"$set": {"status": "Preparing"}})
            return doc

        monkeypatch.setattr(transitions.database, "find_by_id", racing_read)
        with pytest.raises(IllegalTransition) as exc:
            orders.cancel(str(order_id), "u1")
        assert exc.value.message == "Only pending orders can be cancelled."
        assert db[ORDERS].find_one({"_id": order_id})["status"] == "Preparing"

    def test_admin_change_applies_to_fresh_status(self, db, order_id, monkeypatch):
        read = database.find_by_id
        raced = []

        def racing_read(*args, **kwargs):
            doc = read(*args, **kwargs)
            if not raced:
                raced.append(True)
                db[ORDERS].update_one({"_id": order_id}, {"$set": {"status": "Preparing"}})
            return doc

        monkeypatch.setattr(transitions.database, "find_by_id", racing_read)
        order = orders.set_status(str(order_id), "Cancelled")
        assert order["status"] == "Cancelled"
        assert db[ORDERS].find_one({"_id": order_id})["status"] == "Cancelled"

    def test_gives_up_after_repeated_conflicts(self, db, order_id, monkeypatch):
        db[ORDERS].update_one({"_id": order_id}, {"$set": {"status": "Preparing"}})
        read = database.find_by_id
        reads = []

        def stale_read(*args, **kwargs):
            reads.append(True)
            return {**read(*args, **kwargs), "status": "Pending"}

        monkeypatch.setattr(transitions.database, "find_by_id", stale_read)
        with pytest.raises(Internal):
            orders.set_status(str(order_id), "Cancelled")
        assert len(reads) == config.WRITE_RETRIES
        assert db[ORDERS].find_one({"_id": order_id})["status"] == "Preparing"
