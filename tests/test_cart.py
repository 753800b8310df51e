"""Tests for cart aggregation."""
import pytest
from pymongo.errors import DuplicateKeyError

from cart import CartStore, count_entries, drop_item, merge_item, update_quantity
from database import CARTS
from errors import CartNotFound, FailureKind, ItemNotInCart


def ids(entries):
    return [str(e["item_id"]) for e in entries]


class TestPureAggregation:
    def test_merge_increments_existing_entry(self):
        entries = merge_item([], "pizza-1", 2).value
        entries = merge_item(entries, "pizza-1", 3).value
        assert entries == [{"item_id": "pizza-1", "quantity": 5}]

    def test_merge_appends_new_entry(self):
        entries = merge_item([{"item_id": "pizza-1", "quantity": 1}], "coke", 1).value
        assert ids(entries) == ["pizza-1", "coke"]

    def test_merge_rejects_non_positive_quantity(self):
        assert merge_item([], "pizza-1", 0).failure is FailureKind.VALIDATION

    def test_update_quantity_overwrites(self):
        entries = update_quantity([{"item_id": "pizza-1", "quantity": 5}], "pizza-1", 2).value
        assert entries == [{"item_id": "pizza-1", "quantity": 2}]

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_update_quantity_to_zero_or_less_removes(self, quantity):
        entries = [{"item_id": "pizza-1", "quantity": 5}, {"item_id": "coke", "quantity": 1}]
        assert ids(update_quantity(entries, "pizza-1", quantity).value) == ["coke"]

    def test_update_quantity_unknown_item(self):
        assert update_quantity([], "pizza-1", 2).failure is FailureKind.ITEM_NOT_IN_CART

    def test_drop_is_idempotent(self):
        entries = [{"item_id": "pizza-1", "quantity": 5}, {"item_id": "coke", "quantity": 1}]
        once = drop_item(entries, "pizza-1")
        assert drop_item(once, "pizza-1") == once

    def test_count_is_distinct_entries(self):
        assert count_entries([{"item_id": "a", "quantity": 4}, {"item_id": "b", "quantity": 1}]) == 2


class TestCartStore:
    @pytest.fixture
    def store(self, db):
        return CartStore()

    def test_add_creates_cart_on_first_write(self, store, db):
        cart = store.add_item("u1", "pizza-1").unwrap()
        assert cart["items"] == [{"item_id": "pizza-1", "quantity": 1}]
        assert db[CARTS].count_documents({"user_id": "u1"}) == 1

    def test_add_same_item_twice_merges(self, store):
        store.add_item("u1", "pizza-1", 2)
        store.add_item("u1", "pizza-1", 3)
        assert store.get("u1")["items"] == [{"item_id": "pizza-1", "quantity": 5}]

    def test_no_duplicate_entries_after_mixed_operations(self, store):
        store.add_item("u1", "pizza-1", 1)
        store.add_item("u1", "coke", 1)
        store.set_quantity("u1", "pizza-1", 4)
        store.add_item("u1", "pizza-1", 1)
        store.set_quantity("u1", "coke", 0)
        store.add_item("u1", "coke", 2)
        items = store.get("u1")["items"]
        assert sorted(ids(items)) == ["coke", "pizza-1"]
        assert all(e["quantity"] >= 1 for e in items)

    def test_set_quantity_zero_removes_and_count_drops(self, store):
        store.add_item("u1", "pizza-1", 2)
        store.add_item("u1", "coke", 1)
        assert store.count("u1") == 2
        store.set_quantity("u1", "pizza-1", 0).unwrap()
        assert store.count("u1") == 1

    def test_set_quantity_without_cart(self, store):
        with pytest.raises(CartNotFound):
            store.set_quantity("nobody", "pizza-1", 2).unwrap()

    def test_set_quantity_item_not_in_cart(self, store):
        store.add_item("u1", "pizza-1")
        with pytest.raises(ItemNotInCart):
            store.set_quantity("u1", "coke", 2).unwrap()

    def test_remove_twice_same_as_once(self, store):
        store.add_item("u1", "pizza-1")
        store.add_item("u1", "coke")
        once = store.remove_item("u1", "pizza-1").unwrap()["items"]
        twice = store.remove_item("u1", "pizza-1").unwrap()["items"]
        assert once == twice == [{"item_id": "coke", "quantity": 1}]

    def test_remove_without_cart_is_noop(self, store, db):
        assert store.remove_item("nobody", "pizza-1").ok
        assert db[CARTS].count_documents({}) == 0

    def test_count_without_cart(self, store):
        assert store.count("nobody") == 0

    def test_stale_write_is_rejected(self, store, db):
        store.add_item("u1", "pizza-1")
        stale = store.get("u1")
        db[CARTS].update_one({"user_id": "u1"}, {"$inc": {"version": 1}})
        assert store._write(stale, []) is None
        assert store.get("u1")["items"] == [{"item_id": "pizza-1", "quantity": 1}]

    def test_add_retries_after_concurrent_write(self, store, db):
        store.add_item("u1", "pizza-1", 1)
        write = store._write
        raced = []

        def racing_write(cart, entries):
            if not raced:
                raced.append(True)
                db[CARTS].update_one(
                    {"user_id": "u1"},
                    {"$set": {"items": [{"item_id": "pizza-1", "quantity": 5}]}, "$inc": {"version": 1}},
                )
            return write(cart, entries)

        store._write = racing_write
        cart = store.add_item("u1", "pizza-1", 2).unwrap()
        assert cart["items"] == [{"item_id": "pizza-1", "quantity": 7}]

    def test_add_recovers_when_cart_created_concurrently(self, store, db, monkeypatch):
        carts = db[CARTS]

        class LosingUpsert:
            def find_one_and_update(self, *args, **kwargs):
                carts.insert_one({"user_id": "u1", "items": [{"item_id": "pizza-1", "quantity": 2}], "version": 0})
                raise DuplicateKeyError("E11000 duplicate key error collection: cart index: user_id_1")

            def __getattr__(self, name):
                return getattr(carts, name)

        monkeypatch.setattr(CartStore, "col", property(lambda self: LosingUpsert()))
        cart = store.add_item("u1", "pizza-1", 1).unwrap()
        assert cart["items"] == [{"item_id": "pizza-1", "quantity": 3}]
        assert carts.count_documents({"user_id": "u1"}) == 1
