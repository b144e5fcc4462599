import random
import uuid
from decimal import Decimal

from app.cart import Cart
from app.models import MenuItem


def make_item(price, promotional_price=None, name=None):
    return MenuItem(
        id=uuid.uuid4(),
        name=name or f"item-{price}",
        price=Decimal(price),
        promotional_price=Decimal(promotional_price) if promotional_price is not None else None,
    )


class TestCartAdd:
    def test_add_new_item_inserts_quantity_one(self):
        cart = Cart()
        item = make_item("10.00")
        cart.add(item)
        assert len(cart) == 1
        assert cart.quantity_of(item.id) == 1

    def test_adding_same_item_twice_increments_single_entry(self):
        cart = Cart()
        item = make_item("10.00")
        cart.add(item)
        cart.add(item)
        assert len(cart) == 1
        assert cart.quantity_of(item.id) == 2

    def test_promotional_price_is_used_when_set(self):
        cart = Cart()
        line = cart.add(make_item("12.00", promotional_price="9.00"))
        assert line.unit_price == Decimal("9.00")

    def test_price_snapshot_survives_catalog_edit(self):
        cart = Cart()
        item = make_item("10.00")
        cart.add(item)
        item.price = Decimal("99.00")
        cart.add(item)
        assert cart.lines[0].unit_price == Decimal("10.00")
        assert cart.total() == Decimal("20.00")

    def test_add_with_quantity(self):
        cart = Cart()
        item = make_item("3.00")
        cart.add(item, quantity=4)
        assert cart.total() == Decimal("12.00")


class TestCartQuantities:
    def test_scenario_total_and_removal_by_decrement(self):
        cart = Cart()
        first = make_item("10.00")
        second = make_item("5.00")
        cart.add(first)
        cart.add(first)
        cart.add(second)
        assert cart.total() == Decimal("25.00")

        cart.change_quantity(first.id, -2)
        assert cart.quantity_of(first.id) == 0
        assert [line.menu_item_id for line in cart] == [second.id]
        assert cart.total() == Decimal("5.00")

    def test_change_to_exactly_zero_removes_entry(self):
        cart = Cart()
        item = make_item("10.00")
        cart.add(item)
        cart.change_quantity(item.id, -1)
        assert cart.is_empty

    def test_change_quantity_unknown_item_is_noop(self):
        cart = Cart()
        cart.add(make_item("1.00"))
        cart.change_quantity(uuid.uuid4(), 3)
        assert len(cart) == 1

    def test_remove_absent_item_is_noop(self):
        cart = Cart()
        cart.remove(uuid.uuid4())
        assert cart.is_empty

    def test_insertion_order_preserved(self):
        cart = Cart()
        items = [make_item(p) for p in ("1.00", "2.00", "3.00")]
        for item in items:
            cart.add(item)
        cart.change_quantity(items[0].id, 5)
        cart.add(items[1])
        cart.remove(items[1].id)
        assert [line.menu_item_id for line in cart] == [items[0].id, items[2].id]

    def test_clear(self):
        cart = Cart()
        cart.add(make_item("1.00"))
        cart.clear()
        assert cart.is_empty
        assert cart.total() == Decimal("0")

    def test_random_operations_keep_total_consistent(self):
        rng = random.Random(1234)
        items = [make_item(f"{rng.randint(1, 50)}.{rng.randint(0, 99):02d}") for _ in range(5)]
        cart = Cart()
        for _ in range(300):
            item = rng.choice(items)
            op = rng.choice(["add", "change", "remove"])
            if op == "add":
                cart.add(item)
            elif op == "change":
                cart.change_quantity(item.id, rng.randint(-3, 3))
            else:
                cart.remove(item.id)

            assert all(line.quantity > 0 for line in cart)
            assert cart.total() == sum(
                (line.unit_price * line.quantity for line in cart), Decimal("0")
            )
