from decimal import Decimal
from types import SimpleNamespace

import pytest

from marketplace.cart.domain.models.cart import MAX_LINE_QUANTITY, Cart, CartItem, coerce_quantity
from marketplace.cart.infra.session_store import SESSION_CART_KEY, CartSessionStore


class FakeSession(dict):
    """Dict with the attributes CartSessionStore touches on a Django session."""

    modified = False
    session_key = "test-session"


def make_product(product_id, price, name=None):
    return SimpleNamespace(id=product_id, name=name or product_id.title(), price=Decimal(price))


@pytest.mark.unit
class TestCoerceQuantity:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (3, 3),
            ("4", 4),
            (None, 1),
            ("abc", 1),
            (0, 1),
            (-2, 1),
            ("", 1),
            ([1], 1),
            (10**10, MAX_LINE_QUANTITY),
            (float("inf"), 1),
        ],
    )
    def test_coerce_quantity(self, raw, expected):
        assert coerce_quantity(raw) == expected


@pytest.mark.unit
class TestCart:
    def test_new_cart_is_empty(self):
        cart = Cart()

        assert cart.is_empty is True
        assert cart.items_count == 0
        assert cart.total() == Decimal("0.00")

    def test_adding_same_product_merges_lines(self):
        cart = Cart()
        shirt = make_product("prod_1", "29.99")

        cart.add(shirt, 1)
        cart.add(shirt, 2)

        assert cart.items_count == 1
        assert cart.lines["prod_1"].quantity == 3

    def test_total_sums_line_subtotals(self):
        cart = Cart()
        cart.add(make_product("a", "10.00"), 2)
        cart.add(make_product("b", "5.00"), 1)

        assert cart.total() == Decimal("25.00")

    def test_add_coerces_bad_quantity(self):
        cart = Cart()
        line = cart.add(make_product("a", "10.00"), -5)

        assert line.quantity == 1

    def test_merged_quantity_is_capped(self):
        cart = Cart()
        product = make_product("a", "10.00")

        cart.add(product, MAX_LINE_QUANTITY - 1)
        line = cart.add(product, 5)

        assert line.quantity == MAX_LINE_QUANTITY
        assert cart.total() == Decimal("10.00") * MAX_LINE_QUANTITY

    def test_from_session_caps_quantities(self):
        data = {
            "items": [
                {"product_id": "a", "product_name": "A", "quantity": 10**12, "unit_price": "1.00"},
                {"product_id": "a", "product_name": "A", "quantity": 50, "unit_price": "1.00"},
            ]
        }

        assert Cart.from_session(data).lines["a"].quantity == MAX_LINE_QUANTITY

    def test_add_captures_price_at_add_time(self):
        cart = Cart()
        product = make_product("a", "10.00")
        cart.add(product, 1)

        product.price = Decimal("99.00")
        cart.add(product, 1)

        assert cart.lines["a"].unit_price == Decimal("10.00")
        assert cart.total() == Decimal("20.00")

    def test_remove(self):
        cart = Cart()
        cart.add(make_product("a", "10.00"), 1)

        assert cart.remove("a") is True
        assert cart.remove("a") is False
        assert cart.is_empty

    def test_random_sequence_keeps_invariants(self):
        cart = Cart()
        products = [make_product(f"p{i}", f"{i + 1}.50") for i in range(4)]
        operations = [("add", 0, 2), ("add", 1, 1), ("add", 0, 3), ("remove", 1, 0), ("add", 3, 4), ("add", 2, 1)]

        for op, index, quantity in operations:
            if op == "add":
                cart.add(products[index], quantity)
            else:
                cart.remove(products[index].id)

        ids = [line.product_id for line in cart.items]
        assert len(ids) == len(set(ids))
        assert cart.total() == sum((line.unit_price * line.quantity for line in cart.items), Decimal("0.00"))
        assert cart.lines["p0"].quantity == 5

    def test_session_round_trip(self):
        cart = Cart()
        cart.add(make_product("a", "10.00", name="Alpha"), 2)

        rebuilt = Cart.from_session(cart.to_session())

        assert rebuilt.lines["a"] == CartItem("a", "Alpha", 2, Decimal("10.00"))

    @pytest.mark.parametrize("data", ["garbage", {"items": "nope"}, {"items": [{"quantity": 1}]}])
    def test_from_session_rejects_malformed_data(self, data):
        with pytest.raises(ValueError):
            Cart.from_session(data)


@pytest.mark.unit
class TestCartSessionStore:
    def test_load_missing_cart_returns_empty(self):
        store = CartSessionStore(FakeSession())

        assert store.load().is_empty

    def test_save_and_load(self):
        session = FakeSession()
        store = CartSessionStore(session)
        cart = Cart()
        cart.add(make_product("a", "3.00"), 2)

        store.save(cart)

        assert session.modified is True
        assert SESSION_CART_KEY in session
        assert store.load().total() == Decimal("6.00")

    def test_unreadable_cart_is_discarded(self):
        session = FakeSession({SESSION_CART_KEY: ["not", "a", "cart"]})
        store = CartSessionStore(session)

        assert store.load().is_empty
        assert SESSION_CART_KEY not in session

    def test_clear(self):
        session = FakeSession({SESSION_CART_KEY: {"items": []}})

        CartSessionStore(session).clear()

        assert SESSION_CART_KEY not in session
