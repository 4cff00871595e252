"""Client cart: quantity clamps, persistence, ceiling gate and submission."""

import json

import pytest

from tapgo.client.cart import CartModel, CartStorage
from tapgo.core.exceptions import StoreError, ValidationError
from tapgo.schemas import MenuConfig, MenuResponse, OrderCreateResponse


class FakeApi:
    """Records submitted carts; optionally fails."""

    def __init__(self, error=None, ceiling=None):
        self.error = error
        self.ceiling = ceiling
        self.submitted = []

    async def submit_order(self, order):
        self.submitted.append(order)
        if self.error:
            raise self.error
        return OrderCreateResponse(
            message="Order placed successfully",
            order_id=1,
            total_amount=order.total_amount,
            item_count=len(order.items),
        )

    async def get_menu(self):
        return MenuResponse(menu={}, config=MenuConfig(order_ceiling=self.ceiling, ceiling_message="Too much"))


@pytest.fixture
def storage(tmp_path):
    return CartStorage(tmp_path / "cart.json")


@pytest.fixture
def cart(storage):
    return CartModel(storage, ceiling=600).load()


# =============================================================================
# MUTATIONS
# =============================================================================

def test_add_creates_line(cart):
    line = cart.add("Drinks", "Tea", 50, 2)

    assert line.key == ("Drinks", "Tea")
    assert cart.total == 100
    assert cart.item_count == 2


def test_repeat_add_merges_and_caps_at_nine(cart):
    cart.add("Drinks", "Tea", 50, 5)
    line = cart.add("Drinks", "Tea", 50, 7)

    assert line.quantity == 9
    assert len(cart.lines) == 1


def test_same_name_in_other_category_is_separate(cart):
    cart.add("Drinks", "Tea", 50)
    cart.add("Set Meals", "Tea", 50)

    assert len(cart.lines) == 2


@pytest.mark.parametrize("quantity", [1, 9])
def test_add_quantity_boundaries(cart, quantity):
    assert cart.add("Drinks", "Tea", 50, quantity).quantity == quantity


@pytest.mark.parametrize("quantity", [0, 10, -3])
def test_add_quantity_out_of_range(cart, quantity):
    with pytest.raises(ValidationError):
        cart.add("Drinks", "Tea", 50, quantity)
    assert cart.is_empty


@pytest.mark.parametrize("quantity", [1.5, "2"])
def test_add_quantity_must_be_whole_number(cart, quantity):
    with pytest.raises(ValidationError):
        cart.add("Drinks", "Tea", 50, quantity)
    assert cart.is_empty


@pytest.mark.parametrize("name, price", [
    ("", 50),
    ("  ", 50),
    ("Tea", 0),
    ("Tea", 12.5),
    ("Tea", "50"),
    ("Tea", True),
])
def test_add_invalid_item(cart, name, price):
    with pytest.raises(ValidationError):
        cart.add("Drinks", name, price)


def test_increment_and_decrement_clamp(cart):
    key = cart.add("Drinks", "Tea", 50, 8).key

    assert cart.increment(key) is True
    assert cart.increment(key) is False
    assert cart.lines[key].quantity == 9

    cart.add("Mains", "Rice", 80, 2)
    rice = ("Mains", "Rice")
    assert cart.decrement(rice) is True
    assert cart.decrement(rice) is False
    assert cart.lines[rice].quantity == 1


def test_adjust_missing_line(cart):
    assert cart.increment(("Drinks", "Tea")) is False
    assert cart.decrement(("Drinks", "Tea")) is False
    assert cart.remove(("Drinks", "Tea")) is False


def test_remove_and_clear(cart):
    cart.add("Drinks", "Tea", 50)
    cart.add("Mains", "Rice", 80)

    assert cart.remove(("Drinks", "Tea")) is True
    assert list(cart.lines) == [("Mains", "Rice")]

    cart.clear()
    assert cart.is_empty
    assert cart.total == 0


# =============================================================================
# PERSISTENCE
# =============================================================================

def test_every_mutation_is_persisted(storage, cart):
    cart.add("Drinks", "Tea", 50, 2)
    cart.increment(("Drinks", "Tea"))

    restored = CartModel(storage, ceiling=600).load()

    assert restored.lines[("Drinks", "Tea")].quantity == 3
    assert restored.total == 150


def test_load_drops_invalid_entries(tmp_path):
    path = tmp_path / "cart.json"
    path.write_text(json.dumps([
        {"name": "Tea", "price": 50, "quantity": 2, "category": "Drinks"},
        {"name": "Rice", "price": 80, "quantity": 12, "category": "Mains"},
        {"name": "Soup", "category": "Mains"},
    ]))

    cart = CartModel(CartStorage(path)).load()

    assert list(cart.lines) == [("Drinks", "Tea")]


def test_load_ignores_corrupt_file(tmp_path):
    path = tmp_path / "cart.json"
    path.write_text("{not json")

    cart = CartModel(CartStorage(path)).load()

    assert cart.is_empty


def test_missing_file_is_empty_cart(tmp_path):
    assert CartModel(CartStorage(tmp_path / "nested" / "cart.json")).load().is_empty


def test_cart_without_storage():
    cart = CartModel().load()
    cart.add("Drinks", "Tea", 50)

    assert cart.total == 50


# =============================================================================
# CEILING & SUBMISSION
# =============================================================================

def test_over_ceiling_blocks_submission(cart):
    cart.add("Set Meals", "Set Meal", 130, 5)

    assert cart.total == 650
    assert cart.over_ceiling
    assert not cart.can_submit("Wang")
    with pytest.raises(ValidationError):
        cart.check_submittable("Wang")


def test_at_ceiling_can_submit(cart):
    cart.add("Set Meals", "Set Meal", 120, 5)

    assert cart.can_submit("Wang")


def test_blank_name_or_empty_cart_blocks_submission(cart):
    assert not cart.can_submit("Wang")
    cart.add("Drinks", "Tea", 50)
    assert not cart.can_submit("   ")
    assert not cart.can_submit(None)


async def test_submit_clears_cart_on_success(storage, cart):
    cart.add("Drinks", "Tea", 50, 2)
    cart.add("Mains", "Rice", 80)
    api = FakeApi()

    response = await cart.submit(api, " Wang ", table_number="5")

    assert response.total_amount == 180
    assert response.item_count == 2
    [order] = api.submitted
    assert order.customer_name == "Wang"
    assert order.table_number == "5"
    assert cart.is_empty
    assert CartModel(storage).load().is_empty


async def test_submit_failure_keeps_cart(storage, cart):
    cart.add("Drinks", "Tea", 50, 2)
    api = FakeApi(error=StoreError("Failed to insert order lines"))

    with pytest.raises(StoreError):
        await cart.submit(api, "Wang")

    assert cart.total == 100
    assert CartModel(storage).load().total == 100


async def test_submit_over_ceiling_sends_nothing(cart):
    cart.add("Set Meals", "Set Meal", 130, 5)
    api = FakeApi()

    with pytest.raises(ValidationError):
        await cart.submit(api, "Wang")

    assert api.submitted == []
    assert cart.total == 650


async def test_refresh_ceiling_from_menu(cart):
    cart.add("Mains", "Beef Noodles", 180, 3)
    assert not cart.over_ceiling

    ceiling = await cart.refresh_ceiling(FakeApi(ceiling=500))

    assert ceiling == 500
    assert cart.over_ceiling
    assert cart.ceiling_message == "Too much"


async def test_submit_through_api(api):
    cart = CartModel(ceiling=600)
    cart.add("Drinks", "Tea", 50, 2)
    cart.add("Mains", "Rice", 80)

    response = await cart.submit(api, "Wang")

    assert response.total_amount == 180
    assert response.item_count == 2
    rows = await api.list_orders()
    assert sorted((r.item_name, r.quantity) for r in rows) == [("Rice", 1), ("Tea", 2)]
    assert cart.is_empty


async def test_submit_overlong_name_rejected_before_request(cart):
    cart.add("Drinks", "Tea", 50, 2)
    api = FakeApi()

    with pytest.raises(ValidationError) as exc_info:
        await cart.submit(api, "W" * 101)

    assert "100 characters" in exc_info.value.message
    assert api.submitted == []
    assert cart.total == 100


def test_order_payload_uses_checkout_schema(cart):
    cart.add("Drinks", "Tea", 50, 2)

    payload = cart.to_order_payload(" Wang ", table_number=5)

    assert payload.customer_name == "Wang"
    assert payload.table_number == "5"
    assert payload.total_amount == 100
