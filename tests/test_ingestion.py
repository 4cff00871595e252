"""Cart submission: validation, batch atomicity and the order ceiling."""

import pytest

from conftest import line
from tapgo.core.exceptions import InsertionError, ValidationError
from tapgo.services.ingestion import OrderIngestionService
from tapgo.services.order_store import OrderStore


WANG_CART = {
    "customerName": "Wang",
    "items": [
        {"name": "Tea", "price": 50, "quantity": 2},
        {"name": "Rice", "price": 80, "quantity": 1},
    ],
}


async def test_submit_cart_stores_one_row_per_item(session):
    service = OrderIngestionService(session, ceiling=600)

    result = await service.submit_cart(WANG_CART)

    assert result.item_count == 2
    assert result.total_amount == 180
    assert result.order_reference_id == result.lines[0].id

    rows = await OrderStore(session).list_all()
    assert len(rows) == 2
    assert sorted((r.item_name, r.subtotal) for r in rows) == [("Rice", 80), ("Tea", 100)]
    assert sum(r.subtotal for r in rows) == result.total_amount
    assert {r.customer_name for r in rows} == {"Wang"}
    assert all(r.table_number is None for r in rows)
    assert all(r.created_at is not None for r in rows)


async def test_submit_cart_accepts_snake_case_and_numeric_table(session):
    service = OrderIngestionService(session)

    result = await service.submit_cart({
        "customer_name": "  Li  ",
        "table_number": 5,
        "items": [{"name": "Tea", "price": 50, "quantity": 1}],
    })

    row = result.lines[0]
    assert row.customer_name == "Li"
    assert row.table_number == "5"


@pytest.mark.parametrize("quantity", [1, 9])
async def test_quantity_boundaries_accepted(session, quantity):
    service = OrderIngestionService(session, ceiling=600)
    cart = {"customerName": "Wang", "items": [{"name": "Tea", "price": 50, "quantity": quantity}]}

    result = await service.submit_cart(cart)

    assert result.lines[0].quantity == quantity


@pytest.mark.parametrize("quantity", [0, 10, -1])
async def test_quantity_out_of_range_rejected(session, quantity):
    service = OrderIngestionService(session)
    cart = {"customerName": "Wang", "items": [{"name": "Tea", "price": 50, "quantity": quantity}]}

    with pytest.raises(ValidationError) as exc_info:
        await service.submit_cart(cart)

    assert "quantity" in exc_info.value.message
    assert await OrderStore(session).list_all() == []


@pytest.mark.parametrize("cart", [
    {"customerName": "", "items": [{"name": "Tea", "price": 50, "quantity": 1}]},
    {"customerName": "   ", "items": [{"name": "Tea", "price": 50, "quantity": 1}]},
    {"items": [{"name": "Tea", "price": 50, "quantity": 1}]},
    {"customerName": "Wang", "items": []},
    {"customerName": "Wang", "items": [{"name": "", "price": 50, "quantity": 1}]},
    {"customerName": "Wang", "items": [{"name": "Tea", "price": 0, "quantity": 1}]},
    {"customerName": "Wang", "items": [{"name": "Tea", "quantity": 1}]},
])
async def test_invalid_carts_rejected(session, cart):
    service = OrderIngestionService(session)

    with pytest.raises(ValidationError):
        await service.submit_cart(cart)

    assert await OrderStore(session).list_all() == []


async def test_one_bad_item_rejects_whole_cart(session):
    service = OrderIngestionService(session)
    cart = {
        "customerName": "Wang",
        "items": [
            {"name": "Tea", "price": 50, "quantity": 2},
            {"name": "Rice", "price": 80, "quantity": 10},
        ],
    }

    with pytest.raises(ValidationError):
        await service.submit_cart(cart)

    assert await OrderStore(session).list_all() == []


async def test_failed_batch_insert_keeps_no_rows(session):
    store = OrderStore(session)

    # The last row violates the quantity check constraint in the database
    with pytest.raises(InsertionError) as exc_info:
        await store.insert_batch([
            line(item="Tea", quantity=2),
            line(item="Rice", price=80, quantity=1),
            line(item="Noodles", price=180, quantity=10),
        ])

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail
    assert await store.list_all() == []


async def test_cart_over_ceiling_rejected(session):
    service = OrderIngestionService(session, ceiling=600, ceiling_message="Please order at the counter")
    cart = {"customerName": "Wang", "items": [{"name": "Set Meal", "price": 130, "quantity": 5}]}

    with pytest.raises(ValidationError) as exc_info:
        await service.submit_cart(cart)

    assert "Please order at the counter" in exc_info.value.message
    assert "650" in exc_info.value.message
    assert await OrderStore(session).list_all() == []


async def test_cart_at_ceiling_accepted(session):
    service = OrderIngestionService(session, ceiling=600)
    cart = {"customerName": "Wang", "items": [{"name": "Set Meal", "price": 120, "quantity": 5}]}

    result = await service.submit_cart(cart)

    assert result.total_amount == 600


async def test_no_ceiling_accepts_large_cart(session):
    service = OrderIngestionService(session)
    cart = {"customerName": "Wang", "items": [{"name": "Set Meal", "price": 130, "quantity": 5}]}

    result = await service.submit_cart(cart)

    assert result.total_amount == 650
