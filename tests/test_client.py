"""API client error mapping."""

import httpx
import pytest

from conftest import line
from tapgo.client.api import ApiUnavailableError, TapGoClient, raise_for_error
from tapgo.core.exceptions import NotFoundError, StoreError, TapGoError, ValidationError


def response(status, body=None):
    return httpx.Response(status, json=body, request=httpx.Request("GET", "http://test/api/orders"))


def test_success_passes():
    raise_for_error(response(200, {"success": True}))


@pytest.mark.parametrize("status, body, error_cls", [
    (400, {"success": False, "error": "quantity: too large"}, ValidationError),
    (404, {"success": False, "error": "Order #3 not found"}, NotFoundError),
    (500, {"success": False, "error": "Failed to create order", "message": "boom"}, StoreError),
    (503, None, StoreError),
    (409, {"error": "Conflict"}, TapGoError),
])
def test_error_mapping(status, body, error_cls):
    with pytest.raises(error_cls) as exc_info:
        raise_for_error(response(status, body))

    assert exc_info.value.message


def test_validation_message_is_verbatim():
    with pytest.raises(ValidationError) as exc_info:
        raise_for_error(response(400, {"success": False, "error": "customerName: Field required"}))

    assert exc_info.value.message == "customerName: Field required"


def test_store_error_keeps_detail():
    with pytest.raises(StoreError) as exc_info:
        raise_for_error(response(500, {"error": "Failed to create order", "message": "m", "detail": "locked"}))

    assert exc_info.value.detail == "locked"


async def test_unreachable_server():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://test")
    async with TapGoClient(client=client) as api:
        with pytest.raises(ApiUnavailableError):
            await api.list_orders()
    await client.aclose()


async def test_client_raises_not_found(api):
    with pytest.raises(NotFoundError) as exc_info:
        await api.get_order(42)

    assert exc_info.value.message == "Order #42 not found"


async def test_export_through_client(api, seed):
    await seed(line())

    content = await api.export_orders()

    assert content[:2] == b"PK"
