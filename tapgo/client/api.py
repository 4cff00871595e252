"""
TapGo API Client

Async httpx client for the ordering API, shared by the cart, kitchen display
and admin console models. Error responses are raised as the same exception
classes the server uses, so callers handle one taxonomy on both sides.

Usage:
    async with TapGoClient("http://localhost:8001") as api:
        orders = await api.list_orders()

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Any, Optional

import httpx

from tapgo.core.config import get_settings
from tapgo.core.exceptions import NotFoundError, StoreError, TapGoError, ValidationError
from tapgo.schemas import (
    MenuResponse,
    MessageResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderLineOut,
    OrderPageResponse,
    OrderUpdate,
    Statistics,
    StatisticsResponse,
)

logger = logging.getLogger(__name__)


class ApiUnavailableError(TapGoError):
    """The server could not be reached or answered with garbage."""
    status_code = 503
    error = "Service unavailable"


def raise_for_error(response: httpx.Response) -> None:
    """Raise the matching TapGoError for a non-2xx response."""
    if response.is_success:
        return

    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    error = body.get("error") or response.reason_phrase
    message = body.get("message") or error

    if response.status_code == 400:
        raise ValidationError(error)
    if response.status_code == 404:
        raise NotFoundError(error)
    if response.status_code >= 500:
        raise StoreError(message, detail=body.get("detail"))

    exc = TapGoError(message)
    exc.status_code = response.status_code
    raise exc


class TapGoClient:
    """Thin typed wrapper over the JSON API."""

    def __init__(
        self,
        base_url: str = "",
        prefix: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.prefix = settings.api_prefix if prefix is None else prefix
        self._owns_client = client is None
        self.http = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout or settings.client_timeout_seconds,
        )

    async def __aenter__(self) -> "TapGoClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.prefix}{path}"
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise ApiUnavailableError(f"Could not reach the ordering service: {e}") from e

        raise_for_error(response)
        return response

    async def _json(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ApiUnavailableError("Malformed response from the ordering service") from e

    # =========================================================================
    # CUSTOMER
    # =========================================================================

    async def submit_order(self, order: Any) -> OrderCreateResponse:
        if isinstance(order, OrderCreate):
            order = order.model_dump(by_alias=True)
        data = await self._json("POST", "/orders", json=order)
        return OrderCreateResponse.model_validate(data)

    async def get_menu(self) -> MenuResponse:
        return MenuResponse.model_validate(await self._json("GET", "/menu"))

    # =========================================================================
    # KITCHEN
    # =========================================================================

    async def list_orders(self) -> list[OrderLineOut]:
        data = await self._json("GET", "/orders")
        return OrderListResponse.model_validate(data).orders

    # =========================================================================
    # ADMIN
    # =========================================================================

    async def search_orders(
        self,
        filters: Optional[dict[str, Any]] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> OrderPageResponse:
        params = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        params["page"] = page
        if limit is not None:
            params["limit"] = limit
        data = await self._json("GET", "/admin/orders", params=params)
        return OrderPageResponse.model_validate(data)

    async def get_order(self, order_id: int) -> OrderLineOut:
        data = await self._json("GET", f"/admin/orders/{order_id}")
        return OrderDetailResponse.model_validate(data).order

    async def update_order(self, order_id: int, fields: Any) -> MessageResponse:
        if isinstance(fields, OrderUpdate):
            fields = fields.model_dump()
        data = await self._json("PUT", f"/admin/orders/{order_id}", json=fields)
        return MessageResponse.model_validate(data)

    async def delete_order(self, order_id: int) -> MessageResponse:
        data = await self._json("DELETE", f"/admin/orders/{order_id}")
        return MessageResponse.model_validate(data)

    async def get_statistics(self) -> Statistics:
        data = await self._json("GET", "/admin/statistics")
        return StatisticsResponse.model_validate(data).statistics

    async def export_orders(self, filters: Optional[dict[str, Any]] = None) -> bytes:
        params = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        response = await self._request("GET", "/admin/orders/export", params=params)
        return response.content
