"""
Admin Console

Back-office model over the admin endpoints: search with filters, page through
results, edit or delete single order lines, and show statistics. A failed
load leaves the last good page on screen and records the error.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from tapgo.core.exceptions import TapGoError
from tapgo.schemas import OrderFilters, OrderLineOut, OrderUpdate, Pagination, Statistics, parse_model

if TYPE_CHECKING:
    from tapgo.client.api import TapGoClient

logger = logging.getLogger(__name__)


class AdminConsole:
    """Search, paginate, edit and delete order lines."""

    def __init__(self, api: "TapGoClient", page_size: int = 20):
        self.api = api
        self.page_size = page_size

        self.filters: dict[str, Any] = {}
        self.page = 1
        self.orders: list[OrderLineOut] = []
        self.pagination: Optional[Pagination] = None
        self.statistics: Optional[Statistics] = None
        self.last_error: Optional[TapGoError] = None

    @property
    def total_pages(self) -> int:
        return self.pagination.total_pages if self.pagination else 0

    # =========================================================================
    # LISTING
    # =========================================================================

    async def load(self) -> bool:
        """Fetch the current page. Returns False (state untouched) on error."""
        try:
            result = await self.api.search_orders(self.filters, page=self.page, limit=self.page_size)
        except TapGoError as e:
            self.last_error = e
            logger.warning(f"Admin list failed, keeping previous page: {e.message}")
            return False

        self.orders = result.orders
        self.pagination = result.pagination
        self.last_error = None
        return True

    async def search(self, **filters: Any) -> bool:
        """Apply new filters and go back to page 1."""
        cleaned = parse_model(OrderFilters, filters).model_dump(exclude_none=True)
        self.filters = {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in cleaned.items()}
        self.page = 1
        return await self.load()

    async def clear_filters(self) -> bool:
        return await self.search()

    async def go_to_page(self, page: int) -> bool:
        # Page 1 always exists, even for an empty result set
        if page < 1 or (page > 1 and self.pagination is not None and page > self.total_pages):
            return False
        self.page = page
        return await self.load()

    # =========================================================================
    # SINGLE RECORD
    # =========================================================================

    async def open(self, order_id: int) -> OrderLineOut:
        return await self.api.get_order(order_id)

    async def edit(self, order_id: int, fields: Any) -> OrderLineOut:
        """
        Validate and save an edit, then reload the page.

        Raises ValidationError before any request for bad fields; server
        errors propagate and the listing is left as it was.
        """
        update = parse_model(OrderUpdate, fields)
        await self.api.update_order(order_id, update)
        logger.info(f"Order #{order_id} edited")
        await self.load()
        return await self.api.get_order(order_id)

    async def delete(self, order_id: int) -> None:
        await self.api.delete_order(order_id)
        logger.info(f"Order #{order_id} deleted")

        # Step back when the last row of the last page went away
        if len(self.orders) == 1 and self.page > 1:
            self.page -= 1
        await self.load()

    # =========================================================================
    # STATISTICS
    # =========================================================================

    async def load_statistics(self) -> Optional[Statistics]:
        try:
            self.statistics = await self.api.get_statistics()
            self.last_error = None
        except TapGoError as e:
            self.last_error = e
            logger.warning(f"Statistics unavailable: {e.message}")
        return self.statistics
