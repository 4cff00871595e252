"""
Order Query Service

Read, edit and delete surface used by the kitchen display and the admin
console, plus dashboard statistics.

Date handling: "today" and the admin date filters use calendar days of the
configured business timezone, converted to UTC instants before they reach
the database (rows are stored in UTC).

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from tapgo.core.config import Settings, get_settings
from tapgo.models import OrderLine
from tapgo.schemas import OrderFilters, OrderUpdate, Statistics, parse_model
from tapgo.services.order_store import OrderStore

logger = logging.getLogger(__name__)


@dataclass
class OrderPage:
    """One page of admin search results."""
    orders: list[OrderLine]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def day_start_utc(day: date, tz: ZoneInfo) -> datetime:
    """Local midnight of ``day`` in ``tz`` as a UTC instant."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


class OrderQueryService:
    """Filtered listing, point reads, edits, deletes and statistics."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.store = OrderStore(session)
        self.settings = settings or get_settings()

    # =========================================================================
    # LISTING
    # =========================================================================

    async def list_all(self) -> list[OrderLine]:
        return await self.store.list_all()

    async def list_orders(
        self,
        filters: Any = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> OrderPage:
        """
        Filtered page of order lines, newest first.

        Args:
            filters: OrderFilters or mapping with customer/table/date_from/date_to
            page: 1-indexed page number; pages past the end are empty
            limit: page size (defaults to DEFAULT_PAGE_SIZE)
        """
        filters = parse_model(OrderFilters, filters or {})
        limit = limit or self.settings.default_page_size
        page = max(page, 1)

        rows, total = await self.store.search(
            offset=(page - 1) * limit,
            limit=limit,
            **self._store_filters(filters),
        )
        return OrderPage(orders=rows, page=page, limit=limit, total=total)

    async def export_rows(self, filters: Any = None) -> list[OrderLine]:
        """Every line matching ``filters`` (no paging)."""
        filters = parse_model(OrderFilters, filters or {})
        rows, _ = await self.store.search(**self._store_filters(filters))
        return rows

    def _store_filters(self, filters: OrderFilters) -> dict[str, Any]:
        tz = self.settings.tz
        return {
            "customer": filters.customer,
            "table": filters.table,
            "created_from": day_start_utc(filters.date_from, tz) if filters.date_from else None,
            "created_before": (
                day_start_utc(filters.date_to + timedelta(days=1), tz) if filters.date_to else None
            ),
        }

    # =========================================================================
    # SINGLE RECORD
    # =========================================================================

    async def get_order(self, order_id: int) -> OrderLine:
        return await self.store.get(order_id)

    async def update_order(self, order_id: int, fields: Any) -> OrderLine:
        """Validate like a checkout line, then rewrite the mutable fields."""
        update = parse_model(OrderUpdate, fields)
        row = await self.store.update(order_id, update.model_dump())
        logger.info(f"Order #{order_id} updated")
        return row

    async def delete_order(self, order_id: int) -> None:
        await self.store.delete(order_id)
        logger.info(f"Order #{order_id} deleted")

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def today_start(self, now: Optional[datetime] = None) -> datetime:
        """Midnight of the current business day, as a UTC instant."""
        tz = self.settings.tz
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return day_start_utc(now.astimezone(tz).date(), tz)

    async def get_statistics(self, now: Optional[datetime] = None) -> Statistics:
        total_orders, total_revenue = await self.store.totals()
        today_orders = await self.store.count_since(self.today_start(now))
        popular_item = await self.store.most_ordered_item()

        return Statistics(
            total_orders=total_orders,
            total_revenue=total_revenue,
            today_orders=today_orders,
            popular_item=popular_item or self.settings.no_data_label,
        )
