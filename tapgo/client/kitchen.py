"""
Kitchen Display

Read-only poller over GET /orders. Each refresh replaces the visible rows;
rows whose ids were not present on the previous refresh are reported as new
arrivals. Detection is by id, so deletions between polls never hide or
invent arrivals.

A refresh started while another is still in flight cancels the older one,
and a response that arrives after a newer refresh began is discarded.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional
from zoneinfo import ZoneInfo

from tapgo.core.config import get_settings
from tapgo.core.exceptions import TapGoError
from tapgo.schemas import OrderLineOut

if TYPE_CHECKING:
    from tapgo.client.api import TapGoClient

logger = logging.getLogger(__name__)

NewOrdersCallback = Callable[[list[OrderLineOut]], None]


class SortField(str, Enum):
    TIME = "time"
    TABLE = "table"
    ITEM = "item"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class KitchenSummary:
    order_count: int
    today_count: int
    total_amount: int
    today_amount: int
    last_update: Optional[datetime]


def _table_sort_key(order: OrderLineOut) -> tuple:
    # Blank tables first, then numeric tables by value, then other labels
    table = order.table_number or ""
    if not table:
        return (0, 0, "")
    try:
        return (1, int(table), "")
    except ValueError:
        return (2, 0, table)


SORT_KEYS = {
    SortField.TIME: lambda order: order.created_at,
    SortField.TABLE: _table_sort_key,
    SortField.ITEM: lambda order: order.item_name,
}


class KitchenDisplay:
    """Polling view of incoming order lines."""

    def __init__(
        self,
        api: "TapGoClient",
        interval: Optional[float] = None,
        on_new_orders: Optional[NewOrdersCallback] = None,
        tz: Optional[ZoneInfo] = None,
    ):
        settings = get_settings()
        self.api = api
        self.interval = interval or settings.kitchen_poll_seconds
        self.on_new_orders = on_new_orders
        self.tz = tz or settings.tz
        self.auto_refresh = True

        self.orders: list[OrderLineOut] = []
        self.seen_ids: set[int] = set()
        self.new_ids: set[int] = set()
        self.primed = False
        self.last_update: Optional[datetime] = None
        self.last_error: Optional[TapGoError] = None

        self.sort_field = SortField.TIME
        self.sort_direction = SortDirection.DESC

        self._generation = 0
        self._inflight: Optional[asyncio.Task] = None

    # =========================================================================
    # POLLING
    # =========================================================================

    async def refresh(self) -> list[OrderLineOut]:
        """
        Fetch the current rows and return the ones that arrived since the last refresh.

        The first successful refresh only records a baseline. On error the
        previous rows stay in place and ``last_error`` is set.
        """
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

        self._generation += 1
        generation = self._generation
        task = asyncio.create_task(self._fetch(generation))
        self._inflight = task

        try:
            return await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug(f"Refresh {generation} superseded by {self._generation}")
                return []
            raise

    async def _fetch(self, generation: int) -> list[OrderLineOut]:
        try:
            rows = await self.api.list_orders()
        except TapGoError as e:
            if generation != self._generation:
                logger.debug(f"Ignoring failure of superseded refresh {generation}: {e.message}")
                return []
            self.last_error = e
            logger.warning(f"Kitchen refresh failed, keeping {len(self.orders)} rows: {e.message}")
            return []

        if generation != self._generation:
            logger.debug(f"Discarding stale response from refresh {generation}")
            return []
        return self._apply(rows)

    def _apply(self, rows: list[OrderLineOut]) -> list[OrderLineOut]:
        current_ids = {row.id for row in rows}

        if self.primed:
            arrivals = [row for row in rows if row.id not in self.seen_ids]
        else:
            arrivals = []
            self.primed = True

        # Ids are never reused, so the current set is enough to diff against
        self.seen_ids = current_ids
        self.new_ids = {row.id for row in arrivals}
        self.orders = rows
        self.last_update = datetime.now(timezone.utc)
        self.last_error = None

        if arrivals:
            logger.info(f"🔔 {len(arrivals)} new order lines")
            if self.on_new_orders:
                self.on_new_orders(arrivals)
        return arrivals

    async def visibility_regained(self) -> list[OrderLineOut]:
        """Screen became visible again: refresh right away when auto refresh is on."""
        if not self.auto_refresh:
            return []
        return await self.refresh()

    async def run(self, stop: asyncio.Event) -> None:
        """Refresh every ``interval`` seconds until ``stop`` is set."""
        logger.info(f"Kitchen display polling every {self.interval}s")
        while not stop.is_set():
            if self.auto_refresh:
                await self.refresh()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    # =========================================================================
    # VIEW
    # =========================================================================

    def sort_by(self, field: SortField) -> None:
        """Same field flips direction; a new field starts ascending."""
        field = SortField(field)
        if field == self.sort_field:
            self.sort_direction = (
                SortDirection.ASC if self.sort_direction == SortDirection.DESC else SortDirection.DESC
            )
        else:
            self.sort_field = field
            self.sort_direction = SortDirection.ASC

    def sorted_orders(self) -> list[OrderLineOut]:
        return sorted(
            self.orders,
            key=SORT_KEYS[self.sort_field],
            reverse=self.sort_direction == SortDirection.DESC,
        )

    def summary(self, now: Optional[datetime] = None) -> KitchenSummary:
        today = (now or datetime.now(timezone.utc)).astimezone(self.tz).date()
        todays = [o for o in self.orders if o.created_at.astimezone(self.tz).date() == today]
        return KitchenSummary(
            order_count=len(self.orders),
            today_count=len(todays),
            total_amount=sum(o.subtotal for o in self.orders),
            today_amount=sum(o.subtotal for o in todays),
            last_update=self.last_update,
        )
