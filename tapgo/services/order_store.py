"""
Order Store

Query layer over the ``orders`` table. Every method runs on the caller's
AsyncSession; SQLAlchemy failures are rolled back and re-raised as StoreError
so routes never see driver exceptions.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Mapping, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tapgo.core.exceptions import InsertionError, NotFoundError, StoreError
from tapgo.models import OrderLine

logger = logging.getLogger(__name__)


class OrderStore:
    """Insert, read, update, delete and aggregate order lines."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _guard(self, action: str, error_cls: type[StoreError] = StoreError) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception(f"Order store failed to {action}")
            raise error_cls(f"Failed to {action}", detail=str(e)) from e

    @property
    def dialect(self) -> str:
        bind = self.session.bind
        return bind.dialect.name if bind is not None else ""

    def _contains(self, column, needle: str):
        """Case-sensitive substring match (LIKE folds ASCII case on SQLite)."""
        if self.dialect == "sqlite":
            return func.instr(column, needle) > 0
        if self.dialect == "postgresql":
            return func.strpos(column, needle) > 0
        return column.contains(needle, autoescape=True)

    def _filtered(
        self,
        stmt,
        customer: Optional[str] = None,
        table: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
    ):
        if customer:
            stmt = stmt.where(self._contains(OrderLine.customer_name, customer))
        if table:
            stmt = stmt.where(OrderLine.table_number == table)
        if created_from is not None:
            stmt = stmt.where(OrderLine.created_at >= created_from)
        if created_before is not None:
            stmt = stmt.where(OrderLine.created_at < created_before)
        return stmt

    # =========================================================================
    # WRITES
    # =========================================================================

    async def insert_batch(self, lines: Sequence[Mapping[str, Any]]) -> list[OrderLine]:
        """
        Insert all lines in one transaction.

        Either every row is committed or none is: a failure on any row rolls
        back the rows flushed before it.
        """
        rows = [OrderLine(**line) for line in lines]

        async with self._guard("insert order lines", InsertionError):
            self.session.add_all(rows)
            await self.session.flush()
            ids = [row.id for row in rows]
            await self.session.commit()

        logger.debug(f"Inserted {len(rows)} order lines: {ids}")
        return rows

    async def update(self, order_id: int, values: Mapping[str, Any]) -> OrderLine:
        """Rewrite the mutable fields of one line; id and created_at are untouched."""
        async with self._guard(f"update order #{order_id}"):
            row = await self.session.get(OrderLine, order_id)
            if row is None:
                raise NotFoundError(f"Order #{order_id} not found")

            for field in OrderLine.MUTABLE_FIELDS:
                if field in values:
                    setattr(row, field, values[field])

            await self.session.commit()
        return row

    async def delete(self, order_id: int) -> None:
        async with self._guard(f"delete order #{order_id}"):
            row = await self.session.get(OrderLine, order_id)
            if row is None:
                raise NotFoundError(f"Order #{order_id} not found")

            await self.session.delete(row)
            await self.session.commit()

    # =========================================================================
    # READS
    # =========================================================================

    async def get(self, order_id: int) -> OrderLine:
        async with self._guard(f"load order #{order_id}"):
            row = await self.session.get(OrderLine, order_id)
        if row is None:
            raise NotFoundError(f"Order #{order_id} not found")
        return row

    async def list_all(self) -> list[OrderLine]:
        """Every line, newest first."""
        async with self._guard("list orders"):
            result = await self.session.execute(
                select(OrderLine).order_by(OrderLine.created_at.desc(), OrderLine.id.desc())
            )
            return list(result.scalars().all())

    async def search(
        self,
        customer: Optional[str] = None,
        table: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> tuple[list[OrderLine], int]:
        """Return one window of matching lines plus the total match count."""
        filters = dict(
            customer=customer,
            table=table,
            created_from=created_from,
            created_before=created_before,
        )
        query = self._filtered(select(OrderLine), **filters).order_by(
            OrderLine.created_at.desc(), OrderLine.id.desc()
        )
        count_query = self._filtered(select(func.count(OrderLine.id)), **filters)

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        async with self._guard("search orders"):
            total = (await self.session.execute(count_query)).scalar() or 0
            # Windows past the last match are empty; skip the query
            if offset and offset >= total:
                return [], total
            result = await self.session.execute(query)
            rows = list(result.scalars().all())

        return rows, total

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    async def totals(self) -> tuple[int, int]:
        """(row count, sum of price * quantity)."""
        async with self._guard("aggregate order totals"):
            result = await self.session.execute(
                select(
                    func.count(OrderLine.id),
                    func.coalesce(func.sum(OrderLine.item_price * OrderLine.quantity), 0),
                )
            )
            count, revenue = result.one()
        return int(count or 0), int(revenue or 0)

    async def count_since(self, instant: datetime) -> int:
        async with self._guard("count recent orders"):
            result = await self.session.execute(
                select(func.count(OrderLine.id)).where(OrderLine.created_at >= instant)
            )
            return result.scalar() or 0

    async def most_ordered_item(self) -> Optional[str]:
        """Item name with the most rows; ties go to the item first ordered."""
        row_count = func.count(OrderLine.id).label("row_count")
        async with self._guard("find popular item"):
            result = await self.session.execute(
                select(OrderLine.item_name, row_count)
                .group_by(OrderLine.item_name)
                .order_by(row_count.desc(), func.min(OrderLine.id))
                .limit(1)
            )
            top = result.first()
        return top.item_name if top else None
