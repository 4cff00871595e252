"""
Order Ingestion Service

Turns a checked-out cart into order lines. Validation happens before any
write, and the rows are written as a single batch: a submission is either
stored completely or not at all.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tapgo.core.exceptions import ValidationError
from tapgo.models import OrderLine
from tapgo.schemas import OrderCreate, parse_model
from tapgo.services.order_store import OrderStore

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    """
    Outcome of a successful cart submission.

    Attributes:
        order_reference_id: id of the first inserted line. There is no order
            entity, so this only points at one line of the checkout.
        total_amount: sum of price * quantity over the cart
        item_count: number of lines written (one per cart line)
        lines: the persisted rows
    """
    order_reference_id: int
    total_amount: int
    item_count: int
    lines: list[OrderLine] = field(default_factory=list)


class OrderIngestionService:
    """Validate and persist carts."""

    def __init__(
        self,
        session: AsyncSession,
        ceiling: Optional[int] = None,
        ceiling_message: Optional[str] = None,
    ):
        self.store = OrderStore(session)
        self.ceiling = ceiling
        self.ceiling_message = ceiling_message

    def validate(self, payload: Any) -> OrderCreate:
        """Parse the cart and check the ceiling; raises ValidationError."""
        order = parse_model(OrderCreate, payload)

        if self.ceiling is not None and order.total_amount > self.ceiling:
            message = self.ceiling_message or "Order total exceeds the allowed maximum"
            raise ValidationError(
                f"{message} (total {order.total_amount} > {self.ceiling})"
            )
        return order

    async def submit_cart(self, payload: Any) -> SubmitResult:
        """
        Persist one row per cart line.

        Args:
            payload: OrderCreate or a mapping in the POST /orders body shape

        Returns:
            SubmitResult for the stored batch

        Raises:
            ValidationError: bad fields, empty cart or over the ceiling
            InsertionError: the batch could not be written; nothing was kept
        """
        order = self.validate(payload)

        rows = await self.store.insert_batch([
            {
                "customer_name": order.customer_name,
                "table_number": order.table_number,
                "item_name": item.name,
                "item_price": item.price,
                "quantity": item.quantity,
            }
            for item in order.items
        ])

        result = SubmitResult(
            order_reference_id=rows[0].id,
            total_amount=order.total_amount,
            item_count=len(rows),
            lines=rows,
        )
        logger.info(
            f"Order #{result.order_reference_id} stored for {order.customer_name} "
            f"(table {order.table_number or '-'}): {result.item_count} lines, total {result.total_amount}"
        )
        return result
