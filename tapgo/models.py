"""
SQLAlchemy Database Models

One table, ``orders``, holding denormalized order lines:
- one row per menu item per submitted cart
- no order/group entity; a checkout is N rows sharing customer and timestamp
- menu data is copied in (no foreign key to the menu)

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String

from tapgo.database import Base


MIN_QUANTITY = 1
MAX_QUANTITY = 9


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderLine(Base):
    """
    A single menu item and quantity inside a checkout.

    ``created_at`` is written once at insert and never updated.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # =========================================================================
    # CUSTOMER
    # =========================================================================
    customer_name = Column(String(100), nullable=False, index=True)
    table_number = Column(String(20), nullable=True, index=True)

    # =========================================================================
    # ITEM (copied from the menu at checkout)
    # =========================================================================
    item_name = Column(String(100), nullable=False, index=True)
    item_price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    __table_args__ = (
        CheckConstraint(
            f"quantity >= {MIN_QUANTITY} AND quantity <= {MAX_QUANTITY}",
            name="ck_orders_quantity_range",
        ),
        CheckConstraint("item_price >= 0", name="ck_orders_item_price_non_negative"),
        # Never reuse the id of a deleted row
        {"sqlite_autoincrement": True},
    )

    MUTABLE_FIELDS = ("customer_name", "table_number", "item_name", "item_price", "quantity")

    @property
    def subtotal(self) -> int:
        return self.item_price * self.quantity

    def __repr__(self):
        return f"<OrderLine #{self.id} - {self.customer_name} - {self.item_name} x{self.quantity}>"
