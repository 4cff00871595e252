"""
Client Cart Model

The customer's pending order: menu items keyed by (category, item name) with
a quantity of 1-9 each, persisted to a local JSON file after every change so
the cart survives restarts.

A cart can be submitted when the customer name is filled in, the cart is not
empty and its total is within the order ceiling. The server re-checks all of
it; the cart is only cleared once the server has accepted the order.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from filelock import FileLock, Timeout

from tapgo.core.config import get_settings
from tapgo.core.exceptions import ValidationError
from tapgo.models import MAX_QUANTITY, MIN_QUANTITY
from tapgo.schemas import OrderCreate, OrderCreateResponse, parse_model

if TYPE_CHECKING:
    from tapgo.client.api import TapGoClient

logger = logging.getLogger(__name__)

CartKey = tuple[str, str]


@dataclass
class CartLine:
    """One pending menu item."""
    name: str
    price: int
    quantity: int
    category: str

    @property
    def key(self) -> CartKey:
        return (self.category, self.name)

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


class CartStorage:
    """JSON file persistence for a cart, guarded by a file lock."""

    def __init__(self, path: Optional[Path] = None, lock_timeout: Optional[int] = None):
        settings = get_settings()
        self.path = Path(path or settings.cart_file)
        self.lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout or settings.lock_timeout)

    def read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            with self.lock:
                data = json.loads(self.path.read_text(encoding="utf-8"))
        except Timeout:
            logger.error(f"Lock timeout reading cart {self.path}")
            raise
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cart file {self.path}: {e}")
            return []
        return data if isinstance(data, list) else []

    def write(self, lines: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with self.lock:
            tmp.write_text(json.dumps(lines, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)


class CartModel:
    """
    Cart state machine per line: absent -> present(q) -> present(q +/- 1) -> absent.

    Quantities stay within 1-9: repeat adds merge and cap at 9, increment and
    decrement do nothing at the bounds.
    """

    def __init__(
        self,
        storage: Optional[CartStorage] = None,
        ceiling: Optional[int] = None,
        ceiling_message: Optional[str] = None,
    ):
        settings = get_settings()
        self.storage = storage
        self.ceiling = settings.order_ceiling if ceiling is None else ceiling
        self.ceiling_message = ceiling_message or settings.order_ceiling_message
        self.lines: dict[CartKey, CartLine] = {}

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self) -> "CartModel":
        """Restore lines from storage, dropping entries that are no longer valid."""
        self.lines = {}
        if self.storage is None:
            return self

        for raw in self.storage.read():
            try:
                line = CartLine(
                    name=str(raw["name"]),
                    price=int(raw["price"]),
                    quantity=int(raw["quantity"]),
                    category=str(raw.get("category", "")),
                )
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Dropping malformed cart entry: {raw!r}")
                continue
            if line.price <= 0 or not MIN_QUANTITY <= line.quantity <= MAX_QUANTITY:
                logger.warning(f"Dropping out-of-range cart entry: {raw!r}")
                continue
            self.lines[line.key] = line

        logger.debug(f"Cart loaded: {len(self.lines)} lines, total {self.total}")
        return self

    def save(self) -> None:
        if self.storage is not None:
            self.storage.write([asdict(line) for line in self.lines.values()])

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add(self, category: str, name: str, price: int, quantity: int = 1) -> CartLine:
        """Add an item, merging with an existing line and capping at 9."""
        if not name or not name.strip():
            raise ValidationError("Item name is required")
        if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
            raise ValidationError("Item price must be a positive whole number")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError("Quantity must be a whole number")
        if not MIN_QUANTITY <= quantity <= MAX_QUANTITY:
            raise ValidationError(f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}")

        key = (category, name)
        line = self.lines.get(key)
        if line:
            line.quantity = min(line.quantity + quantity, MAX_QUANTITY)
        else:
            line = CartLine(name=name, price=price, quantity=quantity, category=category)
            self.lines[key] = line

        self.save()
        return line

    def increment(self, key: CartKey) -> bool:
        line = self.lines.get(key)
        if line is None or line.quantity >= MAX_QUANTITY:
            return False
        line.quantity += 1
        self.save()
        return True

    def decrement(self, key: CartKey) -> bool:
        line = self.lines.get(key)
        if line is None or line.quantity <= MIN_QUANTITY:
            return False
        line.quantity -= 1
        self.save()
        return True

    def remove(self, key: CartKey) -> bool:
        if self.lines.pop(key, None) is None:
            return False
        self.save()
        return True

    def clear(self) -> None:
        self.lines = {}
        self.save()

    # =========================================================================
    # DERIVED STATE
    # =========================================================================

    @property
    def total(self) -> int:
        return sum(line.subtotal for line in self.lines.values())

    @property
    def item_count(self) -> int:
        """Number of units across all lines (cart badge)."""
        return sum(line.quantity for line in self.lines.values())

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def over_ceiling(self) -> bool:
        return self.total > self.ceiling

    def can_submit(self, customer_name: Optional[str]) -> bool:
        return bool(customer_name and customer_name.strip()) and not self.is_empty and not self.over_ceiling

    def check_submittable(self, customer_name: Optional[str]) -> None:
        if not customer_name or not customer_name.strip():
            raise ValidationError("Please enter your name")
        if self.is_empty:
            raise ValidationError("Your cart is empty")
        if self.over_ceiling:
            raise ValidationError(f"{self.ceiling_message} (total {self.total} > {self.ceiling})")

    def to_order_payload(self, customer_name: str, table_number: Optional[str] = None) -> OrderCreate:
        """Build the checkout body; raises ValidationError for fields the server would reject."""
        return parse_model(OrderCreate, {
            "customer_name": customer_name.strip(),
            "table_number": table_number,
            "items": [
                {"name": line.name, "price": line.price, "quantity": line.quantity}
                for line in self.lines.values()
            ],
        })

    # =========================================================================
    # SERVER SYNC
    # =========================================================================

    async def refresh_ceiling(self, api: "TapGoClient") -> int:
        """Pick up the ceiling from the server's menu configuration."""
        menu = await api.get_menu()
        if menu.config.order_ceiling is not None:
            self.ceiling = menu.config.order_ceiling
        if menu.config.ceiling_message:
            self.ceiling_message = menu.config.ceiling_message
        return self.ceiling

    async def submit(
        self,
        api: "TapGoClient",
        customer_name: str,
        table_number: Optional[str] = None,
    ) -> OrderCreateResponse:
        """
        Send the cart as an order.

        Raises ValidationError before any request when the cart cannot be
        submitted; server errors propagate and leave the cart intact.
        """
        self.check_submittable(customer_name)
        payload = self.to_order_payload(customer_name, table_number)

        response = await api.submit_order(payload)

        logger.info(
            f"Order #{response.order_id} submitted: {response.item_count} lines, total {response.total_amount}"
        )
        self.clear()
        return response
