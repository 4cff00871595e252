"""
Pydantic Schemas for Request/Response Validation

Wire shapes of the ordering API:
- Cart checkout (camelCase body, camelCase response)
- Order line rows (snake_case, with derived subtotal)
- Admin list pagination and statistics
- Menu document and its configuration block

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tapgo.core.exceptions import ValidationError
from tapgo.models import MAX_QUANTITY, MIN_QUANTITY


# =============================================================================
# HELPERS
# =============================================================================

def normalize_table_number(v: Any) -> Optional[str]:
    """Table numbers arrive as text or numbers; store them as text, blank as None."""
    if v is None:
        return None
    if isinstance(v, bool):
        raise ValueError("table number must be text or a number")
    if isinstance(v, (int, float)):
        v = str(int(v)) if float(v).is_integer() else str(v)
    v = str(v).strip()
    return v or None


def describe_errors(errors: Iterable[dict[str, Any]]) -> str:
    """Flatten pydantic error entries into one readable message."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


def parse_model(model: type[BaseModel], data: Any) -> Any:
    """Validate ``data`` against ``model``, raising the application ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(describe_errors(e.errors())) from e


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CartItemIn(BaseModel):
    """Single cart line sent at checkout."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100, examples=["Tea"])
    price: int = Field(..., gt=0, examples=[50])
    quantity: int = Field(..., ge=MIN_QUANTITY, le=MAX_QUANTITY, examples=[2])

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


class OrderCreate(BaseModel):
    """Request schema for submitting a cart."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    customer_name: str = Field(..., alias="customerName", min_length=1, max_length=100, examples=["Wang"])
    table_number: Optional[str] = Field(None, alias="tableNumber", max_length=20, examples=["5"])
    items: List[CartItemIn] = Field(..., min_length=1)

    @field_validator("table_number", mode="before")
    @classmethod
    def validate_table(cls, v: Any) -> Optional[str]:
        return normalize_table_number(v)

    @property
    def total_amount(self) -> int:
        return sum(item.subtotal for item in self.items)


class OrderUpdate(BaseModel):
    """Request schema for editing one order line from the admin console."""
    model_config = ConfigDict(str_strip_whitespace=True)

    customer_name: str = Field(..., min_length=1, max_length=100)
    table_number: Optional[str] = Field(None, max_length=20)
    item_name: str = Field(..., min_length=1, max_length=100)
    item_price: int = Field(..., gt=0)
    quantity: int = Field(..., ge=MIN_QUANTITY, le=MAX_QUANTITY)

    @field_validator("table_number", mode="before")
    @classmethod
    def validate_table(cls, v: Any) -> Optional[str]:
        return normalize_table_number(v)


class OrderFilters(BaseModel):
    """Admin search filters; all present filters must match."""
    model_config = ConfigDict(str_strip_whitespace=True)

    customer: Optional[str] = None
    table: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @field_validator("customer", mode="before")
    @classmethod
    def blank_customer(cls, v: Any) -> Optional[str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("table", mode="before")
    @classmethod
    def validate_table(cls, v: Any) -> Optional[str]:
        return normalize_table_number(v)

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def blank_date(cls, v: Any) -> Any:
        return v or None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderLineOut(BaseModel):
    """Response schema for a single order line."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    table_number: Optional[str]
    item_name: str
    item_price: int
    quantity: int
    created_at: datetime
    subtotal: int

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        # SQLite hands timestamps back naive; they were written as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class OrderCreateResponse(BaseModel):
    """Response after successfully submitting a cart."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    order_id: int = Field(..., alias="orderId")
    total_amount: int = Field(..., alias="totalAmount")
    item_count: int = Field(..., alias="itemCount")


class OrderListResponse(BaseModel):
    """Unfiltered list used by the kitchen display."""
    success: bool = True
    orders: List[OrderLineOut]


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages")


class OrderPageResponse(BaseModel):
    """Filtered, paginated list used by the admin console."""
    success: bool = True
    orders: List[OrderLineOut]
    pagination: Pagination


class OrderDetailResponse(BaseModel):
    success: bool = True
    order: OrderLineOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class Statistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_orders: int = Field(..., alias="totalOrders")
    total_revenue: int = Field(..., alias="totalRevenue")
    today_orders: int = Field(..., alias="todayOrders")
    popular_item: str = Field(..., alias="popularItem")


class StatisticsResponse(BaseModel):
    success: bool = True
    statistics: Statistics


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    message: Optional[str] = None
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: datetime


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItem(BaseModel):
    name: str = Field(..., min_length=1)
    price: int = Field(..., gt=0)
    note: Optional[str] = None


class MenuCategory(BaseModel):
    description: Optional[str] = None
    items: List[MenuItem] = Field(default_factory=list)


class MenuConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_ceiling: Optional[int] = Field(None, alias="orderCeiling", ge=0)
    ceiling_message: Optional[str] = Field(None, alias="ceilingMessage")


class MenuResponse(BaseModel):
    success: bool = True
    menu: dict[str, MenuCategory]
    config: MenuConfig

