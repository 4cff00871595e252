"""
Order Export

Builds an Excel workbook of order lines for the back office.

Author: Khalil Bannouri
Version: 1.0.0
"""

import io
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

import pandas as pd

from tapgo.models import OrderLine
from tapgo.schemas import OrderLineOut

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class OrderExporter:
    """Excel export of order lines."""

    COLUMNS = [
        "id",
        "created_at",
        "customer_name",
        "table_number",
        "item_name",
        "item_price",
        "quantity",
        "subtotal",
    ]

    SHEET_NAME = "orders"

    @classmethod
    def to_frame(cls, rows: Iterable[OrderLine]) -> pd.DataFrame:
        records = []
        for row in rows:
            record = OrderLineOut.model_validate(row).model_dump()
            # Excel cannot store tz-aware datetimes
            record["created_at"] = record["created_at"].replace(tzinfo=None)
            records.append(record)
        return pd.DataFrame(records, columns=cls.COLUMNS)

    @classmethod
    def to_workbook(cls, rows: Iterable[OrderLine]) -> bytes:
        """Render rows as an .xlsx document."""
        df = cls.to_frame(rows)
        buffer = io.BytesIO()
        df.to_excel(buffer, index=False, sheet_name=cls.SHEET_NAME, engine="openpyxl")
        logger.info(f"Exported {len(df)} order lines to Excel")
        return buffer.getvalue()

    @staticmethod
    def filename(now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        return f"orders_{now.strftime('%Y%m%d_%H%M%S')}.xlsx"
