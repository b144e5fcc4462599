from datetime import datetime

from pydantic import BaseModel

from app.schemas.catalog import TableResponse
from app.schemas.order import OpenTabsSummary, OrderResponse


class BoardResponse(BaseModel):
    reconciled_at: datetime | None
    summary: OpenTabsSummary
    orders: list[OrderResponse]
    tables: list[TableResponse]
