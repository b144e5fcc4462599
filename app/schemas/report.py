from decimal import Decimal

from pydantic import BaseModel


class OrdersByType(BaseModel):
    delivery: int = 0
    pickup: int = 0
    dine_in: int = 0


class SalesReport(BaseModel):
    days: int
    total_revenue: Decimal
    order_count: int
    average_ticket: Decimal
    orders_per_day: float
    orders_by_type: OrdersByType
