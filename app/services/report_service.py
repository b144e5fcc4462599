from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import DeliveryType, Order
from app.schemas.report import OrdersByType, SalesReport

REPORT_PERIODS = (7, 15, 30, 60)

_CENTS = Decimal("0.01")


async def fetch_orders_since(db: AsyncSession, days: int, now: datetime | None = None) -> list[Order]:
    start = (now or datetime.utcnow()) - timedelta(days=days)
    result = await db.execute(
        select(Order).where(Order.created_at >= start).order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


def summarize(orders: Iterable[Order], days: int) -> SalesReport:
    """Single pass over an already-fetched window. No paging: volumes are small."""
    revenue = Decimal("0.00")
    count = 0
    by_type = OrdersByType()
    for order in orders:
        revenue += order.total or Decimal("0.00")
        count += 1
        if order.delivery_type is DeliveryType.DELIVERY:
            by_type.delivery += 1
        elif order.delivery_type is DeliveryType.PICKUP:
            by_type.pickup += 1
        elif order.delivery_type is DeliveryType.DINE_IN:
            by_type.dine_in += 1

    average = (revenue / count).quantize(_CENTS, rounding=ROUND_HALF_UP) if count else Decimal("0.00")
    return SalesReport(
        days=days,
        total_revenue=revenue,
        order_count=count,
        average_ticket=average,
        orders_per_day=count / days,
        orders_by_type=by_type,
    )


async def sales_report(db: AsyncSession, days: int, now: datetime | None = None) -> SalesReport:
    if days not in REPORT_PERIODS:
        raise ValueError(f"Report period must be one of {list(REPORT_PERIODS)}")
    return summarize(await fetch_orders_since(db, days, now), days)
