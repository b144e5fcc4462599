"""
Order lifecycle board: the pending list behind the PDV and comandas screens.

Orders move forward only (new -> confirmed -> preparing -> ready) and leave
the board when closed. ``LifecycleBoard.reconcile`` is the single reload path
used both after local mutations and when a realtime change event arrives; it
always replaces the working list with what the database says.
"""

import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime
from decimal import Decimal

from aiokafka import AIOKafkaProducer
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from app.cart import Cart
from app.config import settings
from app.errors import OrderNotFoundError, OrderStateError, OrderValidationError
from app.metrics import BOARD_RECONCILES, ORDERS_CLOSED
from app.models.cash import CashMovement, MovementType
from app.models.order import DeliveryType, Order, OrderStatus, PaymentMethod
from app.models.table import DiningTable, TableStatus
from app.realtime import publish_order_change
from app.receipts import ReceiptAudience, ReceiptPrinter
from app.schemas.board import BoardResponse
from app.schemas.catalog import TableResponse
from app.schemas.order import OpenTabsSummary, OrderResponse
from app.services.catalog_service import get_restaurant_settings, load_tables
from app.services.order_service import (
    fetch_order,
    generate_order_number,
    order_lines,
    resolve_table,
)
from shared.events import ChangeKind

logger = logging.getLogger(__name__)

PENDING_STATUSES = (
    OrderStatus.NEW,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)

_NEXT_STATUS = {
    OrderStatus.NEW: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
}

SALES_CATEGORY = "sales"
DEFAULT_DISPLAY_NAME = "Restaurante"


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_pending(db: AsyncSession, dine_in_only: bool = False) -> list[Order]:
    stmt = (
        select(Order)
        .where(Order.status.in_(PENDING_STATUSES))
        .options(selectinload(Order.items), selectinload(Order.table))
        .order_by(Order.created_at.desc())
    )
    if dine_in_only:
        stmt = stmt.where(Order.delivery_type == DeliveryType.DINE_IN)
    result = await db.execute(stmt)
    return list(result.scalars().all())


def summarize_open(orders: Sequence[Order | OrderResponse]) -> OpenTabsSummary:
    return OpenTabsSummary(
        open_count=len(orders),
        open_total=sum((o.total for o in orders), Decimal("0.00")),
    )


async def _get_pending(db: AsyncSession, order_id: uuid.UUID) -> Order:
    order = await fetch_order(db, order_id)
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found")
    if order.status not in PENDING_STATUSES:
        raise OrderStateError(f"Order {order.order_number} is already {order.status.value}")
    return order


async def _commit(db: AsyncSession, action: str, **context) -> None:
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"{action} failed", extra=context)
        raise


async def _claim_transition(db: AsyncSession, order: Order, stmt, **values) -> None:
    """Run a status UPDATE guarded by its WHERE clause; raise if another writer got there first."""
    order_number = order.order_number
    result = await db.execute(stmt.values(**values).execution_options(synchronize_session=False))
    if result.rowcount != 1:
        await db.rollback()
        raise OrderStateError(f"Order {order_number} was changed by another request")
    for key, value in values.items():
        set_committed_value(order, key, value)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def advance_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    producer: AIOKafkaProducer | None,
    request_id: str | None = None,
) -> OrderResponse:
    order = await _get_pending(db, order_id)
    next_status = _NEXT_STATUS.get(order.status)
    if next_status is None:
        raise OrderStateError(f"Order {order.order_number} is ready; close it to complete")

    previous = order.status
    await _claim_transition(
        db, order, update(Order).where(Order.id == order.id, Order.status == previous), status=next_status
    )
    await _commit(db, "Advancing order", order_id=str(order_id), to_status=next_status.value)
    logger.info(
        "Order advanced",
        extra={
            "order_id": str(order.id),
            "from_status": previous.value,
            "to_status": next_status.value,
            "request_id": request_id,
        },
    )

    order = await fetch_order(db, order_id)
    await publish_order_change(producer, ChangeKind.UPDATE, order, request_id)
    return OrderResponse.model_validate(order)


async def close_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    producer: AIOKafkaProducer | None,
    printer: ReceiptPrinter,
    request_id: str | None = None,
) -> OrderResponse:
    order = await _get_pending(db, order_id)

    # Only one of two overlapping closes gets the row, so only one ledger entry.
    await _claim_transition(
        db,
        order,
        update(Order).where(Order.id == order.id, Order.status.in_(PENDING_STATUSES)),
        status=OrderStatus.COMPLETED,
        completed_at=datetime.utcnow(),
    )
    if order.table is not None:
        order.table.status = TableStatus.FREE
    db.add(
        CashMovement(
            type=MovementType.ENTRY,
            amount=order.total,
            category=SALES_CATEGORY,
            description=f"Order {order.order_number}",
            payment_method=order.payment_method,
            order_id=order.id,
        )
    )
    await _commit(db, "Closing order", order_id=str(order_id))

    ORDERS_CLOSED.labels(order.payment_method.value).inc()
    logger.info(
        "Order closed",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "amount": float(order.total),
            "payment_method": order.payment_method.value,
            "request_id": request_id,
        },
    )

    order = await fetch_order(db, order_id)
    await publish_order_change(producer, ChangeKind.UPDATE, order, request_id)

    restaurant = await get_restaurant_settings(db)
    display_name = restaurant.name if restaurant is not None else DEFAULT_DISPLAY_NAME
    try:
        printer.print_receipt(order, display_name, order.table_number, ReceiptAudience.CUSTOMER)
    except Exception:
        # sale is already committed at this point
        logger.exception("Receipt printing failed", extra={"order_id": str(order.id)})

    return OrderResponse.model_validate(order)


async def open_comanda(
    db: AsyncSession,
    table_number: int | None,
    customer_name: str | None,
    payment_method: PaymentMethod,
    producer: AIOKafkaProducer | None,
    request_id: str | None = None,
) -> OrderResponse:
    """Open an empty dine-in tab. Items are added later with add_items_to_order."""
    if table_number is None and not (customer_name or "").strip():
        raise OrderValidationError("A tab needs a table or a customer name")

    table = await resolve_table(db, table_number) if table_number is not None else None
    if table is not None:
        claimed = await db.execute(
            update(DiningTable)
            .where(DiningTable.id == table.id, DiningTable.status == TableStatus.FREE)
            .values(status=TableStatus.OCCUPIED)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            raise OrderStateError(f"Table {table_number} is already occupied")
        set_committed_value(table, "status", TableStatus.OCCUPIED)

    order = Order(
        order_number=generate_order_number(settings.pdv_order_prefix),
        delivery_type=DeliveryType.DINE_IN,
        status=OrderStatus.NEW,
        payment_method=payment_method,
        subtotal=Decimal("0.00"),
        total=Decimal("0.00"),
        customer_name=customer_name or None,
        table_id=table.id if table is not None else None,
    )
    db.add(order)
    await db.flush()
    await _commit(db, "Opening tab", table_number=table_number)
    logger.info(
        "Tab opened",
        extra={"order_id": str(order.id), "table_number": table_number, "request_id": request_id},
    )

    order = await fetch_order(db, order.id)
    await publish_order_change(producer, ChangeKind.INSERT, order, request_id)
    return OrderResponse.model_validate(order)


async def add_items_to_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    cart: Cart,
    producer: AIOKafkaProducer | None,
    request_id: str | None = None,
) -> OrderResponse:
    if cart.is_empty:
        raise OrderValidationError("No items to add")
    order = await _get_pending(db, order_id)

    added = cart.subtotal()
    db.add_all(order_lines(order.id, cart, start=len(order.items)))
    order.subtotal += added
    order.total += added
    await _commit(db, "Adding items to order", order_id=str(order_id))
    logger.info(
        "Items added to order",
        extra={"order_id": str(order.id), "added": float(added), "request_id": request_id},
    )

    order = await fetch_order(db, order_id)
    await publish_order_change(producer, ChangeKind.UPDATE, order, request_id)
    return OrderResponse.model_validate(order)


# ---------------------------------------------------------------------------
# Working list
# ---------------------------------------------------------------------------


class LifecycleBoard:
    """Holds the last reconciled pending list and table list for one process."""

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory
        self.orders: list[OrderResponse] = []
        self.tables: list[TableResponse] = []
        self.reconciled_at: datetime | None = None

    async def reconcile(self, trigger: str = "local") -> bool:
        """Replace the working list with a fresh fetch. Returns False if the fetch failed."""
        try:
            async with self._session_factory() as db:
                orders = await list_pending(db)
                tables = await load_tables(db)
        except (SQLAlchemyError, OSError) as exc:
            # asyncpg raises connection failures as OSError, unwrapped
            logger.error(
                "Board reload failed, keeping previous list",
                extra={"trigger": trigger, "error": str(exc)},
            )
            return False

        self.orders = [OrderResponse.model_validate(o) for o in orders]
        self.tables = [TableResponse.model_validate(t) for t in tables]
        self.reconciled_at = datetime.utcnow()
        BOARD_RECONCILES.labels(trigger).inc()
        logger.debug(
            "Board reconciled",
            extra={"trigger": trigger, "pending": len(self.orders), "tables": len(self.tables)},
        )
        return True

    def snapshot(self) -> BoardResponse:
        return BoardResponse(
            reconciled_at=self.reconciled_at,
            summary=summarize_open(self.orders),
            orders=self.orders,
            tables=self.tables,
        )
