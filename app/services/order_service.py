import logging
import time
import uuid
from decimal import Decimal

from aiokafka import AIOKafkaProducer
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.cart import Cart
from app.config import settings
from app.errors import OrderValidationError, TableNotFoundError
from app.metrics import ORDER_VALIDATION_FAILURES, ORDERS_SUBMITTED
from app.models.order import DeliveryType, Order, OrderItem, OrderStatus
from app.models.table import DiningTable, TableStatus
from app.realtime import publish_order_change
from app.schemas.order import CartItemRequest, CheckoutForm, OrderChannel, OrderResponse
from app.services.catalog_service import get_restaurant_settings, load_available_items_by_id
from shared.events import ChangeKind

logger = logging.getLogger(__name__)

_ZERO = Decimal("0.00")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def generate_order_number(prefix: str, now: float | None = None) -> str:
    """
    Prefix plus the last six digits of the millisecond clock.

    Best effort only: two submissions landing on the same millisecond modulo
    10^6 get the same number. Orders are keyed by UUID; the number is for humans.
    """
    millis = int((time.time() if now is None else now) * 1000)
    return f"{prefix}{str(millis)[-6:]}"


def normalize_delivery_type(form: CheckoutForm) -> DeliveryType:
    if form.delivery_type is not DeliveryType.ONLINE:
        return form.delivery_type
    if form.address is not None and form.address.is_complete:
        return DeliveryType.DELIVERY
    return DeliveryType.PICKUP


def validate_checkout(cart: Cart, form: CheckoutForm) -> None:
    """Raise OrderValidationError for the first missing requirement. Never writes."""
    if cart.is_empty:
        raise OrderValidationError("Cart is empty: add items before finishing the order")

    if form.channel is OrderChannel.MENU and not (
        (form.customer_name or "").strip() and (form.customer_phone or "").strip()
    ):
        raise OrderValidationError("Customer name and phone are required")

    delivery_type = normalize_delivery_type(form)
    if delivery_type is DeliveryType.DINE_IN and form.table_number is None:
        raise OrderValidationError("Table number is required for dine-in orders")

    if delivery_type is DeliveryType.DELIVERY and (
        form.address is None or not form.address.is_complete
    ):
        raise OrderValidationError("Delivery address needs street, number and neighborhood")


async def build_cart(db: AsyncSession, requested: list[CartItemRequest]) -> Cart:
    """Rebuild a screen's cart from an API payload, snapshotting current prices."""
    menu_items = await load_available_items_by_id(db, (r.menu_item_id for r in requested))
    missing = {r.menu_item_id for r in requested} - set(menu_items)
    if missing:
        raise OrderValidationError(
            f"Menu items not found or unavailable: {sorted(str(m) for m in missing)}"
        )

    cart = Cart()
    for req in requested:
        cart.add(menu_items[req.menu_item_id], quantity=req.quantity)
    return cart


async def resolve_table(db: AsyncSession, number: int) -> DiningTable:
    result = await db.execute(select(DiningTable).where(DiningTable.number == number))
    table = result.scalars().first()
    if table is None:
        raise TableNotFoundError(f"Table {number} does not exist")
    return table


def order_lines(order_id: uuid.UUID, cart: Cart, start: int = 0) -> list[OrderItem]:
    return [
        OrderItem(
            order_id=order_id,
            menu_item_id=line.menu_item_id,
            name=line.name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=line.total_price,
            position=start + position,
        )
        for position, line in enumerate(cart)
    ]


async def _delivery_fee(db: AsyncSession, form: CheckoutForm, delivery_type: DeliveryType) -> Decimal:
    if form.channel is not OrderChannel.MENU or delivery_type is not DeliveryType.DELIVERY:
        return _ZERO
    restaurant = await get_restaurant_settings(db)
    if restaurant is None:
        return settings.default_delivery_fee
    return restaurant.delivery_fee


async def fetch_order(db: AsyncSession, order_id: uuid.UUID) -> Order | None:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items), selectinload(Order.table))
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def get_order(db: AsyncSession, order_id: uuid.UUID) -> OrderResponse | None:
    order = await fetch_order(db, order_id)
    if order is None:
        return None
    return OrderResponse.model_validate(order)


async def submit_order(
    db: AsyncSession,
    cart: Cart,
    form: CheckoutForm,
    producer: AIOKafkaProducer | None,
    request_id: str | None = None,
) -> OrderResponse:
    # 1. Validate before touching the database
    try:
        validate_checkout(cart, form)
        delivery_type = normalize_delivery_type(form)
        table = None
        if delivery_type is DeliveryType.DINE_IN:
            table = await resolve_table(db, form.table_number)
    except OrderValidationError as exc:
        ORDER_VALIDATION_FAILURES.labels(form.channel.value).inc()
        logger.info(
            "Checkout rejected",
            extra={"request_id": request_id, "channel": form.channel.value, "reason": str(exc)},
        )
        raise

    # 2. Totals
    prefix = settings.menu_order_prefix if form.channel is OrderChannel.MENU else settings.pdv_order_prefix
    order_number = generate_order_number(prefix)
    subtotal = cart.subtotal()
    delivery_fee = await _delivery_fee(db, form, delivery_type)
    service_fee = _ZERO
    total = subtotal + delivery_fee + service_fee - form.discount
    if total < 0:
        raise OrderValidationError("Discount is larger than the order total")

    # 3. Header, table occupancy and lines go in one transaction
    order = Order(
        order_number=order_number,
        delivery_type=delivery_type,
        status=OrderStatus.NEW,
        payment_method=form.payment_method,
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        service_fee=service_fee,
        discount=form.discount,
        total=total,
        customer_name=form.customer_name or None,
        customer_phone=form.customer_phone or None,
        delivery_address=(
            form.address.model_dump()
            if delivery_type is DeliveryType.DELIVERY and form.address is not None
            else None
        ),
        table_id=table.id if table is not None else None,
        notes=form.notes or None,
    )
    try:
        db.add(order)
        await db.flush()  # header insert must succeed before the table is touched

        if table is not None:
            table.status = TableStatus.OCCUPIED

        db.add_all(order_lines(order.id, cart))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Order submission failed, rolled back",
            extra={"request_id": request_id, "order_number": order_number},
        )
        raise

    ORDERS_SUBMITTED.labels(form.channel.value, delivery_type.value).inc()
    logger.info(
        "Order submitted",
        extra={
            "order_id": str(order.id),
            "order_number": order_number,
            "request_id": request_id,
            "channel": form.channel.value,
            "total": float(total),
            "item_count": len(cart),
        },
    )

    # 4. Tell the other screens
    order = await fetch_order(db, order.id)
    await publish_order_change(producer, ChangeKind.INSERT, order, request_id)
    return OrderResponse.model_validate(order)
