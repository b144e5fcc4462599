"""
Realtime order change channel.

Every committed write to ``orders`` publishes an ``OrderChangedEvent`` on the
orders topic. The lifecycle board subscribes to the same topic and answers
any message, whatever its payload, with a full reconcile.
"""

import asyncio
import logging
import socket
import uuid

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.errors import KafkaError
from opentelemetry import trace
from opentelemetry.propagate import extract, inject
from pydantic import ValidationError

from app.config import settings
from app.metrics import ORDER_EVENTS
from app.models.order import Order
from shared.events import ChangeKind, OrderChangedEvent

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def publish_order_change(
    producer: AIOKafkaProducer | None,
    kind: ChangeKind,
    order: Order,
    request_id: str | None = None,
) -> None:
    """Publish after commit. A failed publish never undoes the write."""
    if producer is None:
        logger.debug("Realtime disabled, not publishing", extra={"order_id": str(order.id)})
        return

    event = OrderChangedEvent(
        correlation_id=request_id,
        kind=kind,
        order_id=order.id,
        order_number=order.order_number,
        status=order.status.value,
    )
    headers: dict[str, str] = {}
    inject(headers)
    try:
        await producer.send_and_wait(
            settings.orders_topic,
            key=str(order.id).encode(),
            value=event.model_dump_json().encode(),
            headers=[(k, v.encode()) for k, v in headers.items()],
        )
    except KafkaError as exc:
        # Other screens stay stale until their next reload.
        ORDER_EVENTS.labels("published", "error").inc()
        logger.warning(
            "Failed to publish order change",
            extra={"order_id": str(order.id), "kind": kind.value, "error": str(exc)},
        )
        return

    ORDER_EVENTS.labels("published", "ok").inc()
    logger.info(
        "Published order change",
        extra={"order_id": str(order.id), "kind": kind.value, "request_id": request_id},
    )


def board_consumer_group() -> str:
    """A group of its own per process, so every replica's board hears every change."""
    return f"{settings.kafka_consumer_group_prefix}-{socket.gethostname()}-{uuid.uuid4().hex[:8]}"


async def run_board_subscription(consumer: AIOKafkaConsumer, board) -> None:
    """Reconcile the board on every order change message. Runs until cancelled."""
    async for msg in consumer:
        await handle_change_message(msg, board)


async def handle_change_message(msg, board) -> None:
    headers = {k: v.decode() for k, v in msg.headers} if msg.headers else {}
    ctx = extract(headers)

    with tracer.start_as_current_span("kafka.consume.orders.changed", context=ctx):
        try:
            event = OrderChangedEvent.model_validate_json(msg.value)
        except ValidationError as exc:
            ORDER_EVENTS.labels("consumed", "error").inc()
            logger.warning(
                "Unparseable order change message, reloading anyway",
                extra={"error": str(exc), "offset": msg.offset, "partition": msg.partition},
            )
        else:
            ORDER_EVENTS.labels("consumed", "ok").inc()
            logger.info(
                "Received order change",
                extra={"order_id": str(event.order_id), "kind": event.kind.value},
            )

        try:
            await board.reconcile(trigger="realtime")
        except Exception as exc:
            logger.error(
                "Board reload after order change failed",
                extra={"error": str(exc), "offset": msg.offset, "partition": msg.partition},
            )


def log_subscription_exit(task: asyncio.Task) -> None:
    """Done callback for the subscription task; surfaces a loop that died early."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Board subscription stopped, realtime refresh is off",
            exc_info=(type(exc), exc, exc.__traceback__),
        )
