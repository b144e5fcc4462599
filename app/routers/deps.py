import logging

from aiokafka import AIOKafkaProducer
from fastapi import Request

from app.receipts import LoggingReceiptPrinter, ReceiptPrinter
from app.services.board_service import LifecycleBoard

logger = logging.getLogger(__name__)


def request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def get_producer(request: Request) -> AIOKafkaProducer | None:
    return getattr(request.app.state, "kafka_producer", None)


def get_board(request: Request) -> LifecycleBoard | None:
    return getattr(request.app.state, "board", None)


def get_printer(request: Request) -> ReceiptPrinter:
    printer = getattr(request.app.state, "receipt_printer", None)
    return printer if printer is not None else LoggingReceiptPrinter()


async def refresh_board(request: Request) -> None:
    """Explicit reload after a local mutation."""
    board = get_board(request)
    if board is None:
        return
    try:
        await board.reconcile(trigger="local")
    except Exception as exc:
        # the write is already committed; the next reload catches up
        logger.error("Board reload after local change failed", extra={"error": str(exc)})
