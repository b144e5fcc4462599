"""
Receipt printing collaborator.

Rendering for a physical printer lives outside this service; the default
printer renders plain text and writes it to the log so closed orders leave a
trace even without hardware attached.
"""

import logging
from enum import Enum
from typing import Protocol

from app.models.order import Order

logger = logging.getLogger(__name__)


class ReceiptAudience(str, Enum):
    CUSTOMER = "customer"
    KITCHEN = "kitchen"


class ReceiptPrinter(Protocol):
    def print_receipt(
        self,
        order: Order,
        display_name: str,
        table_number: int | None,
        audience: ReceiptAudience,
    ) -> None: ...


def render_receipt(
    order: Order,
    display_name: str,
    table_number: int | None,
    audience: ReceiptAudience,
) -> str:
    lines = [display_name, f"Order {order.order_number}"]
    if table_number is not None:
        lines.append(f"Table {table_number}")
    lines.append("-" * 32)
    for item in order.items:
        if audience is ReceiptAudience.KITCHEN:
            lines.append(f"{item.quantity}x {item.name}")
        else:
            lines.append(f"{item.quantity}x {item.name:<20} {item.total_price:>8.2f}")
    if audience is ReceiptAudience.CUSTOMER:
        lines.append("-" * 32)
        lines.append(f"{'Subtotal':<24}{order.subtotal:>8.2f}")
        if order.delivery_fee:
            lines.append(f"{'Delivery':<24}{order.delivery_fee:>8.2f}")
        if order.service_fee:
            lines.append(f"{'Service':<24}{order.service_fee:>8.2f}")
        if order.discount:
            lines.append(f"{'Discount':<24}{-order.discount:>8.2f}")
        lines.append(f"{'Total':<24}{order.total:>8.2f}")
        lines.append(f"Paid with {order.payment_method.value}")
    return "\n".join(lines)


class LoggingReceiptPrinter:
    def print_receipt(
        self,
        order: Order,
        display_name: str,
        table_number: int | None,
        audience: ReceiptAudience,
    ) -> None:
        logger.info(
            "Printing receipt",
            extra={
                "order_id": str(order.id),
                "order_number": order.order_number,
                "audience": audience.value,
                "receipt": render_receipt(order, display_name, table_number, audience),
            },
        )
