"""
In-memory shopping cart shared by the customer menu and the PDV screen.

A cart belongs to one screen session. Entries keep insertion order and carry
a snapshot of the item's name and effective price taken when the item was
first added, so later catalog edits never change what the cart charges.
"""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, Protocol


class Priceable(Protocol):
    id: uuid.UUID
    name: str

    @property
    def effective_price(self) -> Decimal: ...


@dataclass
class CartLine:
    menu_item_id: uuid.UUID
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity


class Cart:
    def __init__(self) -> None:
        # dicts preserve insertion order, which is the display order
        self._lines: dict[uuid.UUID, CartLine] = {}

    def add(self, item: Priceable, quantity: int = 1) -> CartLine:
        line = self._lines.get(item.id)
        if line is not None:
            line.quantity += quantity
            return line
        line = CartLine(
            menu_item_id=item.id,
            name=item.name,
            unit_price=item.effective_price,
            quantity=quantity,
        )
        self._lines[item.id] = line
        return line

    def change_quantity(self, item_id: uuid.UUID, delta: int) -> None:
        line = self._lines.get(item_id)
        if line is None:
            return
        line.quantity += delta
        if line.quantity <= 0:
            del self._lines[item_id]

    def remove(self, item_id: uuid.UUID) -> None:
        self._lines.pop(item_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def total(self) -> Decimal:
        return sum((line.total_price for line in self._lines.values()), Decimal("0"))

    # The cart has no fees of its own; subtotal and total are the same figure.
    subtotal = total

    def quantity_of(self, item_id: uuid.UUID) -> int:
        line = self._lines.get(item_id)
        return line.quantity if line is not None else 0

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(list(self._lines.values()))
