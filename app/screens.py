"""
Per-screen state for the PDV and the customer menu.

Each screen owns one state object, including its own cart. Changes go through
``dispatch(state, action)`` only; nothing here is shared between screens, so
two screens only ever see each other's work through the database.
"""

import uuid
from dataclasses import dataclass, field, replace
from typing import Any

from app.cart import Cart, Priceable
from app.models.order import DeliveryType, PaymentMethod
from app.schemas.order import CheckoutForm, DeliveryAddress, OrderChannel
from app.services.catalog_service import ALL_CATEGORIES


@dataclass
class PDVState:
    cart: Cart = field(default_factory=Cart)
    selected_category: str = ALL_CATEGORIES
    delivery_type: DeliveryType = DeliveryType.DINE_IN
    table_number: int | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    address: DeliveryAddress = field(default_factory=DeliveryAddress)


@dataclass
class CustomerMenuState:
    cart: Cart = field(default_factory=Cart)
    selected_category: str = ALL_CATEGORIES
    search_term: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    delivery_type: DeliveryType = DeliveryType.DELIVERY
    payment_method: PaymentMethod = PaymentMethod.PIX
    address: DeliveryAddress = field(default_factory=DeliveryAddress)
    notes: str = ""


ScreenState = PDVState | CustomerMenuState


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SelectCategory:
    category_id: str


@dataclass(frozen=True)
class Search:
    term: str


@dataclass(frozen=True)
class SetField:
    name: str
    value: Any


@dataclass(frozen=True)
class AddItem:
    item: Priceable


@dataclass(frozen=True)
class ChangeQuantity:
    item_id: uuid.UUID
    delta: int


@dataclass(frozen=True)
class RemoveItem:
    item_id: uuid.UUID


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class CheckoutSucceeded:
    pass


_CART_FREE_FIELDS = {"cart"}


def dispatch(state: ScreenState, action: object) -> ScreenState:
    """Apply one action. Form changes return a new state; cart actions mutate the state's cart."""
    if isinstance(action, SelectCategory):
        return replace(state, selected_category=action.category_id)

    if isinstance(action, Search):
        if not isinstance(state, CustomerMenuState):
            raise TypeError("Search is only available on the customer menu")
        return replace(state, search_term=action.term)

    if isinstance(action, SetField):
        if action.name in _CART_FREE_FIELDS or not hasattr(state, action.name):
            raise AttributeError(f"{type(state).__name__} has no form field {action.name!r}")
        return replace(state, **{action.name: action.value})

    if isinstance(action, AddItem):
        state.cart.add(action.item)
        return state

    if isinstance(action, ChangeQuantity):
        state.cart.change_quantity(action.item_id, action.delta)
        return state

    if isinstance(action, RemoveItem):
        state.cart.remove(action.item_id)
        return state

    if isinstance(action, ClearCart):
        state.cart.clear()
        return state

    if isinstance(action, CheckoutSucceeded):
        state.cart.clear()
        # Keep the cart object and the browsing position, reset the form.
        return type(state)(cart=state.cart, selected_category=state.selected_category)

    raise TypeError(f"Unknown action {action!r}")


def checkout_form(state: ScreenState) -> CheckoutForm:
    if isinstance(state, PDVState):
        return CheckoutForm(
            channel=OrderChannel.PDV,
            delivery_type=state.delivery_type,
            payment_method=state.payment_method,
            table_number=state.table_number,
            address=state.address if state.delivery_type is DeliveryType.DELIVERY else None,
        )
    return CheckoutForm(
        channel=OrderChannel.MENU,
        delivery_type=state.delivery_type,
        payment_method=state.payment_method,
        customer_name=state.customer_name,
        customer_phone=state.customer_phone,
        address=state.address if state.delivery_type is not DeliveryType.PICKUP else None,
        notes=state.notes,
    )
