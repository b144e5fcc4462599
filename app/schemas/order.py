import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from app.models.order import DeliveryType, OrderStatus, PaymentMethod


class OrderChannel(str, Enum):
    PDV = "pdv"
    MENU = "menu"


class MenuDeliveryType(str, Enum):
    """Delivery types a customer can pick on the menu; dine-in is taken at the PDV."""

    DELIVERY = "delivery"
    PICKUP = "pickup"
    ONLINE = "online"


class DeliveryAddress(BaseModel):
    street: str = ""
    number: str = ""
    neighborhood: str = ""
    complement: str = ""
    reference: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.street.strip() and self.number.strip() and self.neighborhood.strip())


class CheckoutForm(BaseModel):
    channel: OrderChannel = OrderChannel.PDV
    delivery_type: DeliveryType = DeliveryType.DINE_IN
    payment_method: PaymentMethod = PaymentMethod.CASH
    table_number: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    address: DeliveryAddress | None = None
    notes: str | None = None
    discount: Decimal = Field(default=Decimal("0"), ge=0)


class CartItemRequest(BaseModel):
    menu_item_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)


class PDVOrderCreate(BaseModel):
    items: list[CartItemRequest]
    delivery_type: DeliveryType = DeliveryType.DINE_IN
    payment_method: PaymentMethod = PaymentMethod.CASH
    table_number: int | None = None
    address: DeliveryAddress | None = None
    discount: Decimal = Field(default=Decimal("0"), ge=0)

    def to_form(self) -> CheckoutForm:
        return CheckoutForm(
            channel=OrderChannel.PDV,
            delivery_type=self.delivery_type,
            payment_method=self.payment_method,
            table_number=self.table_number,
            address=self.address,
            discount=self.discount,
        )


class MenuOrderCreate(BaseModel):
    items: list[CartItemRequest]
    customer_name: str
    customer_phone: str
    delivery_type: MenuDeliveryType = MenuDeliveryType.DELIVERY
    payment_method: PaymentMethod = PaymentMethod.PIX
    address: DeliveryAddress | None = None
    notes: str | None = None

    def to_form(self) -> CheckoutForm:
        return CheckoutForm(
            channel=OrderChannel.MENU,
            delivery_type=DeliveryType(self.delivery_type.value),
            payment_method=self.payment_method,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            address=self.address,
            notes=self.notes,
        )


class ComandaCreate(BaseModel):
    table_number: int | None = None
    customer_name: str | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH


class AddItemsRequest(BaseModel):
    items: list[CartItemRequest]


class OrderItemResponse(BaseModel):
    id: uuid.UUID
    menu_item_id: uuid.UUID
    name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: uuid.UUID
    order_number: str
    delivery_type: DeliveryType
    status: OrderStatus
    payment_method: PaymentMethod
    subtotal: Decimal
    delivery_fee: Decimal
    service_fee: Decimal
    discount: Decimal
    total: Decimal
    customer_name: str | None
    customer_phone: str | None
    delivery_address: DeliveryAddress | None
    table_number: int | None
    notes: str | None
    created_at: datetime
    completed_at: datetime | None
    items: list[OrderItemResponse]

    model_config = {"from_attributes": True}


class OpenTabsSummary(BaseModel):
    open_count: int
    open_total: Decimal


class ComandasResponse(BaseModel):
    summary: OpenTabsSummary
    orders: list[OrderResponse]
