# Import all models here so SQLAlchemy registers them with Base.metadata
from app.models.cash import CashMovement, MovementType
from app.models.catalog import Category, MenuItem
from app.models.order import DeliveryType, Order, OrderItem, OrderStatus, PaymentMethod
from app.models.restaurant import RestaurantSettings
from app.models.table import DiningTable, TableStatus

__all__ = [
    "CashMovement",
    "Category",
    "DeliveryType",
    "DiningTable",
    "MenuItem",
    "MovementType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "RestaurantSettings",
    "TableStatus",
]
