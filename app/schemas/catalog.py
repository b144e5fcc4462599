import uuid
from decimal import Decimal

from pydantic import BaseModel

from app.models.table import TableStatus


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    sort_order: int

    model_config = {"from_attributes": True}


class MenuItemResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    price: Decimal
    promotional_price: Decimal | None
    effective_price: Decimal
    image_url: str | None
    category_id: uuid.UUID | None
    is_available: bool

    model_config = {"from_attributes": True}


class CatalogResponse(BaseModel):
    categories: list[CategoryResponse]
    items: list[MenuItemResponse]


class TableResponse(BaseModel):
    id: uuid.UUID
    number: int
    status: TableStatus

    model_config = {"from_attributes": True}
