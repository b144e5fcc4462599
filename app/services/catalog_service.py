import logging
import uuid
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import AsyncSessionLocal
from app.models.catalog import Category, MenuItem
from app.models.restaurant import RestaurantSettings
from app.models.table import DiningTable
from app.schemas.catalog import CatalogResponse, CategoryResponse, MenuItemResponse

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"

_CATEGORY_SEED = [
    {"name": "Lanches", "description": "Burgers and sandwiches", "sort_order": 1},
    {"name": "Pizzas", "description": None, "sort_order": 2},
    {"name": "Bebidas", "description": "Soft drinks and juices", "sort_order": 3},
]

_MENU_SEED = {
    "Lanches": [
        {"name": "X-Burger", "description": "Beef patty, cheese, bun", "price": Decimal("18.90")},
        {"name": "X-Salada", "description": "X-Burger with lettuce & tomato", "price": Decimal("21.90"),
         "promotional_price": Decimal("19.90")},
        {"name": "Misto Quente", "description": "Ham and cheese toastie", "price": Decimal("12.00")},
    ],
    "Pizzas": [
        {"name": "Margherita", "description": "Tomato, mozzarella, basil", "price": Decimal("45.00")},
        {"name": "Calabresa", "description": "Calabrese sausage & onion", "price": Decimal("48.00")},
    ],
    "Bebidas": [
        {"name": "Refrigerante Lata", "description": "350 ml can", "price": Decimal("6.00")},
        {"name": "Suco Natural", "description": "500 ml", "price": Decimal("9.50")},
    ],
}

_TABLE_SEED = range(1, 11)


async def seed_catalog() -> None:
    """Populate categories, menu, tables and settings if the menu is empty. Called once on startup."""
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(MenuItem).limit(1))
        if result.scalars().first() is not None:
            return
        count = 0
        for category_data in _CATEGORY_SEED:
            category = Category(**category_data)
            db.add(category)
            for position, item_data in enumerate(_MENU_SEED[category.name]):
                db.add(MenuItem(category=category, sort_order=position, **item_data))
                count += 1
        for number in _TABLE_SEED:
            db.add(DiningTable(number=number))
        db.add(
            RestaurantSettings(
                name="Restaurante",
                phone=settings.restaurant_phone,
                delivery_fee=settings.default_delivery_fee,
            )
        )
        await db.commit()
        logger.info("Seeded %d menu items and %d tables", count, len(_TABLE_SEED))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def load_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(
        select(Category).where(Category.is_active.is_(True)).order_by(Category.sort_order)
    )
    return list(result.scalars().all())


async def load_menu_items(db: AsyncSession) -> list[MenuItem]:
    result = await db.execute(
        select(MenuItem).where(MenuItem.is_available.is_(True)).order_by(MenuItem.sort_order)
    )
    return list(result.scalars().all())


async def load_available_items_by_id(
    db: AsyncSession, item_ids: Iterable[uuid.UUID]
) -> dict[uuid.UUID, MenuItem]:
    result = await db.execute(
        select(MenuItem).where(MenuItem.id.in_(set(item_ids)), MenuItem.is_available.is_(True))
    )
    return {item.id: item for item in result.scalars().all()}


async def load_tables(db: AsyncSession) -> list[DiningTable]:
    result = await db.execute(select(DiningTable).order_by(DiningTable.number))
    return list(result.scalars().all())


async def get_restaurant_settings(db: AsyncSession) -> RestaurantSettings | None:
    result = await db.execute(select(RestaurantSettings).limit(1))
    return result.scalars().first()


def filter_items(
    items: Iterable[MenuItem],
    category_id: uuid.UUID | str | None = None,
    search: str | None = None,
) -> list[MenuItem]:
    """Category tab plus the customer menu's name search box."""
    needle = (search or "").strip().lower()
    match_all = category_id is None or category_id == ALL_CATEGORIES
    return [
        item
        for item in items
        if (match_all or str(item.category_id) == str(category_id))
        and needle in item.name.lower()
    ]


async def load_catalog(
    db: AsyncSession,
    category_id: uuid.UUID | str | None = None,
    search: str | None = None,
) -> CatalogResponse:
    categories = await load_categories(db)
    items = filter_items(await load_menu_items(db), category_id, search)
    return CatalogResponse(
        categories=[CategoryResponse.model_validate(c) for c in categories],
        items=[MenuItemResponse.model_validate(i) for i in items],
    )
