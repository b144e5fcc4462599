from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.services.catalog_service import get_restaurant_settings

DEFAULT_GREETING = "Olá! Gostaria de fazer um pedido."


def whatsapp_link(phone: str, message: str = DEFAULT_GREETING) -> str:
    digits = "".join(ch for ch in phone if ch.isdigit())
    return f"https://wa.me/{digits}?text={quote(message)}"


async def restaurant_whatsapp_link(db: AsyncSession, message: str = DEFAULT_GREETING) -> str:
    restaurant = await get_restaurant_settings(db)
    phone = settings.restaurant_phone
    if restaurant is not None and restaurant.phone:
        phone = restaurant.phone
    return whatsapp_link(phone, message)
