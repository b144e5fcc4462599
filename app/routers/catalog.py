import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.catalog import CatalogResponse, TableResponse
from app.services import catalog_service, messaging

router = APIRouter()


class WhatsAppLink(BaseModel):
    url: str


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(
    category_id: uuid.UUID | None = None,
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> CatalogResponse:
    return await catalog_service.load_catalog(db, category_id, search)


@router.get("/tables", response_model=list[TableResponse])
async def list_tables(db: AsyncSession = Depends(get_db)) -> list[TableResponse]:
    return [TableResponse.model_validate(t) for t in await catalog_service.load_tables(db)]


@router.get("/messaging/whatsapp", response_model=WhatsAppLink)
async def whatsapp_link(
    message: str = messaging.DEFAULT_GREETING,
    db: AsyncSession = Depends(get_db),
) -> WhatsAppLink:
    return WhatsAppLink(url=await messaging.restaurant_whatsapp_link(db, message))
