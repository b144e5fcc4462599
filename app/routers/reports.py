from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.report import SalesReport
from app.services import report_service

router = APIRouter()


@router.get("/summary", response_model=SalesReport)
async def sales_summary(
    days: int = Query(default=7),
    db: AsyncSession = Depends(get_db),
) -> SalesReport:
    try:
        return await report_service.sales_report(db, days)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
