from aiokafka import AIOKafkaProducer
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.routers.deps import get_board, get_producer, refresh_board, request_id
from app.schemas.board import BoardResponse
from app.schemas.order import ComandaCreate, ComandasResponse, OrderResponse
from app.services import board_service
from app.services.board_service import LifecycleBoard

router = APIRouter()


@router.get("/comandas", response_model=ComandasResponse)
async def list_comandas(db: AsyncSession = Depends(get_db)) -> ComandasResponse:
    orders = await board_service.list_pending(db, dine_in_only=True)
    return ComandasResponse(
        summary=board_service.summarize_open(orders),
        orders=[OrderResponse.model_validate(o) for o in orders],
    )


@router.post("/comandas", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def open_comanda(
    body: ComandaCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    producer: AIOKafkaProducer | None = Depends(get_producer),
) -> OrderResponse:
    order = await board_service.open_comanda(
        db,
        body.table_number,
        body.customer_name,
        body.payment_method,
        producer,
        request_id(request),
    )
    await refresh_board(request)
    return order


@router.get("/board", response_model=BoardResponse)
async def board_snapshot(board: LifecycleBoard | None = Depends(get_board)) -> BoardResponse:
    if board is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Board not started")
    return board.snapshot()
