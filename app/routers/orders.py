import logging
import uuid

from aiokafka import AIOKafkaProducer
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.receipts import ReceiptPrinter
from app.routers.deps import get_printer, get_producer, refresh_board, request_id
from app.schemas.order import AddItemsRequest, MenuOrderCreate, OrderResponse, PDVOrderCreate
from app.services import board_service, order_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/pdv", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_pdv_order(
    body: PDVOrderCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    producer: AIOKafkaProducer | None = Depends(get_producer),
) -> OrderResponse:
    rid = request_id(request)
    logger.info("Received PDV order", extra={"request_id": rid, "lines": len(body.items)})
    cart = await order_service.build_cart(db, body.items)
    order = await order_service.submit_order(db, cart, body.to_form(), producer, rid)
    await refresh_board(request)
    return order


@router.post("/menu", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_menu_order(
    body: MenuOrderCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    producer: AIOKafkaProducer | None = Depends(get_producer),
) -> OrderResponse:
    rid = request_id(request)
    logger.info("Received customer menu order", extra={"request_id": rid, "lines": len(body.items)})
    cart = await order_service.build_cart(db, body.items)
    order = await order_service.submit_order(db, cart, body.to_form(), producer, rid)
    await refresh_board(request)
    return order


@router.get("/pending", response_model=list[OrderResponse])
async def pending_orders(
    dine_in_only: bool = False,
    db: AsyncSession = Depends(get_db),
) -> list[OrderResponse]:
    orders = await board_service.list_pending(db, dine_in_only=dine_in_only)
    return [OrderResponse.model_validate(o) for o in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    logger.info(
        "Received get_order request",
        extra={"request_id": request_id(request), "order_id": str(order_id)},
    )
    order = await order_service.get_order(db, order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.post("/{order_id}/advance", response_model=OrderResponse)
async def advance_order(
    order_id: uuid.UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    producer: AIOKafkaProducer | None = Depends(get_producer),
) -> OrderResponse:
    order = await board_service.advance_order(db, order_id, producer, request_id(request))
    await refresh_board(request)
    return order


@router.post("/{order_id}/close", response_model=OrderResponse)
async def close_order(
    order_id: uuid.UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    producer: AIOKafkaProducer | None = Depends(get_producer),
    printer: ReceiptPrinter = Depends(get_printer),
) -> OrderResponse:
    order = await board_service.close_order(db, order_id, producer, printer, request_id(request))
    await refresh_board(request)
    return order


@router.post("/{order_id}/items", response_model=OrderResponse)
async def add_items(
    order_id: uuid.UUID,
    body: AddItemsRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    producer: AIOKafkaProducer | None = Depends(get_producer),
) -> OrderResponse:
    cart = await order_service.build_cart(db, body.items)
    order = await board_service.add_items_to_order(db, order_id, cart, producer, request_id(request))
    await refresh_board(request)
    return order
