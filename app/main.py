import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import make_asgi_app

from app import models  # noqa: F401  registers every table with Base.metadata
from app.config import settings
from app.database import AsyncSessionLocal, Base, engine
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.realtime import board_consumer_group, log_subscription_exit, run_board_subscription
from app.receipts import LoggingReceiptPrinter
from app.routers import catalog, comandas, orders, reports
from app.routers.errors import install_error_handlers
from app.services.board_service import LifecycleBoard
from app.services.catalog_service import seed_catalog
from app.utils.logging import setup_logging
from shared.tracing import setup_tracing

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

setup_tracing("restaurant-pos", settings.otlp_endpoint)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up, creating database tables")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)

    if settings.seed_catalog:
        await seed_catalog()

    board = LifecycleBoard(AsyncSessionLocal)
    await board.reconcile(trigger="startup")
    app.state.board = board
    app.state.receipt_printer = LoggingReceiptPrinter()

    producer = None
    consumer = None
    subscription = None
    if settings.realtime_enabled:
        producer = AIOKafkaProducer(
            bootstrap_servers=settings.kafka_bootstrap_servers,
            enable_idempotence=True,
        )
        await producer.start()
        consumer = AIOKafkaConsumer(
            settings.orders_topic,
            bootstrap_servers=settings.kafka_bootstrap_servers,
            group_id=board_consumer_group(),
            auto_offset_reset="latest",
        )
        await consumer.start()
        subscription = asyncio.create_task(run_board_subscription(consumer, board))
        subscription.add_done_callback(log_subscription_exit)
    app.state.kafka_producer = producer
    logger.info("Startup complete", extra={"realtime_enabled": settings.realtime_enabled})

    yield

    if subscription is not None:
        subscription.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await subscription
    if consumer is not None:
        await consumer.stop()
    if producer is not None:
        await producer.stop()
    await engine.dispose()
    logger.info("Shutting down")


app = FastAPI(
    title="Restaurant POS",
    description="Customer menu, PDV, comandas and sales reports",
    version="1.0.0",
    lifespan=lifespan,
)

FastAPIInstrumentor.instrument_app(app)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
install_error_handlers(app)
app.include_router(catalog.router, tags=["catalog"])
app.include_router(orders.router, prefix="/orders", tags=["orders"])
app.include_router(comandas.router, tags=["comandas"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])

# Expose Prometheus metrics at /metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
