"""
Pytest fixtures for the restaurant POS tests.

Every test gets a fresh in-memory SQLite database; the Kafka producer and
the receipt printer are replaced by recording fakes.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REALTIME_ENABLED", "false")
os.environ.setdefault("SEED_CATALOG", "false")
os.environ.setdefault("OTLP_ENDPOINT", "")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from aiokafka.errors import KafkaConnectionError  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import models  # noqa: E402,F401
from app.database import Base, get_db  # noqa: E402
from app.models import Category, DiningTable, MenuItem, RestaurantSettings  # noqa: E402
from app.services.board_service import LifecycleBoard  # noqa: E402


class FakeProducer:
    """Stands in for AIOKafkaProducer; records what would have been sent."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_and_wait(self, topic, value=None, key=None, headers=None):
        if self.fail:
            raise KafkaConnectionError("broker unavailable")
        self.sent.append({"topic": topic, "key": key, "value": value, "headers": headers})


class RecordingPrinter:
    def __init__(self):
        self.printed = []

    def print_receipt(self, order, display_name, table_number, audience):
        self.printed.append(
            {
                "order_number": order.order_number,
                "display_name": display_name,
                "table_number": table_number,
                "audience": audience,
            }
        )


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def catalog(db):
    """Two categories, four items (one on promotion, one unavailable), three free tables."""
    lanches = Category(name="Lanches", sort_order=1)
    bebidas = Category(name="Bebidas", sort_order=2)
    hidden = Category(name="Sobremesas", sort_order=3, is_active=False)
    db.add_all([lanches, bebidas, hidden])
    await db.flush()

    burger = MenuItem(name="X-Burger", price=Decimal("10.00"), category_id=lanches.id, sort_order=1)
    salada = MenuItem(
        name="X-Salada",
        price=Decimal("12.00"),
        promotional_price=Decimal("9.00"),
        category_id=lanches.id,
        sort_order=2,
    )
    refri = MenuItem(name="Refrigerante", price=Decimal("5.00"), category_id=bebidas.id, sort_order=3)
    sold_out = MenuItem(
        name="Suco de Caju",
        price=Decimal("7.00"),
        category_id=bebidas.id,
        is_available=False,
        sort_order=4,
    )
    db.add_all([burger, salada, refri, sold_out])
    db.add_all([DiningTable(number=n) for n in (1, 2, 3)])
    db.add(RestaurantSettings(name="Cantina", phone="+55 (11) 98888-7777", delivery_fee=Decimal("5.00")))
    await db.commit()

    return {
        "lanches": lanches,
        "bebidas": bebidas,
        "burger": burger,
        "salada": salada,
        "refri": refri,
        "sold_out": sold_out,
    }


@pytest.fixture
def producer():
    return FakeProducer()


@pytest.fixture
def printer():
    return RecordingPrinter()


@pytest.fixture
def board(session_factory):
    return LifecycleBoard(session_factory)


@pytest.fixture
async def client(session_factory, producer, printer, board, catalog):
    from app.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.kafka_producer = producer
    app.state.receipt_printer = printer
    app.state.board = board

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()



@pytest.fixture
def failing_producer():
    return FakeProducer(fail=True)
