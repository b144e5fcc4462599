from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.database import get_db
from app.services.board_service import LifecycleBoard


def line(item, quantity=1):
    return {"menu_item_id": str(item.id), "quantity": quantity}


@pytest.fixture
def address():
    return {"street": "Rua das Flores", "number": "42", "neighborhood": "Centro"}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "X-Request-ID" in response.headers


async def test_catalog_and_tables(client, catalog):
    response = await client.get("/catalog", params={"search": "x-"})
    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["categories"]] == ["Lanches", "Bebidas"]
    assert [i["name"] for i in body["items"]] == ["X-Burger", "X-Salada"]

    response = await client.get("/tables")
    assert [(t["number"], t["status"]) for t in response.json()] == [
        (1, "free"),
        (2, "free"),
        (3, "free"),
    ]


async def test_pdv_order_flow(client, catalog, producer, printer, board):
    response = await client.post(
        "/orders/pdv",
        json={
            "items": [line(catalog["burger"], 2), line(catalog["refri"])],
            "table_number": 1,
            "payment_method": "debit_card",
        },
    )
    assert response.status_code == 201, response.text
    order = response.json()
    assert order["status"] == "new"
    assert order["table_number"] == 1
    assert Decimal(order["total"]) == Decimal("25.00")

    # explicit reload after the local mutation
    assert [str(o.id) for o in board.orders] == [order["id"]]

    response = await client.get("/comandas")
    assert response.json()["summary"]["open_count"] == 1

    response = await client.post(f"/orders/{order['id']}/advance")
    assert response.json()["status"] == "confirmed"

    response = await client.post(f"/orders/{order['id']}/close")
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert printer.printed[0]["table_number"] == 1

    board_view = (await client.get("/board")).json()
    assert board_view["orders"] == []
    assert board_view["tables"][0]["status"] == "free"

    response = await client.post(f"/orders/{order['id']}/close")
    assert response.status_code == 409

    # insert, advance, close
    assert len(producer.sent) == 3


async def test_pdv_validation_errors(client, catalog):
    response = await client.post("/orders/pdv", json={"items": [], "table_number": 1})
    assert response.status_code == 422
    assert "empty" in response.json()["detail"]

    response = await client.post("/orders/pdv", json={"items": [line(catalog["burger"])]})
    assert response.status_code == 422
    assert "Table" in response.json()["detail"]

    response = await client.post(
        "/orders/pdv", json={"items": [line(catalog["sold_out"])], "table_number": 1}
    )
    assert response.status_code == 422

    response = await client.post(
        "/orders/pdv", json={"items": [line(catalog["burger"], 0)], "table_number": 1}
    )
    assert response.status_code == 422


async def test_menu_order_with_delivery(client, catalog, address):
    response = await client.post(
        "/orders/menu",
        json={
            "items": [line(catalog["salada"], 2)],
            "customer_name": "Ana",
            "customer_phone": "11999990000",
            "delivery_type": "delivery",
            "address": address,
            "notes": "Sem cebola",
        },
    )
    assert response.status_code == 201, response.text
    order = response.json()
    assert order["order_number"].startswith("PED")
    assert Decimal(order["subtotal"]) == Decimal("18.00")
    assert Decimal(order["delivery_fee"]) == Decimal("5.00")
    assert Decimal(order["total"]) == Decimal("23.00")
    assert order["delivery_address"]["neighborhood"] == "Centro"

    fetched = await client.get(f"/orders/{order['id']}")
    assert fetched.json()["id"] == order["id"]


async def test_menu_order_online_without_address_becomes_pickup(client, catalog):
    response = await client.post(
        "/orders/menu",
        json={
            "items": [line(catalog["burger"])],
            "customer_name": "Ana",
            "customer_phone": "11999990000",
            "delivery_type": "online",
        },
    )
    assert response.status_code == 201
    assert response.json()["delivery_type"] == "pickup"
    assert Decimal(response.json()["delivery_fee"]) == Decimal("0")


async def test_menu_delivery_without_address_rejected(client, catalog):
    response = await client.post(
        "/orders/menu",
        json={
            "items": [line(catalog["burger"])],
            "customer_name": "Ana",
            "customer_phone": "11999990000",
            "delivery_type": "delivery",
        },
    )
    assert response.status_code == 422


async def test_comanda_add_items(client, catalog):
    response = await client.post("/comandas", json={"table_number": 3})
    assert response.status_code == 201
    tab = response.json()

    response = await client.post(
        f"/orders/{tab['id']}/items", json={"items": [line(catalog["burger"]), line(catalog["refri"], 2)]}
    )
    assert response.status_code == 200
    assert Decimal(response.json()["total"]) == Decimal("20.00")

    response = await client.post("/comandas", json={"table_number": 3})
    assert response.status_code == 409

    pending = (await client.get("/orders/pending", params={"dine_in_only": True})).json()
    assert [o["id"] for o in pending] == [tab["id"]]


async def test_unknown_order_is_404(client):
    response = await client.get("/orders/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404
    response = await client.post("/orders/00000000-0000-0000-0000-000000000000/close")
    assert response.status_code == 404


async def test_report_summary(client, catalog):
    await client.post("/orders/pdv", json={"items": [line(catalog["burger"])], "table_number": 1})
    await client.post(
        "/orders/pdv", json={"items": [line(catalog["refri"])], "delivery_type": "pickup"}
    )

    response = await client.get("/reports/summary", params={"days": 7})
    assert response.status_code == 200
    report = response.json()
    assert report["order_count"] == 2
    assert Decimal(report["total_revenue"]) == Decimal("15.00")
    assert Decimal(report["average_ticket"]) == Decimal("7.50")
    assert report["orders_by_type"] == {"delivery": 0, "pickup": 1, "dine_in": 1}

    response = await client.get("/reports/summary", params={"days": 9})
    assert response.status_code == 422


async def test_whatsapp_link(client):
    response = await client.get("/messaging/whatsapp")
    assert response.status_code == 200
    assert response.json()["url"].startswith("https://wa.me/5511988887777?text=")


async def test_database_failure_is_reported_not_raised(client):
    from app.main import app

    class BrokenSession:
        async def execute(self, *args, **kwargs):
            raise OperationalError("select", {}, Exception("connection refused"))

    async def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    response = await client.get("/tables")
    assert response.status_code == 503
    assert response.json()["detail"] == "Could not reach the database, try again"


async def test_menu_rejects_dine_in(client, catalog):
    response = await client.post(
        "/orders/menu",
        json={
            "items": [line(catalog["burger"])],
            "customer_name": "Ana",
            "customer_phone": "11999990000",
            "delivery_type": "dine_in",
        },
    )
    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"] == ["body", "delivery_type"]


async def test_order_is_created_when_board_reload_fails(client, catalog):
    from app.main import app

    class UnreachableBoard(LifecycleBoard):
        async def reconcile(self, trigger="local"):
            raise RuntimeError("board unavailable")

    app.state.board = UnreachableBoard(None)
    response = await client.post(
        "/orders/pdv", json={"items": [line(catalog["burger"])], "table_number": 2}
    )
    assert response.status_code == 201, response.text
