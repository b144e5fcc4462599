import uuid
from decimal import Decimal

from app.models import DeliveryType, Order, OrderItem, OrderStatus, PaymentMethod
from app.receipts import ReceiptAudience, render_receipt
from app.services.catalog_service import filter_items, load_catalog
from app.services.messaging import restaurant_whatsapp_link, whatsapp_link


def sample_order():
    order = Order(
        id=uuid.uuid4(),
        order_number="PDV123456",
        delivery_type=DeliveryType.DELIVERY,
        status=OrderStatus.COMPLETED,
        payment_method=PaymentMethod.PIX,
        subtotal=Decimal("20.00"),
        delivery_fee=Decimal("5.00"),
        service_fee=Decimal("0.00"),
        discount=Decimal("0.00"),
        total=Decimal("25.00"),
    )
    order.items = [
        OrderItem(name="X-Burger", quantity=2, unit_price=Decimal("10.00"), total_price=Decimal("20.00"))
    ]
    return order


def test_customer_receipt_has_totals():
    text = render_receipt(sample_order(), "Cantina", 4, ReceiptAudience.CUSTOMER)
    assert "Cantina" in text
    assert "Table 4" in text
    assert "Delivery" in text
    assert "25.00" in text
    assert "pix" in text


def test_kitchen_receipt_has_no_prices():
    text = render_receipt(sample_order(), "Cantina", None, ReceiptAudience.KITCHEN)
    assert "2x X-Burger" in text
    assert "25.00" not in text
    assert "Table" not in text


def test_whatsapp_link_strips_phone_and_encodes_text():
    url = whatsapp_link("+55 (11) 9999-0000", "Olá! Quero pedir")
    assert url == "https://wa.me/551199990000?text=Ol%C3%A1%21%20Quero%20pedir"


async def test_restaurant_link_uses_settings_phone(db, catalog):
    url = await restaurant_whatsapp_link(db)
    assert url.startswith("https://wa.me/5511988887777?text=")


async def test_restaurant_link_falls_back_to_config(db):
    url = await restaurant_whatsapp_link(db)
    assert url.startswith("https://wa.me/5511999999999?text=")


async def test_catalog_filters(db, catalog):
    full = await load_catalog(db)
    assert [c.name for c in full.categories] == ["Lanches", "Bebidas"]
    assert [i.name for i in full.items] == ["X-Burger", "X-Salada", "Refrigerante"]
    assert full.items[1].effective_price == Decimal("9.00")

    lanches = await load_catalog(db, catalog["lanches"].id)
    assert [i.name for i in lanches.items] == ["X-Burger", "X-Salada"]

    searched = await load_catalog(db, "all", "SALADA")
    assert [i.name for i in searched.items] == ["X-Salada"]


async def test_filter_items_combines_category_and_search(catalog):
    items = [catalog["burger"], catalog["salada"], catalog["refri"]]
    assert filter_items(items, catalog["bebidas"].id, "x") == []
    assert filter_items(items, None, "refri") == [catalog["refri"]]
