from datetime import date, datetime

import pytest
from sqlalchemy import select

from trucksales.core.errors import NotFoundError, ReferenceConflictError, ValidationError
from trucksales.models.sales import Sale
from trucksales.services.client_service import (
    client_out,
    create_client,
    delete_client,
    get_client,
    list_clients,
    update_client,
)
from trucksales.services.expense_service import (
    create_expense,
    delete_expense,
    expense_out,
    expense_totals,
    list_expenses,
)
from trucksales.services.product_service import (
    create_product,
    delete_product,
    get_product,
    get_stock_report,
    list_low_stock_products,
    list_products,
    product_out,
    update_product,
)
from trucksales.services.sales_service import finalize_sale


def _sell(db, client_id: int, product_id: int, qty: int = 1):
    return finalize_sale(
        db,
        client_id,
        [{"product_id": product_id, "quantity": qty, "unit_price": 1, "unit_cost": 0}],
    )


def test_products_are_listed_by_name_and_searchable(db):
    create_product(db, {"name": "  Water 1.5L ", "quantity": 10, "unit_price": 40})
    create_product(db, {"name": "apple juice", "quantity": 0, "unit_price": 90})
    create_product(db, {"name": "Biscuits", "quantity": 3, "unit_price": 25})

    assert [p.name for p in list_products(db)] == ["Biscuits", "Water 1.5L", "apple juice"]
    assert [p.name for p in list_products(db, search="JUICE")] == ["apple juice"]
    assert [p.name for p in list_products(db, in_stock_only=True)] == ["Biscuits", "Water 1.5L"]
    assert [p.name for p in list_low_stock_products(db)] == ["apple juice", "Biscuits"]


def test_product_validation(db):
    with pytest.raises(ValidationError):
        create_product(db, {"name": "   ", "quantity": 1})
    with pytest.raises(ValidationError):
        create_product(db, {"name": "Negative", "quantity": -1})
    with pytest.raises(ValidationError):
        create_product(db, {"name": "Bad price", "unit_price": "free"})

    product = create_product(db, {"name": "Valid"})
    with pytest.raises(ValidationError):
        update_product(db, product.id, {})
    with pytest.raises(NotFoundError):
        update_product(db, 999, {"quantity": 3})


def test_update_product_in_place(db):
    product = create_product(db, {"name": "Tuna", "quantity": 4, "unit_price": 150, "purchase_price": 110})

    updated = update_product(db, product.id, {"quantity": 24, "unit_price": "155.5"})
    out = product_out(updated)

    assert out.quantity == 24
    assert out.unit_price == 155.5
    assert out.purchase_price == 110.0
    assert out.low_stock is False


def test_delete_product_with_history_is_blocked(db):
    client = create_client(db, {"name": "Store"})
    product = create_product(db, {"name": "Sold item", "quantity": 5, "unit_price": 1})
    unsold = create_product(db, {"name": "Never sold", "quantity": 5, "unit_price": 1})
    _sell(db, client.id, product.id)

    with pytest.raises(ReferenceConflictError):
        delete_product(db, product.id)
    assert get_product(db, product.id).name == "Sold item"

    delete_product(db, unsold.id)
    with pytest.raises(NotFoundError):
        get_product(db, unsold.id)


def test_delete_client_orphans_sales_when_allowed(db, allow_orphaning_deletes):
    client = create_client(db, {"name": "Closing Store"})
    product = create_product(db, {"name": "Item", "quantity": 5, "unit_price": 1})
    sale = _sell(db, client.id, product.id)

    delete_client(db, client.id)

    with pytest.raises(NotFoundError):
        get_client(db, client.id)
    assert db.execute(select(Sale.client_id).where(Sale.id == sale.id)).scalar_one() == client.id


def test_delete_client_with_sales_is_blocked(db):
    client = create_client(db, {"name": "Loyal Store"})
    product = create_product(db, {"name": "Item", "quantity": 5, "unit_price": 1})
    _sell(db, client.id, product.id)

    with pytest.raises(ReferenceConflictError) as exc_info:
        delete_client(db, client.id)

    assert exc_info.value.code == "conflict"
    assert get_client(db, client.id).name == "Loyal Store"


def test_clients_search_by_name_or_address(db):
    create_client(db, {"name": "Superette Amine", "address": "Rue des Freres Bouadou"})
    create_client(db, {"name": "Epicerie Nour", "address": "Cite 5 Juillet"})
    baraka = create_client(db, {"name": "Alimentation Baraka", "address": "Bouadou Centre"})

    assert [c.name for c in list_clients(db)] == [
        "Alimentation Baraka",
        "Epicerie Nour",
        "Superette Amine",
    ]
    assert [c.name for c in list_clients(db, search="bouadou")] == [
        "Alimentation Baraka",
        "Superette Amine",
    ]

    updated = update_client(db, baraka.id, {"address": "  Place du Marche "})
    assert client_out(updated).model_dump() == {
        "id": baraka.id,
        "name": "Alimentation Baraka",
        "address": "Place du Marche",
    }
    with pytest.raises(ValidationError):
        create_client(db, {"name": ""})


def test_stock_report_totals(db):
    create_product(db, {"name": "Water", "quantity": 10, "unit_price": "40.50"})
    create_product(db, {"name": "Soda", "quantity": 3, "unit_price": 100})

    report = get_stock_report(db)

    assert [(line.name, line.stock_value) for line in report.items] == [("Soda", 300.0), ("Water", 405.0)]
    assert report.total_units == 13
    assert report.total_value == 705.0


def test_expenses_filtered_by_day_and_type(db):
    monday = datetime(2026, 10, 19, 7, 30, 0)
    sunday = datetime(2026, 10, 18, 18, 0, 0)
    fuel = create_expense(db, {"type": "fuel", "amount": 3000, "description": " Diesel "}, now=monday)
    create_expense(db, {"type": "purchase", "amount": "12000.75"}, now=monday)
    create_expense(db, {"type": "fuel", "amount": 2800}, now=sunday)

    assert expense_out(fuel).model_dump() == {
        "id": fuel.id,
        "type": "fuel",
        "amount": 3000.0,
        "description": "Diesel",
        "date": "2026-10-19T07:30:00",
    }
    assert len(list_expenses(db, day=date(2026, 10, 19))) == 2
    assert [e.date for e in list_expenses(db, expense_type="fuel")] == [
        "2026-10-19T07:30:00",
        "2026-10-18T18:00:00",
    ]

    totals = expense_totals(db, date(2026, 10, 19))
    assert totals.total == 15000.75
    assert totals.by_type["fuel"] == 3000.0
    assert totals.by_type["repairs"] == 0.0

    delete_expense(db, fuel.id)
    assert expense_totals(db, date(2026, 10, 19)).total == 12000.75
    with pytest.raises(NotFoundError):
        delete_expense(db, fuel.id)


def test_expense_validation(db):
    with pytest.raises(ValidationError):
        create_expense(db, {"type": "party", "amount": 10})
    with pytest.raises(ValidationError):
        create_expense(db, {"type": "fuel", "amount": 0})
    with pytest.raises(ValidationError):
        list_expenses(db, expense_type="party")
