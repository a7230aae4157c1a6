from datetime import date, datetime

from trucksales.services.balance_service import record_payment
from trucksales.services.client_service import create_client
from trucksales.services.dashboard_service import get_stats_snapshot
from trucksales.services.expense_service import create_expense
from trucksales.services.product_service import create_product, update_product
from trucksales.services.sales_service import finalize_sale

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 10, 15, 0)
YESTERDAY = datetime(2026, 10, 18, 23, 59, 59)


def test_empty_ledger_snapshot(db):
    stats = get_stats_snapshot(db, today=TODAY)

    assert stats.day == "2026-10-19"
    assert stats.sales_today == 0.0
    assert stats.total_collected == 0.0
    assert stats.total_profit == 0.0
    assert stats.stores_visited == 0
    assert stats.low_stock == 0


def test_profit_uses_cost_captured_at_sale_time(db):
    client = create_client(db, {"name": "Store"})
    product = create_product(db, {"name": "Cola", "quantity": 10, "unit_price": 10, "purchase_price": 6})
    finalize_sale(
        db,
        client.id,
        [{"product_id": product.id, "quantity": 3, "unit_price": 10, "unit_cost": 6}],
        now=NOW,
    )

    update_product(db, product.id, {"purchase_price": 9, "unit_price": 11})
    stats = get_stats_snapshot(db, today=TODAY)

    assert stats.total_profit == 12.0
    assert stats.profit_today == 12.0


def test_today_excludes_yesterday(db):
    first = create_client(db, {"name": "First Store"})
    second = create_client(db, {"name": "Second Store"})
    product = create_product(db, {"name": "Bread", "quantity": 100, "unit_price": 2, "purchase_price": 1})

    def line(qty: int) -> list[dict]:
        return [{"product_id": product.id, "quantity": qty, "unit_price": 2, "unit_cost": 1}]

    old_sale = finalize_sale(db, first.id, line(10), amount_paid=5, now=YESTERDAY)
    finalize_sale(db, first.id, line(5), amount_paid=10, now=NOW)
    finalize_sale(db, second.id, line(2), amount_paid=1, now=NOW)
    finalize_sale(db, second.id, line(1), amount_paid=0, now=NOW)
    record_payment(db, old_sale.id, 15)

    stats = get_stats_snapshot(db, today=TODAY)

    assert stats.sales_today == 16.0
    assert stats.sales_count_today == 3
    assert stats.collected_today == 11.0
    assert stats.total_collected == 31.0
    assert stats.profit_today == 8.0
    assert stats.total_profit == 18.0
    assert stats.stores_visited == 2

    yesterday = get_stats_snapshot(db, today=YESTERDAY.date())
    assert yesterday.sales_today == 20.0
    assert yesterday.stores_visited == 1


def test_low_stock_counts_products_below_five(db):
    create_product(db, {"name": "Empty", "quantity": 0, "unit_price": 1})
    create_product(db, {"name": "Almost", "quantity": 4, "unit_price": 1})
    create_product(db, {"name": "Threshold", "quantity": 5, "unit_price": 1})
    plenty = create_product(db, {"name": "Plenty", "quantity": 9, "unit_price": 1})
    client = create_client(db, {"name": "Store"})

    assert get_stats_snapshot(db, today=TODAY).low_stock == 2

    finalize_sale(db, client.id, [{"product_id": plenty.id, "quantity": 5, "unit_price": 1}], now=NOW)
    assert get_stats_snapshot(db, today=TODAY).low_stock == 3


def test_expenses_today(db):
    create_expense(db, {"type": "fuel", "amount": 2500}, now=NOW)
    create_expense(db, {"type": "repairs", "amount": "800.50"}, now=NOW)
    create_expense(db, {"type": "allowance", "amount": 1000}, now=YESTERDAY)

    stats = get_stats_snapshot(db, today=TODAY)

    assert stats.expenses_today == 3300.5
