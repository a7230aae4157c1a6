from datetime import date

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from trucksales.core.money import to_money
from trucksales.db.session import storage_errors
from trucksales.models.expense import Expense
from trucksales.models.product import Product
from trucksales.models.sales import Sale, SaleItem
from trucksales.schemas.dashboard import StatsSnapshotOut
from trucksales.services.product_service import LOW_STOCK_THRESHOLD


@storage_errors("dashboard.stats")
def get_stats_snapshot(db: Session, *, today: date | None = None) -> StatsSnapshotOut:
    day = (today or date.today()).isoformat()
    is_today = Sale.created_at.startswith(day)

    sales_today, collected_today, sales_count_today, stores_visited = db.execute(
        select(
            func.coalesce(func.sum(Sale.total_amount), 0),
            func.coalesce(func.sum(Sale.amount_paid), 0),
            func.count(Sale.id),
            func.count(distinct(Sale.client_id)),
        ).where(is_today)
    ).one()

    total_collected = db.execute(
        select(func.coalesce(func.sum(Sale.amount_paid), 0))
    ).scalar_one()

    line_profit = (SaleItem.price_at_sale - SaleItem.purchase_price_at_sale) * SaleItem.quantity
    total_profit = db.execute(
        select(func.coalesce(func.sum(line_profit), 0))
    ).scalar_one()
    profit_today = db.execute(
        select(func.coalesce(func.sum(line_profit), 0))
        .select_from(SaleItem)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .where(is_today)
    ).scalar_one()

    expenses_today = db.execute(
        select(func.coalesce(func.sum(Expense.amount), 0)).where(Expense.date.startswith(day))
    ).scalar_one()

    low_stock = db.execute(
        select(func.count(Product.id)).where(Product.quantity < LOW_STOCK_THRESHOLD)
    ).scalar_one()

    return StatsSnapshotOut(
        day=day,
        sales_today=float(to_money(sales_today)),
        sales_count_today=int(sales_count_today),
        collected_today=float(to_money(collected_today)),
        total_collected=float(to_money(total_collected)),
        profit_today=float(to_money(profit_today)),
        total_profit=float(to_money(total_profit)),
        expenses_today=float(to_money(expenses_today)),
        stores_visited=int(stores_visited),
        low_stock=int(low_stock),
    )
