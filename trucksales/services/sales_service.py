import logging
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from trucksales.core.errors import NotFoundError, TruckSalesError, parse_payload
from trucksales.core.money import ZERO_MONEY, to_money
from trucksales.core.observability import log_event
from trucksales.core.settings_store import SettingsStore, get_settings_store
from trucksales.db.session import atomic, storage_errors
from trucksales.models.client import Client
from trucksales.models.product import Product
from trucksales.models.sales import Sale, SaleItem
from trucksales.schemas.common import PaginationMeta
from trucksales.schemas.sales import (
    CartLineIn,
    ReceiptLineOut,
    ReceiptOut,
    SaleCreate,
    SaleCreateOut,
    SaleListOut,
    SaleOut,
)
from trucksales.services.balance_service import balance_for_sale, sale_out
from trucksales.services.inventory_service import commit_stock, reserve_stock

UNKNOWN_PRODUCT_NAME = "Unknown Product"


def sale_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


@storage_errors("sale.finalize")
def finalize_sale(
    db: Session,
    client_id: int,
    cart_lines: Iterable[CartLineIn | dict[str, Any]],
    amount_paid: Any = 0,
    *,
    now: datetime | None = None,
) -> SaleCreateOut:
    """Record a sale, its line items and the matching stock decrements.

    All rows are written in one transaction. If any line cannot be honoured
    (client or product missing, stock short at commit time, database failure)
    the session is rolled back and nothing from this call persists.
    """
    payload = parse_payload(
        SaleCreate,
        {"client_id": client_id, "items": cart_lines, "amount_paid": amount_paid},
    )

    quantity_by_product: dict[int, int] = {}
    total = ZERO_MONEY
    for item in payload.items:
        quantity_by_product[item.product_id] = quantity_by_product.get(item.product_id, 0) + item.quantity
        total += to_money(item.unit_price) * item.quantity
    total = to_money(total)
    paid = to_money(payload.amount_paid)

    try:
        with atomic(db, "sale.finalize"):
            if db.get(Client, payload.client_id) is None:
                raise NotFoundError("Client", payload.client_id)
            for product_id, qty in quantity_by_product.items():
                reserve_stock(db, product_id, qty)

            sale = Sale(
                client_id=payload.client_id,
                total_amount=total,
                amount_paid=paid,
                created_at=sale_timestamp(now),
            )
            db.add(sale)
            db.flush()

            for item in payload.items:
                db.add(
                    SaleItem(
                        sale_id=sale.id,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        price_at_sale=to_money(item.unit_price),
                        purchase_price_at_sale=to_money(item.unit_cost),
                    )
                )
                commit_stock(db, item.product_id, item.quantity)
            sale_id = sale.id
    except TruckSalesError as exc:
        log_event(
            "sale.finalize_failed",
            level=logging.WARNING,
            client_id=payload.client_id,
            code=exc.code,
            error=exc.message,
        )
        raise

    log_event(
        "sale.finalize",
        sale_id=sale_id,
        client_id=payload.client_id,
        items_count=len(payload.items),
        total=total,
        amount_paid=paid,
    )
    return SaleCreateOut(
        id=sale_id,
        total=float(total),
        amount_paid=float(paid),
        balance=float(to_money(total - paid)),
    )


@storage_errors("sale.get")
def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale", sale_id)
    return sale


@storage_errors("sale.items")
def list_sale_items(db: Session, sale_id: int) -> list[SaleItem]:
    return list(
        db.execute(
            select(SaleItem).where(SaleItem.sale_id == sale_id).order_by(SaleItem.id.asc())
        ).scalars().all()
    )


@storage_errors("sale.list_for_client")
def list_sales_for_client(db: Session, client_id: int) -> list[SaleOut]:
    client = db.get(Client, client_id)
    rows = db.execute(
        select(Sale)
        .where(Sale.client_id == client_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
    ).scalars().all()
    client_name = client.name if client else None
    return [sale_out(row, client_name) for row in rows]


@storage_errors("sale.list")
def list_sales(db: Session, *, limit: int = 50, offset: int = 0) -> SaleListOut:
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    total_count = int(db.execute(select(func.count(Sale.id))).scalar_one())
    rows = db.execute(
        select(Sale, Client.name)
        .outerjoin(Client, Client.id == Sale.client_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()

    items = [sale_out(sale, client_name) for sale, client_name in rows]
    count = len(items)
    return SaleListOut(
        pagination=PaginationMeta(
            total=total_count,
            limit=limit,
            offset=offset,
            count=count,
            has_next=(offset + count) < total_count,
        ),
        items=items,
    )


@storage_errors("sale.receipt")
def get_receipt_data(
    db: Session,
    sale_id: int,
    *,
    store: SettingsStore | None = None,
) -> ReceiptOut:
    sale = get_sale(db, sale_id)
    # Clients can be deleted after the sale when the reference policy allows it.
    client = db.get(Client, sale.client_id)

    rows = db.execute(
        select(SaleItem, Product.name)
        .outerjoin(Product, Product.id == SaleItem.product_id)
        .where(SaleItem.sale_id == sale_id)
        .order_by(SaleItem.id.asc())
    ).all()

    items = [
        ReceiptLineOut(
            sale_item_id=item.id,
            product_id=item.product_id,
            name=product_name or UNKNOWN_PRODUCT_NAME,
            quantity=item.quantity,
            unit_price=float(to_money(item.price_at_sale)),
            line_total=float(to_money(to_money(item.price_at_sale) * item.quantity)),
        )
        for item, product_name in rows
    ]

    display = (store or get_settings_store()).values
    return ReceiptOut(
        sale_id=sale.id,
        date=sale.created_at[:10],
        client_id=sale.client_id,
        client_name=client.name if client else None,
        client_address=client.address if client else None,
        items=items,
        total=float(to_money(sale.total_amount)),
        amount_paid=float(to_money(sale.amount_paid)),
        balance=float(balance_for_sale(sale)),
        app_name=display.app_name,
        distribution_name=display.distribution_name,
    )
