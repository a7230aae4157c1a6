from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from trucksales.core.config import settings
from trucksales.core.errors import NotFoundError, ReferenceConflictError, parse_payload
from trucksales.core.money import ZERO_MONEY, to_money
from trucksales.core.observability import log_event
from trucksales.db.session import atomic, storage_errors
from trucksales.models.product import Product
from trucksales.models.sales import SaleItem
from trucksales.schemas.product import (
    ProductCreate,
    ProductOut,
    ProductUpdate,
    StockReportLineOut,
    StockReportOut,
)

LOW_STOCK_THRESHOLD = 5


def product_out(product: Product) -> ProductOut:
    return ProductOut(
        id=product.id,
        name=product.name,
        quantity=product.quantity,
        unit_price=float(to_money(product.unit_price)),
        purchase_price=float(to_money(product.purchase_price)),
        low_stock=product.quantity < LOW_STOCK_THRESHOLD,
    )


@storage_errors("product.get")
def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return product


@storage_errors("product.list")
def list_products(
    db: Session,
    *,
    search: str | None = None,
    in_stock_only: bool = False,
) -> list[Product]:
    stmt = select(Product)
    if search and search.strip():
        stmt = stmt.where(func.lower(Product.name).contains(search.strip().lower()))
    if in_stock_only:
        stmt = stmt.where(Product.quantity > 0)
    return list(db.execute(stmt.order_by(Product.name.asc(), Product.id.asc())).scalars().all())


@storage_errors("product.low_stock")
def list_low_stock_products(db: Session) -> list[Product]:
    return list(
        db.execute(
            select(Product)
            .where(Product.quantity < LOW_STOCK_THRESHOLD)
            .order_by(Product.quantity.asc(), Product.name.asc())
        ).scalars().all()
    )


@storage_errors("product.create")
def create_product(db: Session, payload: ProductCreate | dict[str, Any]) -> Product:
    data = parse_payload(ProductCreate, payload)
    product = Product(
        name=data.name,
        quantity=data.quantity,
        unit_price=to_money(data.unit_price),
        purchase_price=to_money(data.purchase_price),
    )
    with atomic(db, "product.create"):
        db.add(product)
    db.refresh(product)
    log_event("product.create", product_id=product.id, name=product.name, quantity=product.quantity)
    return product


@storage_errors("product.update")
def update_product(
    db: Session, product_id: int, payload: ProductUpdate | dict[str, Any]
) -> Product:
    data = parse_payload(ProductUpdate, payload)
    product = get_product(db, product_id)

    changes: dict[str, object] = {}
    with atomic(db, "product.update"):
        if data.name is not None:
            product.name = data.name
            changes["name"] = data.name
        if data.quantity is not None:
            product.quantity = data.quantity
            changes["quantity"] = data.quantity
        if data.unit_price is not None:
            product.unit_price = to_money(data.unit_price)
            changes["unit_price"] = product.unit_price
        if data.purchase_price is not None:
            product.purchase_price = to_money(data.purchase_price)
            changes["purchase_price"] = product.purchase_price
    db.refresh(product)
    log_event("product.update", product_id=product.id, changes=changes)
    return product


@storage_errors("product.delete")
def delete_product(db: Session, product_id: int) -> None:
    product = get_product(db, product_id)
    sold_lines = int(
        db.execute(
            select(func.count(SaleItem.id)).where(SaleItem.product_id == product_id)
        ).scalar_one()
    )
    if sold_lines and settings.block_delete_with_history:
        raise ReferenceConflictError(
            f"Product {product_id} appears on {sold_lines} sale line(s) and cannot be deleted"
        )

    with atomic(db, "product.delete"):
        db.delete(product)
    log_event("product.delete", product_id=product_id, orphaned_sale_items=sold_lines)


@storage_errors("product.stock_report")
def get_stock_report(db: Session) -> StockReportOut:
    items: list[StockReportLineOut] = []
    total_units = 0
    total_value = ZERO_MONEY
    for product in list_products(db):
        stock_value = to_money(to_money(product.unit_price) * product.quantity)
        total_units += product.quantity
        total_value += stock_value
        items.append(
            StockReportLineOut(
                product_id=product.id,
                name=product.name,
                quantity=product.quantity,
                unit_price=float(to_money(product.unit_price)),
                stock_value=float(stock_value),
            )
        )
    return StockReportOut(items=items, total_units=total_units, total_value=float(to_money(total_value)))
