from sqlalchemy import select, update
from sqlalchemy.orm import Session

from trucksales.core.errors import InsufficientStockError, NotFoundError, ValidationError
from trucksales.db.session import storage_errors
from trucksales.models.product import Product


def _require_positive_qty(qty: int) -> int:
    if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
        raise ValidationError(f"Quantity must be a positive whole number, got {qty!r}")
    return qty


@storage_errors("inventory.stock")
def get_product_stock(db: Session, product_id: int) -> int:
    quantity = db.execute(
        select(Product.quantity).where(Product.id == product_id)
    ).scalar_one_or_none()
    if quantity is None:
        raise NotFoundError("Product", product_id)
    return int(quantity)


@storage_errors("inventory.reserve")
def reserve_stock(db: Session, product_id: int, qty: int) -> int:
    """Check that ``qty`` units can be taken from stock. Nothing is written."""
    _require_positive_qty(qty)
    available = get_product_stock(db, product_id)
    if qty > available:
        raise InsufficientStockError(product_id, requested=qty, available=available)
    return available


@storage_errors("inventory.commit")
def commit_stock(db: Session, product_id: int, qty: int) -> int:
    """Take ``qty`` units out of stock and return the remaining quantity.

    The update only matches while enough stock is left, so a cart built against
    an older stock level cannot push the quantity below zero.
    """
    _require_positive_qty(qty)
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.quantity >= qty)
        .values(quantity=Product.quantity - qty)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        available = db.execute(
            select(Product.quantity).where(Product.id == product_id)
        ).scalar_one_or_none()
        if available is None:
            raise NotFoundError("Product", product_id)
        raise InsufficientStockError(product_id, requested=qty, available=int(available))
    return get_product_stock(db, product_id)


@storage_errors("inventory.release")
def release_stock(db: Session, product_id: int, qty: int) -> int:
    _require_positive_qty(qty)
    result = db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(quantity=Product.quantity + qty)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError("Product", product_id)
    return get_product_stock(db, product_id)
