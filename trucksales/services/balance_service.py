"""Outstanding balances per sale and per client.

Balances are never stored: every call re-reads the current sales rows, so a
payment is reflected the moment it is committed.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from trucksales.core.errors import NotFoundError, ValidationError, parse_payload
from trucksales.core.money import ZERO_MONEY, money_sum, to_money
from trucksales.core.observability import log_event
from trucksales.db.session import atomic, storage_errors
from trucksales.models.client import Client
from trucksales.models.sales import Sale
from trucksales.schemas.client import ClientBalanceOut
from trucksales.schemas.sales import PaymentIn, SaleOut


def balance_for_sale(sale: Sale) -> Decimal:
    return to_money(sale.total_amount) - to_money(sale.amount_paid)


def sale_out(sale: Sale, client_name: str | None = None) -> SaleOut:
    return SaleOut(
        id=sale.id,
        client_id=sale.client_id,
        client_name=client_name,
        total_amount=float(to_money(sale.total_amount)),
        amount_paid=float(to_money(sale.amount_paid)),
        balance=float(balance_for_sale(sale)),
        created_at=sale.created_at,
    )


@storage_errors("balance.client")
def balance_for_client(db: Session, client_id: int) -> Decimal:
    sales = db.execute(select(Sale).where(Sale.client_id == client_id)).scalars().all()
    return money_sum(balance_for_sale(sale) for sale in sales)


@storage_errors("balance.list")
def list_client_balances(db: Session) -> list[ClientBalanceOut]:
    totals_by_client: dict[int, tuple[int, Decimal, Decimal]] = {}
    rows = db.execute(
        select(
            Sale.client_id,
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total_amount), 0),
            func.coalesce(func.sum(Sale.amount_paid), 0),
        ).group_by(Sale.client_id)
    ).all()
    for client_id, sales_count, total_amount, amount_paid in rows:
        totals_by_client[client_id] = (int(sales_count), to_money(total_amount), to_money(amount_paid))

    out: list[ClientBalanceOut] = []
    clients = db.execute(select(Client).order_by(Client.name.asc(), Client.id.asc())).scalars()
    for client in clients:
        sales_count, total_amount, amount_paid = totals_by_client.get(
            client.id, (0, ZERO_MONEY, ZERO_MONEY)
        )
        out.append(
            ClientBalanceOut(
                client_id=client.id,
                name=client.name,
                address=client.address,
                sales_count=sales_count,
                total_amount=float(total_amount),
                amount_paid=float(amount_paid),
                balance=float(to_money(total_amount - amount_paid)),
            )
        )
    return out


@storage_errors("sale.payment")
def record_payment(db: Session, sale_id: int, amount: Any) -> SaleOut:
    payment = parse_payload(PaymentIn, {"amount": amount})
    sale = db.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale", sale_id)

    paid = to_money(payment.amount)
    if paid <= ZERO_MONEY:
        raise ValidationError("Payment amount must be at least 0.01")
    with atomic(db, "sale.payment"):
        sale.amount_paid = to_money(to_money(sale.amount_paid) + paid)
    db.refresh(sale)

    balance = balance_for_sale(sale)
    log_event("sale.payment", sale_id=sale.id, amount=paid, balance=balance)
    if balance < 0:
        log_event(
            "sale.overpayment",
            level=logging.WARNING,
            sale_id=sale.id,
            total_amount=to_money(sale.total_amount),
            amount_paid=to_money(sale.amount_paid),
        )
    return sale_out(sale)
