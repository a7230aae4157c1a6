from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from trucksales.core.errors import NotFoundError, ValidationError, parse_payload
from trucksales.core.money import ZERO_MONEY, to_money
from trucksales.core.observability import log_event
from trucksales.db.session import atomic, storage_errors
from trucksales.models.expense import EXPENSE_TYPES, Expense
from trucksales.schemas.expense import ExpenseCreate, ExpenseOut, ExpenseTotalsOut


def expense_out(expense: Expense) -> ExpenseOut:
    return ExpenseOut(
        id=expense.id,
        type=expense.type,
        amount=float(to_money(expense.amount)),
        description=expense.description,
        date=expense.date,
    )


@storage_errors("expense.create")
def create_expense(
    db: Session,
    payload: ExpenseCreate | dict[str, Any],
    *,
    now: datetime | None = None,
) -> Expense:
    data = parse_payload(ExpenseCreate, payload)
    expense = Expense(
        type=data.type,
        amount=to_money(data.amount),
        description=data.description,
        date=(now or datetime.now()).isoformat(timespec="seconds"),
    )
    with atomic(db, "expense.create"):
        db.add(expense)
    db.refresh(expense)
    log_event("expense.create", expense_id=expense.id, type=expense.type, amount=expense.amount)
    return expense


@storage_errors("expense.delete")
def delete_expense(db: Session, expense_id: int) -> None:
    expense = db.get(Expense, expense_id)
    if not expense:
        raise NotFoundError("Expense", expense_id)
    with atomic(db, "expense.delete"):
        db.delete(expense)
    log_event("expense.delete", expense_id=expense_id)


@storage_errors("expense.list")
def list_expenses(
    db: Session,
    *,
    day: date | None = None,
    expense_type: str | None = None,
) -> list[Expense]:
    stmt = select(Expense)
    if day is not None:
        stmt = stmt.where(Expense.date.startswith(day.isoformat()))
    if expense_type is not None:
        if expense_type not in EXPENSE_TYPES:
            raise ValidationError(f"Unknown expense type: {expense_type}")
        stmt = stmt.where(Expense.type == expense_type)
    return list(db.execute(stmt.order_by(Expense.date.desc(), Expense.id.desc())).scalars().all())


@storage_errors("expense.totals")
def expense_totals(db: Session, day: date | None = None) -> ExpenseTotalsOut:
    day = day or date.today()
    rows = db.execute(
        select(Expense.type, func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.date.startswith(day.isoformat()))
        .group_by(Expense.type)
    ).all()

    by_type = {expense_type: 0.0 for expense_type in EXPENSE_TYPES}
    total = ZERO_MONEY
    for expense_type, amount in rows:
        amount_money = to_money(amount)
        by_type[expense_type] = float(amount_money)
        total += amount_money
    return ExpenseTotalsOut(day=day.isoformat(), total=float(to_money(total)), by_type=by_type)
