from decimal import Decimal
from typing import Optional

from sqlalchemy import Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from trucksales.db.base import Base

EXPENSE_TYPES = ("fuel", "repairs", "purchase", "allowance", "generic")


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    type: Mapped[str] = mapped_column(String(20), nullable=False, default="generic")  # fuel/repairs/purchase/...
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    date: Mapped[str] = mapped_column(String(32), nullable=False)

    __table_args__ = (
        Index("ix_expenses_date", "date"),
        Index("ix_expenses_type_date", "type", "date"),
    )
