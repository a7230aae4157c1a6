from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ExpenseType = Literal["fuel", "repairs", "purchase", "allowance", "generic"]


class ExpenseCreate(BaseModel):
    type: ExpenseType = "generic"
    amount: Decimal = Field(gt=0, allow_inf_nan=False)
    description: Optional[str] = None

    @field_validator("description")
    @classmethod
    def normalize_description(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "fuel",
                "amount": 2500.0,
                "description": "Diesel, morning round",
            }
        }
    )


class ExpenseOut(BaseModel):
    id: int
    type: ExpenseType
    amount: float
    description: Optional[str] = None
    date: str


class ExpenseTotalsOut(BaseModel):
    day: str
    total: float
    by_type: dict[str, float]
