from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ProductCreate(BaseModel):
    name: str
    quantity: int = Field(default=0, ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0, allow_inf_nan=False)
    purchase_price: Decimal = Field(default=Decimal("0"), ge=0, allow_inf_nan=False)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Mineral Water 1.5L",
                "quantity": 120,
                "unit_price": 45.0,
                "purchase_price": 32.0,
            }
        }
    )


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    quantity: int | None = Field(default=None, ge=0)
    unit_price: Decimal | None = Field(default=None, ge=0, allow_inf_nan=False)
    purchase_price: Decimal | None = Field(default=None, ge=0, allow_inf_nan=False)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name cannot be empty")
        return cleaned

    @model_validator(mode="after")
    def validate_has_update(self) -> "ProductUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class ProductOut(BaseModel):
    id: int
    name: str
    quantity: int
    unit_price: float
    purchase_price: float
    low_stock: bool


class StockReportLineOut(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: float
    stock_value: float


class StockReportOut(BaseModel):
    items: list[StockReportLineOut]
    total_units: int
    total_value: float
