from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from trucksales.schemas.common import PaginationMeta


class CartLineIn(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0, allow_inf_nan=False)
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0, allow_inf_nan=False)


class SaleCreate(BaseModel):
    client_id: int
    items: list[CartLineIn] = Field(min_length=1)
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0, allow_inf_nan=False)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "client_id": 3,
                "amount_paid": 500.0,
                "items": [
                    {
                        "product_id": 7,
                        "quantity": 12,
                        "unit_price": 45.0,
                        "unit_cost": 32.0,
                    }
                ],
            }
        }
    )


class SaleCreateOut(BaseModel):
    id: int
    total: float
    amount_paid: float
    balance: float


class PaymentIn(BaseModel):
    amount: Decimal = Field(gt=0, allow_inf_nan=False)


class SaleOut(BaseModel):
    id: int
    client_id: int
    client_name: str | None = None
    total_amount: float
    amount_paid: float
    balance: float
    created_at: str


class SaleListOut(BaseModel):
    pagination: PaginationMeta
    items: list[SaleOut]


class ReceiptLineOut(BaseModel):
    sale_item_id: int
    product_id: int
    name: str
    quantity: int
    unit_price: float
    line_total: float


class ReceiptOut(BaseModel):
    sale_id: int
    date: str
    client_id: int
    client_name: str | None = None
    client_address: str | None = None
    items: list[ReceiptLineOut]
    total: float
    amount_paid: float
    balance: float
    app_name: str
    distribution_name: str
