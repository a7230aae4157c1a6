from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ClientCreate(BaseModel):
    name: str = Field(max_length=120)
    address: str = Field(default="", max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name is required")
        return cleaned

    @field_validator("address")
    @classmethod
    def normalize_address(cls, value: str) -> str:
        return value.strip()


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    address: Optional[str] = Field(default=None, max_length=255)

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
    def validate_has_update(self) -> "ClientUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class ClientOut(BaseModel):
    id: int
    name: str
    address: str


class ClientBalanceOut(BaseModel):
    client_id: int
    name: str
    address: str
    sales_count: int
    total_amount: float
    amount_paid: float
    balance: float
