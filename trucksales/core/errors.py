from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class TruckSalesError(Exception):
    code = "error"

    def __init__(self, message: str, *, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(TruckSalesError):
    code = "validation_error"

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        details = []
        for err in exc.errors():
            location = [str(part) for part in err.get("loc", [])]
            details.append(
                {
                    "field": ".".join(location) if location else "payload",
                    "message": err.get("msg", "Invalid value"),
                    "type": err.get("type"),
                }
            )
        return cls("Validation failed", details=details)


class NotFoundError(TruckSalesError):
    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockError(TruckSalesError):
    code = "insufficient_stock"

    def __init__(self, product_id: int, *, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class ReferenceConflictError(TruckSalesError):
    code = "conflict"


class StorageError(TruckSalesError):
    code = "storage_error"


def parse_payload(model: type[ModelT], data: Any) -> ModelT:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc
