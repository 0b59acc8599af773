# backend/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from datetime import datetime
from typing import List, Optional

from models.stock import MovementType


# Request to record one movement.
# incoming/outgoing take a positive quantity; adjustment takes the signed
# change to apply (e.g. -2 after a stock count found two units missing).
class StockMovementCreate(BaseModel):
    product_id: int
    movement_type: MovementType
    quantity: int
    reason: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_quantity(self):
        if self.quantity == 0:
            raise ValueError("quantity must not be zero")
        if self.movement_type != MovementType.ADJUSTMENT and self.quantity < 0:
            raise ValueError("quantity must be positive for incoming and outgoing movements")
        return self


# Schema for returning stock movement details
class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    movement_type: str
    quantity: int
    delta: int
    previous_stock: int
    new_stock: int
    user_id: Optional[int] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    product_name: str
    product_sku: str
    user_email: str

    model_config = ConfigDict(from_attributes=True)


# Paginated response for stock movement history
class StockMovementPage(BaseModel):
    items: List[StockMovementResponse]
    total: int
    page: int
    page_size: int


# Schema for a single item within a bulk delivery
class DeliveryItem(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


# Schema for registering a bulk stock delivery
class DeliveryCreate(BaseModel):
    items: List[DeliveryItem] = Field(..., min_length=1)
    reason: Optional[str] = "Delivery"
    supplier_id: Optional[int] = None


class DeliveryResult(BaseModel):
    received: int
    movements: List[StockMovementResponse]
