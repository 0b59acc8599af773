# backend/schemas/product.py
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    sku: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    cost_price: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    min_stock: int = Field(default=0, ge=0)
    manufacturer: Optional[str] = None
    warehouse_location: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[str] = None
    image_url: Optional[str] = None
    barcode: Optional[str] = None
    is_active: bool = True


# Schema for creating a new product; current_stock is the opening baseline
class ProductCreate(ProductBase):
    current_stock: int = Field(default=0, ge=0)


# Schema for partial product updates.
# current_stock is deliberately absent: stock only changes through movements.
class ProductUpdate(ORMBase):
    sku: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    cost_price: Optional[float] = Field(None, ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    manufacturer: Optional[str] = None
    warehouse_location: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[str] = None
    image_url: Optional[str] = None
    barcode: Optional[str] = None
    is_active: Optional[bool] = None

    # Fields may be omitted, but NOT NULL columns cannot be set to null
    @field_validator("sku", "name", "min_stock", "is_active")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


# Full product representation with resolved reference labels
class ProductOut(ProductBase):
    id: int
    current_stock: int
    category_name: str
    supplier_name: str
    created_at: datetime
    updated_at: datetime


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
