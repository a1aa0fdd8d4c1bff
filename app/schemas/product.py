from typing import Literal

from pydantic import BaseModel, Field
from datetime import datetime


UnitType = Literal["crate", "piece"]


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    unit_type: UnitType
    units_per_package: int = Field(
        1,
        gt=0,
        description="Units in one package. Only meaningful for crates",
    )
    description: str | None = None


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    unit_type: UnitType | None = None
    units_per_package: int | None = Field(None, gt=0)
    description: str | None = None
    is_active: bool | None = None


class ProductResponse(BaseModel):
    id: int
    name: str
    unit_type: str
    units_per_package: int
    description: str | None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProductWithStockResponse(ProductResponse):
    current_stock: int | None = None
    total_added: int | None = None
    total_distributed: int | None = None


class StockLevelResponse(BaseModel):
    product_id: int
    product_name: str
    unit_type: str
    total_received: int
    total_distributed: int
    current_stock: int
