# schemas/distribution.py

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List
from decimal import Decimal

from app.schemas.product import UnitType


class DistributionCreate(BaseModel):
    product_id: int
    mess_id: int
    quantity: int = Field(..., gt=0, le=2_147_483_647)
    price_per_unit: Decimal = Field(..., gt=0, lt=100_000_000, decimal_places=2)
    unit_type: UnitType | None = None
    attendant_id: int | None = None
    distribution_date: date | None = None
    notes: str | None = None


class DistributionUpdate(BaseModel):
    product_id: int | None = None
    mess_id: int | None = None
    quantity: int | None = Field(None, gt=0, le=2_147_483_647)
    price_per_unit: Decimal | None = Field(None, gt=0, lt=100_000_000, decimal_places=2)
    unit_type: UnitType | None = None
    attendant_id: int | None = None
    distribution_date: date | None = None
    notes: str | None = None


class DistributionResponse(BaseModel):
    id: int
    product_id: int
    mess_id: int
    attendant_id: int | None
    quantity: int
    price_per_unit: Decimal
    unit_type: str
    total_value: Decimal
    distribution_date: date
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class DistributionSummaryResponse(BaseModel):
    start_date: date
    end_date: date
    total_distributions: int
    total_units: int
    total_revenue: Decimal
    messes_served: int
    products_distributed: int


class MessProductLine(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    price_per_unit: Decimal
    total_value: Decimal
    distribution_date: date
    unit_type: str


class MessDistributionDetail(BaseModel):
    mess_id: int
    mess_name: str
    mess_location: str | None
    total_distributions: int
    total_units: int
    total_value: Decimal
    products: List[MessProductLine]
