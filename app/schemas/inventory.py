from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import date, datetime

from app.schemas.product import UnitType


class StockReceiptCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0, le=2_147_483_647)
    purchase_price_per_unit: Decimal | None = Field(None, ge=0, lt=100_000_000, decimal_places=2)
    unit_type: UnitType | None = None
    supplier_name: str | None = None
    supplier_contact: str | None = None
    date_added: date | None = None
    notes: str | None = None


class StockReceiptUpdate(BaseModel):
    quantity: int | None = Field(None, gt=0, le=2_147_483_647)
    purchase_price_per_unit: Decimal | None = Field(None, ge=0, lt=100_000_000, decimal_places=2)
    supplier_name: str | None = None
    supplier_contact: str | None = None
    date_added: date | None = None
    notes: str | None = None


class StockReceiptResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    purchase_price_per_unit: Decimal | None
    unit_type: str
    supplier_name: str | None
    supplier_contact: str | None
    date_added: date
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class InventorySummaryResponse(BaseModel):
    product_id: int
    product_name: str
    purchase_count: int
    total_units_purchased: int
    avg_purchase_price: Decimal
    first_purchase_date: date | None
    last_purchase_date: date | None
