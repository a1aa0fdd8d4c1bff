from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import date, datetime


class PaymentCreate(BaseModel):
    mess_id: int
    amount_paid: Decimal = Field(..., gt=0, lt=100_000_000, decimal_places=2)
    payment_date: date | None = None
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None


class PaymentUpdate(BaseModel):
    amount_paid: Decimal | None = Field(None, gt=0, lt=100_000_000, decimal_places=2)
    payment_date: date | None = None
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None


class PaymentResponse(BaseModel):
    id: int
    mess_id: int
    amount_paid: Decimal
    payment_date: date
    payment_method: str | None
    reference_number: str | None
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class MessFinancialSummary(BaseModel):
    mess_id: int
    mess_name: str
    contact_person: str | None
    phone: str | None
    total_distributed_value: Decimal
    total_paid: Decimal
    outstanding_balance: Decimal
    payment_count: int
    last_payment_date: date | None
