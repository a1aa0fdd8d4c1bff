from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal


class MessCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    location: str | None = None
    contact_person: str | None = None
    phone: str | None = None


class MessUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    location: str | None = None
    contact_person: str | None = None
    phone: str | None = None
    is_active: bool | None = None


class MessResponse(BaseModel):
    id: int
    name: str
    location: str | None
    contact_person: str | None
    phone: str | None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MessWithSummaryResponse(MessResponse):
    distribution_count: int | None = None
    total_units_received: int | None = None
    total_value: Decimal | None = None
    last_distribution_date: date | None = None
