from pydantic import BaseModel, Field
from datetime import datetime


class AttendantCreate(BaseModel):
    mess_id: int
    name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = None
    role: str = "Attendant"


class AttendantUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = None
    role: str | None = None
    is_active: bool | None = None


class AttendantResponse(BaseModel):
    id: int
    mess_id: int
    name: str
    phone: str | None
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
