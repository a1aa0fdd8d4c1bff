# app/models/attendants.py

from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


class Attendant(Base):
    __tablename__ = "attendants"

    id = Column(Integer, primary_key=True, index=True)
    mess_id = Column(Integer, ForeignKey("messes.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    role = Column(String(50), nullable=False, default="Attendant")

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    mess = relationship("Mess", back_populates="attendants")
