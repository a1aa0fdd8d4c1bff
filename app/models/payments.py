from sqlalchemy import (
    Column,
    Integer,
    Date,
    DateTime,
    String,
    Text,
    ForeignKey,
    Numeric,
    CheckConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


class Payment(Base):
    __tablename__ = "payments"

    __table_args__ = (
        CheckConstraint(
            "amount_paid > 0",
            name="ck_amount_paid_positive",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    mess_id = Column(
        Integer,
        ForeignKey("messes.id"),
        nullable=False,
        index=True,
    )

    amount_paid = Column(Numeric(10, 2), nullable=False)

    payment_date = Column(Date, nullable=False, server_default=func.current_date())

    payment_method = Column(String(50), nullable=True)
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    mess = relationship("Mess")
