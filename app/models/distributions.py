# app/models/distributions.py

from sqlalchemy import CheckConstraint, Column, Index, Integer, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


class Distribution(Base):
    """Goods sent to a mess. Subtracts from available stock."""

    __tablename__ = "distributions"

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    mess_id = Column(Integer, ForeignKey("messes.id"), nullable=False, index=True)
    attendant_id = Column(Integer, ForeignKey("attendants.id"), nullable=True)

    quantity = Column(Integer, nullable=False)
    price_per_unit = Column(Numeric(10, 2), nullable=False)
    unit_type = Column(String(10), nullable=False, default="crate")
    total_value = Column(Numeric(12, 2), nullable=False)

    distribution_date = Column(Date, nullable=False, server_default=func.current_date(), index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    product = relationship("Product", back_populates="distributions")
    mess = relationship("Mess")
    attendant = relationship("Attendant")

    __table_args__ = (
        Index("ix_distributions_mess_date", "mess_id", "distribution_date"),
        CheckConstraint("quantity > 0", name="ck_distribution_quantity_positive"),
        CheckConstraint("price_per_unit > 0", name="ck_distribution_price_positive"),
    )
