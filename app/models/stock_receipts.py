# app/models/stock_receipts.py

from sqlalchemy import CheckConstraint, Column, Index, Integer, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


class StockReceipt(Base):
    """A purchase of stock from a supplier. Adds to available stock."""

    __tablename__ = "stock_receipts"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    purchase_price_per_unit = Column(Numeric(10, 2), nullable=True)
    unit_type = Column(String(10), nullable=False, default="crate")

    supplier_name = Column(String(150), nullable=True)
    supplier_contact = Column(String(100), nullable=True)

    date_added = Column(Date, nullable=False, server_default=func.current_date())
    notes = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    product = relationship("Product", back_populates="receipts")

    __table_args__ = (
        Index("ix_stock_receipts_product_date", "product_id", "date_added"),
        CheckConstraint("quantity > 0", name="ck_receipt_quantity_positive"),
        CheckConstraint(
            "purchase_price_per_unit IS NULL OR purchase_price_per_unit >= 0",
            name="ck_receipt_price_non_negative",
        ),
    )
