# app/models/products.py

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


UNIT_TYPES = ("crate", "piece")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    unit_type = Column(String(10), nullable=False, default="crate")
    units_per_package = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    receipts = relationship("StockReceipt", back_populates="product")
    distributions = relationship("Distribution", back_populates="product")

    __table_args__ = (
        Index("uq_products_name_lower", func.lower(name), unique=True),
        CheckConstraint("unit_type IN ('crate', 'piece')", name="ck_products_unit_type_valid"),
        CheckConstraint("units_per_package > 0", name="ck_units_per_package_positive"),
    )

    @property
    def unit_label(self) -> str:
        return "pieces" if self.unit_type == "piece" else "crates"
