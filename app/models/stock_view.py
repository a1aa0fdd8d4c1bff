# app/models/stock_view.py
#
# v_current_stock derives available stock per product from the ledger:
# total received minus total distributed. It is never stored as a counter.

from sqlalchemy import DDL, Boolean, Column, Integer, MetaData, String, Table, event

from app.database import Base


CURRENT_STOCK_SELECT = """
SELECT
    p.id AS product_id,
    p.name AS product_name,
    p.unit_type AS unit_type,
    p.units_per_package AS units_per_package,
    p.is_active AS is_active,
    COALESCE(r.total_received, 0) AS total_received,
    COALESCE(d.total_distributed, 0) AS total_distributed,
    COALESCE(r.total_received, 0) - COALESCE(d.total_distributed, 0) AS current_stock
FROM products p
LEFT JOIN (
    SELECT product_id, SUM(quantity) AS total_received
    FROM stock_receipts
    GROUP BY product_id
) r ON r.product_id = p.id
LEFT JOIN (
    SELECT product_id, SUM(quantity) AS total_distributed
    FROM distributions
    GROUP BY product_id
) d ON d.product_id = p.id
"""

# Kept off Base.metadata so create_all never tries to build it as a table
view_metadata = MetaData()

current_stock_view = Table(
    "v_current_stock",
    view_metadata,
    Column("product_id", Integer, primary_key=True),
    Column("product_name", String),
    Column("unit_type", String),
    Column("units_per_package", Integer),
    Column("is_active", Boolean),
    Column("total_received", Integer),
    Column("total_distributed", Integer),
    Column("current_stock", Integer),
)


event.listen(
    Base.metadata,
    "after_create",
    DDL("CREATE VIEW IF NOT EXISTS v_current_stock AS " + CURRENT_STOCK_SELECT).execute_if(dialect="sqlite"),
)
event.listen(
    Base.metadata,
    "after_create",
    DDL("CREATE OR REPLACE VIEW v_current_stock AS " + CURRENT_STOCK_SELECT).execute_if(dialect="postgresql"),
)
event.listen(
    Base.metadata,
    "before_drop",
    DDL("DROP VIEW IF EXISTS v_current_stock"),
)
