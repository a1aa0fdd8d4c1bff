# Import all models so Base.metadata is complete for create_all() and alembic
from app.models import (  # noqa: F401
    users,
    products,
    messes,
    attendants,
    stock_receipts,
    distributions,
    payments,
    stock_view,
)
