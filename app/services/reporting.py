# =========================================================
# REPORTING AGGREGATOR
#
# Read-only views over the ledger for the dashboard:
# - Current stock and low stock alerts
# - Revenue per product / mess / day
# - Average-cost profit analysis
# - Mess balances (distributed value vs payments)
#
# Nothing here writes. Results are as fresh as the tables
# at query time; there is no caching.
# =========================================================

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.distributions import Distribution
from app.models.messes import Mess
from app.models.payments import Payment
from app.models.products import Product
from app.models.stock_receipts import StockReceipt
from app.models.stock_view import current_stock_view

TWO_PLACES = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(TWO_PLACES)


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return Decimal("0.00")
    return ((part / whole) * 100).quantize(TWO_PLACES)


def _today() -> date:
    return datetime.now(timezone.utc).date()


# =========================================================
# STOCK
# =========================================================
def current_stock(db: Session) -> list[dict]:
    view = current_stock_view

    rows = db.execute(
        select(view)
        .where(view.c.is_active.is_(True))
        .order_by(view.c.product_name)
    ).all()

    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "unit_type": row.unit_type,
            "units_per_package": row.units_per_package,
            "total_received": int(row.total_received or 0),
            "total_distributed": int(row.total_distributed or 0),
            "current_stock": int(row.current_stock or 0),
        }
        for row in rows
    ]


def low_stock_alerts(db: Session) -> list[dict]:
    """Active products below LOW_STOCK_THRESHOLD, lowest first."""
    view = current_stock_view

    rows = db.execute(
        select(view)
        .where(
            view.c.is_active.is_(True),
            view.c.current_stock < settings.LOW_STOCK_THRESHOLD,
        )
        .order_by(view.c.current_stock.asc(), view.c.product_name)
    ).all()

    alerts = []
    for row in rows:
        stock = int(row.current_stock or 0)
        alerts.append(
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "unit_type": row.unit_type,
                "current_stock": stock,
                "level": "critical" if stock < settings.CRITICAL_STOCK_THRESHOLD else "low",
            }
        )

    return alerts


def inventory_summary(db: Session) -> list[dict]:
    rows = (
        db.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            func.count(StockReceipt.id).label("purchase_count"),
            func.coalesce(func.sum(StockReceipt.quantity), 0).label("total_units_purchased"),
            func.avg(StockReceipt.purchase_price_per_unit).label("avg_purchase_price"),
            func.min(StockReceipt.date_added).label("first_purchase_date"),
            func.max(StockReceipt.date_added).label("last_purchase_date"),
        )
        .outerjoin(StockReceipt, StockReceipt.product_id == Product.id)
        .filter(Product.is_active.is_(True))
        .group_by(Product.id, Product.name)
        .order_by(Product.name)
        .all()
    )

    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "purchase_count": row.purchase_count,
            "total_units_purchased": int(row.total_units_purchased or 0),
            "avg_purchase_price": _money(row.avg_purchase_price),
            "first_purchase_date": row.first_purchase_date,
            "last_purchase_date": row.last_purchase_date,
        }
        for row in rows
    ]


def recent_receipts(db: Session, days: int = 30, limit: int = 50) -> list[StockReceipt]:
    since = _today() - timedelta(days=days)

    return (
        db.query(StockReceipt)
        .filter(StockReceipt.date_added >= since)
        .order_by(StockReceipt.date_added.desc(), StockReceipt.id.desc())
        .limit(limit)
        .all()
    )


# =========================================================
# DISTRIBUTIONS / REVENUE
# =========================================================
def recent_distributions(db: Session, days: int = 30, limit: int = 50) -> list[Distribution]:
    since = _today() - timedelta(days=days)

    return (
        db.query(Distribution)
        .filter(Distribution.distribution_date >= since)
        .order_by(Distribution.distribution_date.desc(), Distribution.id.desc())
        .limit(limit)
        .all()
    )


def activity_timeline(db: Session, days: int = 7, limit: int = 50) -> list[dict]:
    return [
        {
            "id": d.id,
            "distribution_date": d.distribution_date,
            "quantity": d.quantity,
            "unit_type": d.unit_type,
            "total_value": _money(d.total_value),
            "product_name": d.product.name,
            "mess_name": d.mess.name,
            "created_at": d.created_at,
        }
        for d in recent_distributions(db, days=days, limit=limit)
    ]


def distribution_summary(db: Session, start_date: date, end_date: date) -> dict:
    row = (
        db.query(
            func.count(Distribution.id).label("total_distributions"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("total_units"),
            func.coalesce(func.sum(Distribution.total_value), 0).label("total_revenue"),
            func.count(func.distinct(Distribution.mess_id)).label("messes_served"),
            func.count(func.distinct(Distribution.product_id)).label("products_distributed"),
        )
        .filter(Distribution.distribution_date.between(start_date, end_date))
        .one()
    )

    return {
        "start_date": start_date,
        "end_date": end_date,
        "total_distributions": row.total_distributions,
        "total_units": int(row.total_units or 0),
        "total_revenue": _money(row.total_revenue),
        "messes_served": row.messes_served,
        "products_distributed": row.products_distributed,
    }


def distributions_by_mess_detailed(db: Session) -> list[dict]:
    """Every active mess with the product lines it has received."""
    messes = (
        db.query(Mess)
        .filter(Mess.is_active.is_(True))
        .order_by(Mess.name)
        .all()
    )

    lines = (
        db.query(Distribution, Product.name)
        .join(Product, Product.id == Distribution.product_id)
        .join(Mess, Mess.id == Distribution.mess_id)
        .filter(Mess.is_active.is_(True))
        .order_by(Product.name, Distribution.distribution_date)
        .all()
    )

    by_mess: dict[int, list] = {}
    for distribution, product_name in lines:
        by_mess.setdefault(distribution.mess_id, []).append(
            {
                "product_id": distribution.product_id,
                "product_name": product_name,
                "quantity": distribution.quantity,
                "price_per_unit": _money(distribution.price_per_unit),
                "total_value": _money(distribution.total_value),
                "distribution_date": distribution.distribution_date,
                "unit_type": distribution.unit_type,
            }
        )

    results = []
    for mess in messes:
        products = by_mess.get(mess.id, [])
        results.append(
            {
                "mess_id": mess.id,
                "mess_name": mess.name,
                "mess_location": mess.location,
                "total_distributions": len(products),
                "total_units": sum(p["quantity"] for p in products),
                "total_value": sum((p["total_value"] for p in products), Decimal("0.00")),
                "products": products,
            }
        )

    return results


def product_summaries(db: Session) -> list[dict]:
    revenue = func.coalesce(func.sum(Distribution.total_value), 0)

    rows = (
        db.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            Product.unit_type.label("unit_type"),
            func.count(Distribution.id).label("distribution_count"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("total_units_distributed"),
            revenue.label("total_revenue"),
        )
        .outerjoin(Distribution, Distribution.product_id == Product.id)
        .filter(Product.is_active.is_(True))
        .group_by(Product.id, Product.name, Product.unit_type)
        .order_by(revenue.desc(), Product.name)
        .all()
    )

    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "unit_type": row.unit_type,
            "distribution_count": row.distribution_count,
            "total_units_distributed": int(row.total_units_distributed or 0),
            "total_revenue": _money(row.total_revenue),
        }
        for row in rows
    ]


def mess_summaries(db: Session) -> list[dict]:
    total_value = func.coalesce(func.sum(Distribution.total_value), 0)

    rows = (
        db.query(
            Mess.id.label("mess_id"),
            Mess.name.label("mess_name"),
            Mess.contact_person.label("contact_person"),
            Mess.phone.label("phone"),
            func.count(Distribution.id).label("distribution_count"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("total_units_received"),
            total_value.label("total_value"),
            func.max(Distribution.distribution_date).label("last_distribution_date"),
        )
        .outerjoin(Distribution, Distribution.mess_id == Mess.id)
        .filter(Mess.is_active.is_(True))
        .group_by(Mess.id, Mess.name, Mess.contact_person, Mess.phone)
        .order_by(total_value.desc(), Mess.name)
        .all()
    )

    return [
        {
            "mess_id": row.mess_id,
            "mess_name": row.mess_name,
            "contact_person": row.contact_person,
            "phone": row.phone,
            "distribution_count": row.distribution_count,
            "total_units_received": int(row.total_units_received or 0),
            "total_value": _money(row.total_value),
            "last_distribution_date": row.last_distribution_date,
        }
        for row in rows
    ]


def revenue_by_date_range(db: Session, start_date: date, end_date: date) -> list[dict]:
    rows = (
        db.query(
            Distribution.distribution_date.label("distribution_date"),
            func.count(Distribution.id).label("distribution_count"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("total_units"),
            func.coalesce(func.sum(Distribution.total_value), 0).label("daily_revenue"),
        )
        .filter(Distribution.distribution_date.between(start_date, end_date))
        .group_by(Distribution.distribution_date)
        .order_by(Distribution.distribution_date.desc())
        .all()
    )

    return [
        {
            "distribution_date": row.distribution_date,
            "distribution_count": row.distribution_count,
            "total_units": int(row.total_units or 0),
            "daily_revenue": _money(row.daily_revenue),
        }
        for row in rows
    ]


def _date_join(join_condition, start_date: date | None, end_date: date | None):
    # Filter inside the join so rows with no distributions in range still appear
    if start_date and end_date:
        return and_(join_condition, Distribution.distribution_date.between(start_date, end_date))
    return join_condition


def revenue_by_mess(db: Session, start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    revenue = func.coalesce(func.sum(Distribution.total_value), 0)

    rows = (
        db.query(
            Mess.id.label("mess_id"),
            Mess.name.label("mess_name"),
            func.count(Distribution.id).label("distribution_count"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("total_units"),
            revenue.label("total_revenue"),
        )
        .outerjoin(Distribution, _date_join(Distribution.mess_id == Mess.id, start_date, end_date))
        .filter(Mess.is_active.is_(True))
        .group_by(Mess.id, Mess.name)
        .order_by(revenue.desc(), Mess.name)
        .all()
    )

    return [
        {
            "mess_id": row.mess_id,
            "mess_name": row.mess_name,
            "distribution_count": row.distribution_count,
            "total_units": int(row.total_units or 0),
            "total_revenue": _money(row.total_revenue),
        }
        for row in rows
    ]


def revenue_by_product(db: Session, start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    revenue = func.coalesce(func.sum(Distribution.total_value), 0)

    rows = (
        db.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            func.count(Distribution.id).label("distribution_count"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("total_units"),
            revenue.label("total_revenue"),
            func.avg(Distribution.price_per_unit).label("avg_price_per_unit"),
        )
        .outerjoin(Distribution, _date_join(Distribution.product_id == Product.id, start_date, end_date))
        .filter(Product.is_active.is_(True))
        .group_by(Product.id, Product.name)
        .order_by(revenue.desc(), Product.name)
        .all()
    )

    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "distribution_count": row.distribution_count,
            "total_units": int(row.total_units or 0),
            "total_revenue": _money(row.total_revenue),
            "avg_price_per_unit": _money(row.avg_price_per_unit),
        }
        for row in rows
    ]


# =========================================================
# PROFIT (AVERAGE-COST)
#
# Cost of goods sold uses the simple average purchase price
# over every priced receipt of a product. This is not FIFO,
# LIFO or cost-at-time-of-sale.
# =========================================================
def _profit_rows(db: Session, active_only: bool) -> list[dict]:
    purchases = (
        db.query(
            StockReceipt.product_id.label("product_id"),
            func.coalesce(func.sum(StockReceipt.quantity), 0).label("total_purchased_units"),
            func.avg(StockReceipt.purchase_price_per_unit).label("avg_purchase_price"),
            func.coalesce(
                func.sum(StockReceipt.quantity * StockReceipt.purchase_price_per_unit), 0
            ).label("total_purchase_cost"),
        )
        .group_by(StockReceipt.product_id)
        .subquery()
    )

    distributed = (
        db.query(
            Distribution.product_id.label("product_id"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("total_distributed_units"),
            func.coalesce(func.sum(Distribution.total_value), 0).label("total_revenue"),
        )
        .group_by(Distribution.product_id)
        .subquery()
    )

    query = (
        db.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            Product.unit_type.label("unit_type"),
            purchases.c.total_purchased_units,
            purchases.c.avg_purchase_price,
            purchases.c.total_purchase_cost,
            distributed.c.total_distributed_units,
            distributed.c.total_revenue,
        )
        .outerjoin(purchases, purchases.c.product_id == Product.id)
        .outerjoin(distributed, distributed.c.product_id == Product.id)
    )

    if active_only:
        query = query.filter(Product.is_active.is_(True))

    results = []

    for row in query.all():
        units_purchased = int(row.total_purchased_units or 0)
        units_distributed = int(row.total_distributed_units or 0)
        avg_purchase = Decimal(str(row.avg_purchase_price or 0))
        revenue = _money(row.total_revenue)

        avg_selling = (revenue / units_distributed) if units_distributed else Decimal("0")
        cogs = (avg_purchase * units_distributed).quantize(TWO_PLACES)
        profit = revenue - cogs

        results.append(
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "unit_type": row.unit_type,
                "total_purchased_units": units_purchased,
                "total_distributed_units": units_distributed,
                "total_purchase_cost": _money(row.total_purchase_cost),
                "avg_purchase_price": avg_purchase.quantize(TWO_PLACES),
                "avg_selling_price": avg_selling.quantize(TWO_PLACES),
                "margin_per_unit": (avg_selling - avg_purchase).quantize(TWO_PLACES),
                "total_revenue": revenue,
                "total_cogs": cogs,
                "total_profit": profit,
                "profit_percentage": _percentage(profit, revenue),
            }
        )

    return results


def profit_by_product(db: Session) -> list[dict]:
    rows = _profit_rows(db, active_only=True)
    return sorted(rows, key=lambda r: (-r["total_profit"], r["product_name"]))


def profit_summary(db: Session) -> dict:
    # Totals include deactivated products so history never drops out
    rows = _profit_rows(db, active_only=False)

    total_revenue = sum((r["total_revenue"] for r in rows), Decimal("0.00"))
    total_cogs = sum((r["total_cogs"] for r in rows), Decimal("0.00"))
    gross_profit = total_revenue - total_cogs

    return {
        "total_purchase_cost": sum((r["total_purchase_cost"] for r in rows), Decimal("0.00")),
        "total_cogs": total_cogs,
        "total_revenue": total_revenue,
        "gross_profit": gross_profit,
        "profit_margin_percentage": _percentage(gross_profit, total_revenue),
        "total_purchased_units": sum(r["total_purchased_units"] for r in rows),
        "total_distributed_units": sum(r["total_distributed_units"] for r in rows),
    }


# =========================================================
# MESS BALANCES
# =========================================================
def _financial_query(db: Session):
    distributed = (
        db.query(
            Distribution.mess_id.label("mess_id"),
            func.coalesce(func.sum(Distribution.total_value), 0).label("total_distributed_value"),
        )
        .group_by(Distribution.mess_id)
        .subquery()
    )

    paid = (
        db.query(
            Payment.mess_id.label("mess_id"),
            func.coalesce(func.sum(Payment.amount_paid), 0).label("total_paid"),
            func.count(Payment.id).label("payment_count"),
            func.max(Payment.payment_date).label("last_payment_date"),
        )
        .group_by(Payment.mess_id)
        .subquery()
    )

    return (
        db.query(
            Mess.id.label("mess_id"),
            Mess.name.label("mess_name"),
            Mess.contact_person.label("contact_person"),
            Mess.phone.label("phone"),
            distributed.c.total_distributed_value,
            paid.c.total_paid,
            paid.c.payment_count,
            paid.c.last_payment_date,
        )
        .outerjoin(distributed, distributed.c.mess_id == Mess.id)
        .outerjoin(paid, paid.c.mess_id == Mess.id)
    )


def _financial_row(row) -> dict:
    total_distributed = _money(row.total_distributed_value)
    total_paid = _money(row.total_paid)

    return {
        "mess_id": row.mess_id,
        "mess_name": row.mess_name,
        "contact_person": row.contact_person,
        "phone": row.phone,
        "total_distributed_value": total_distributed,
        "total_paid": total_paid,
        "outstanding_balance": total_distributed - total_paid,
        "payment_count": row.payment_count or 0,
        "last_payment_date": row.last_payment_date,
    }


def mess_financial_summary(db: Session, mess_id: int) -> dict | None:
    row = _financial_query(db).filter(Mess.id == mess_id).first()
    return _financial_row(row) if row else None


def all_mess_financial_summaries(db: Session) -> list[dict]:
    rows = (
        _financial_query(db)
        .filter(Mess.is_active.is_(True))
        .order_by(Mess.name)
        .all()
    )
    return [_financial_row(row) for row in rows]


# =========================================================
# DASHBOARD
# =========================================================
def dashboard_metrics(db: Session) -> dict:
    stock_rows = current_stock(db)

    totals = (
        db.query(
            func.count(Distribution.id).label("count"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("units"),
            func.coalesce(func.sum(Distribution.total_value), 0).label("revenue"),
        )
        .one()
    )

    recent = (
        db.query(
            func.count(Distribution.id).label("count"),
            func.coalesce(func.sum(Distribution.quantity), 0).label("units"),
            func.coalesce(func.sum(Distribution.total_value), 0).label("revenue"),
        )
        .filter(Distribution.distribution_date >= _today() - timedelta(days=30))
        .one()
    )

    return {
        "stock": {
            "total_products": len(stock_rows),
            "total_stock": sum(r["current_stock"] for r in stock_rows),
            "total_purchased": sum(r["total_received"] for r in stock_rows),
            "total_distributed": sum(r["total_distributed"] for r in stock_rows),
        },
        "distributions": {
            "total_distributions": totals.count,
            "total_units_distributed": int(totals.units or 0),
            "total_revenue": _money(totals.revenue),
        },
        "recent_activity": {
            "recent_distributions": recent.count,
            "recent_units": int(recent.units or 0),
            "recent_revenue": _money(recent.revenue),
        },
        "low_stock_alerts": low_stock_alerts(db),
        "top_products": product_summaries(db)[:5],
        "mess_summaries": mess_summaries(db),
    }
