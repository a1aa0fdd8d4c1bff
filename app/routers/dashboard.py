# =========================================================
# DASHBOARD ROUTER
#
# Read-only reporting over the stock ledger:
# - Stock levels and low stock alerts
# - Revenue by day / mess / product
# - Average-cost profit analysis
#
# Schema-safe: money is always Decimal (never None)
# =========================================================

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_user
from app.services import reporting
from app.schemas.report import (
    ActivityEntry,
    DailyRevenue,
    DashboardMetricsResponse,
    LowStockAlert,
    MessDistributionSummary,
    MessRevenue,
    ProductDistributionSummary,
    ProductProfitResponse,
    ProductRevenue,
    ProfitSummaryResponse,
    StockRow,
)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _check_range(start_date: Optional[date], end_date: Optional[date]):
    if (start_date is None) != (end_date is None):
        raise HTTPException(
            status_code=400,
            detail="start_date and end_date must be given together",
        )

    if start_date and start_date > end_date:
        raise HTTPException(
            status_code=400,
            detail="start_date must be on or before end_date",
        )


# =========================================================
# OVERVIEW
# =========================================================
@router.get("/metrics", response_model=DashboardMetricsResponse)
def dashboard_metrics(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.dashboard_metrics(db)


@router.get("/stock", response_model=list[StockRow])
def current_stock(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.current_stock(db)


@router.get("/alerts", response_model=list[LowStockAlert])
def low_stock_alerts(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.low_stock_alerts(db)


@router.get("/messes", response_model=list[MessDistributionSummary])
def mess_summaries(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.mess_summaries(db)


@router.get("/products", response_model=list[ProductDistributionSummary])
def product_summaries(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.product_summaries(db)


@router.get("/activity", response_model=list[ActivityEntry])
def activity_timeline(
    days: int = Query(7, ge=1, le=365),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.activity_timeline(db, days=days, limit=limit)


# =========================================================
# REVENUE
# =========================================================
@router.get("/revenue", response_model=list[DailyRevenue])
def revenue_by_date_range(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    _check_range(start_date, end_date)
    return reporting.revenue_by_date_range(db, start_date, end_date)


@router.get("/revenue/mess", response_model=list[MessRevenue])
def revenue_by_mess(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    _check_range(start_date, end_date)
    return reporting.revenue_by_mess(db, start_date, end_date)


@router.get("/revenue/product", response_model=list[ProductRevenue])
def revenue_by_product(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    _check_range(start_date, end_date)
    return reporting.revenue_by_product(db, start_date, end_date)


# =========================================================
# PROFIT
# =========================================================
@router.get("/profit/analysis", response_model=list[ProductProfitResponse])
def profit_analysis(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.profit_by_product(db)


@router.get("/profit/summary", response_model=ProfitSummaryResponse)
def profit_summary(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.profit_summary(db)
