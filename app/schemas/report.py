# schemas/report.py

from pydantic import BaseModel
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal


class StockRow(BaseModel):
    product_id: int
    product_name: str
    unit_type: str
    units_per_package: int
    total_received: int
    total_distributed: int
    current_stock: int


class LowStockAlert(BaseModel):
    product_id: int
    product_name: str
    unit_type: str
    current_stock: int
    level: Literal["low", "critical"]


class ProductDistributionSummary(BaseModel):
    product_id: int
    product_name: str
    unit_type: str
    distribution_count: int
    total_units_distributed: int
    total_revenue: Decimal


class MessDistributionSummary(BaseModel):
    mess_id: int
    mess_name: str
    contact_person: str | None
    phone: str | None
    distribution_count: int
    total_units_received: int
    total_value: Decimal
    last_distribution_date: date | None


class DailyRevenue(BaseModel):
    distribution_date: date
    distribution_count: int
    total_units: int
    daily_revenue: Decimal


class MessRevenue(BaseModel):
    mess_id: int
    mess_name: str
    distribution_count: int
    total_units: int
    total_revenue: Decimal


class ProductRevenue(BaseModel):
    product_id: int
    product_name: str
    distribution_count: int
    total_units: int
    total_revenue: Decimal
    avg_price_per_unit: Decimal


class ActivityEntry(BaseModel):
    id: int
    distribution_date: date
    quantity: int
    unit_type: str
    total_value: Decimal
    product_name: str
    mess_name: str
    created_at: datetime


class ProductProfitResponse(BaseModel):
    product_id: int
    product_name: str
    unit_type: str
    total_purchased_units: int
    total_distributed_units: int
    total_purchase_cost: Decimal
    avg_purchase_price: Decimal
    avg_selling_price: Decimal
    margin_per_unit: Decimal
    total_revenue: Decimal
    total_cogs: Decimal
    total_profit: Decimal
    profit_percentage: Decimal


class ProfitSummaryResponse(BaseModel):
    total_purchase_cost: Decimal
    total_cogs: Decimal
    total_revenue: Decimal
    gross_profit: Decimal
    profit_margin_percentage: Decimal
    total_purchased_units: int
    total_distributed_units: int


class StockTotals(BaseModel):
    total_products: int
    total_stock: int
    total_purchased: int
    total_distributed: int


class DistributionTotals(BaseModel):
    total_distributions: int
    total_units_distributed: int
    total_revenue: Decimal


class RecentActivity(BaseModel):
    recent_distributions: int
    recent_units: int
    recent_revenue: Decimal


class DashboardMetricsResponse(BaseModel):
    stock: StockTotals
    distributions: DistributionTotals
    recent_activity: RecentActivity
    low_stock_alerts: List[LowStockAlert]
    top_products: List[ProductDistributionSummary]
    mess_summaries: List[MessDistributionSummary]
