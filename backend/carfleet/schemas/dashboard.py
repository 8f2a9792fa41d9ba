from carfleet.schemas.car import Car
from carfleet.schemas.common import CamelModel
from carfleet.schemas.rental import Rental
from carfleet.schemas.repair import Repair
from carfleet.schemas.sale import Sale


class DashboardTotals(CamelModel):
    total_cars: int
    available_cars: int
    sold_cars: int
    rented_cars: int
    total_purchase_cost: float
    total_revenue: float
    total_profit: float
    rental_income: float
    repair_costs: float
    partner_earnings: float
    recent_repairs: int  # last 30 days


class MonthlyTrendItem(CamelModel):
    month: str  # YYYY-MM
    sales_count: int
    revenue: float
    net_profit: float


class Dashboard(CamelModel):
    totals: DashboardTotals
    monthly_trend: list[MonthlyTrendItem]
    status_distribution: dict[str, int]


class RecentEntries(CamelModel):
    cars: list[Car]
    repairs: list[Repair]
    sales: list[Sale]
    rentals: list[Rental]
