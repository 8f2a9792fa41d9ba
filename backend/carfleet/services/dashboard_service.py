"""Dashboard aggregates, computed from full sheet scans on every request."""

import asyncio
import datetime
from collections import Counter, defaultdict

from carfleet.config import settings
from carfleet.schemas.dashboard import (
    Dashboard,
    DashboardTotals,
    MonthlyTrendItem,
    RecentEntries,
)
from carfleet.services import pagination_service
from carfleet.services.car_service import CAR_CODEC
from carfleet.services.partner_service import PARTNER_CODEC
from carfleet.services.rental_service import RENTAL_CODEC
from carfleet.services.repair_service import REPAIR_CODEC
from carfleet.services.sale_service import SALE_CODEC
from carfleet.sheets.config import CarStatus
from carfleet.sheets.store import RecordStore
from carfleet.utils.date_helpers import month_key, parse_date

RECENT_REPAIR_DAYS = 30


async def get_dashboard(store: RecordStore, today: datetime.date | None = None) -> Dashboard:
    today = today or datetime.date.today()
    cars, repairs, sales, rentals, partners = await asyncio.gather(
        pagination_service.read_all(store, CAR_CODEC),
        pagination_service.read_all(store, REPAIR_CODEC),
        pagination_service.read_all(store, SALE_CODEC),
        pagination_service.read_all(store, RENTAL_CODEC),
        pagination_service.read_all(store, PARTNER_CODEC),
    )

    status_distribution = {status.value: 0 for status in CarStatus}
    status_distribution.update(Counter(car.current_status for car in cars if car.current_status))

    since = today - datetime.timedelta(days=RECENT_REPAIR_DAYS)
    recent_repairs = 0
    for repair in repairs:
        repair_date = parse_date(repair.repair_date)
        if repair_date is not None and since <= repair_date <= today:
            recent_repairs += 1

    totals = DashboardTotals(
        total_cars=len(cars),
        available_cars=status_distribution[CarStatus.AVAILABLE.value],
        sold_cars=status_distribution[CarStatus.SOLD.value],
        rented_cars=status_distribution[CarStatus.ON_RENT.value],
        total_purchase_cost=round(sum(car.total_cost for car in cars), 2),
        total_revenue=round(sum(sale.sale_price for sale in sales), 2),
        total_profit=round(sum(sale.net_profit for sale in sales), 2),
        rental_income=round(sum(rental.total_rent_earned for rental in rentals), 2),
        repair_costs=round(sum(repair.cost for repair in repairs), 2),
        partner_earnings=round(sum(partner.net_profit for partner in partners), 2),
        recent_repairs=recent_repairs,
    )

    # Monthly trend, keyed by YYYY-MM of the sale date
    months: dict[str, dict] = defaultdict(lambda: {"count": 0, "revenue": 0.0, "net": 0.0})
    for sale in sales:
        key = month_key(sale.sale_date)
        if key is None:
            continue
        months[key]["count"] += 1
        months[key]["revenue"] += sale.sale_price
        months[key]["net"] += sale.net_profit

    monthly_trend = [
        MonthlyTrendItem(
            month=key,
            sales_count=values["count"],
            revenue=round(values["revenue"], 2),
            net_profit=round(values["net"], 2),
        )
        for key, values in sorted(months.items())
    ]

    return Dashboard(
        totals=totals,
        monthly_trend=monthly_trend,
        status_distribution=status_distribution,
    )


async def get_recent_entries(store: RecordStore, count: int | None = None) -> RecentEntries:
    """The last ``count`` rows of each sheet, oldest first."""
    count = count or settings.RECENT_ENTRIES
    cars, repairs, sales, rentals = await asyncio.gather(
        pagination_service.read_all(store, CAR_CODEC),
        pagination_service.read_all(store, REPAIR_CODEC),
        pagination_service.read_all(store, SALE_CODEC),
        pagination_service.read_all(store, RENTAL_CODEC),
    )
    return RecentEntries(
        cars=cars[-count:],
        repairs=repairs[-count:],
        sales=sales[-count:],
        rentals=rentals[-count:],
    )
