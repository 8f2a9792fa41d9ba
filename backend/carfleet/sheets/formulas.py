"""Local evaluation of the spreadsheet's derived columns.

The hosted spreadsheet computes these with formulas. A local workbook
opened with openpyxl has no calculation engine, so the workbook store runs
the same rules here on every read. The API layer never calls this module.

Rules (per row):
- Cars: totalCost = price + transport + inspection + other;
  status Sold / On Rent / Available; profitLoss = sale + rental income
  - totalCost - repairs; partnerReturns = profitLoss * split.
- Sales: profit = price - car totalCost; totalRepairCosts; netProfit.
- Rentals: daysLeft, daysOut, totalRentEarned, rentalStatus vs. today.
- Partners: netProfit = sum of the cars' partner returns at the partner's
  position in the sheet.
"""

from __future__ import annotations

import datetime
from collections import defaultdict
from typing import Any

from carfleet.sheets.codec import format_split, parse_number, parse_split, to_text
from carfleet.sheets.config import (
    CARS,
    PARTNERS,
    RENTALS,
    REPAIRS,
    SALES,
    CarStatus,
    RentalStatus,
    SheetLayout,
)
from carfleet.utils.date_helpers import parse_date


def _get(row: list[Any], layout: SheetLayout, field: str) -> Any:
    index = layout.column(field).index
    return row[index] if index < len(row) else None


def _set(row: list[Any], layout: SheetLayout, field: str, value: Any) -> None:
    row[layout.column(field).index] = value


def _pad(rows: list[list[Any]], layout: SheetLayout) -> list[list[Any]]:
    return [list(r) + [None] * (layout.width - len(r)) for r in rows]


def _has_id(row: list[Any], layout: SheetLayout) -> bool:
    return bool(to_text(_get(row, layout, "id")))


def _rental_values(row: list[Any], today: datetime.date) -> dict[str, Any]:
    start = parse_date(_get(row, RENTALS, "start_date"))
    end = parse_date(_get(row, RENTALS, "return_date"))
    rate = parse_number(_get(row, RENTALS, "daily_rate"))
    fees = sum(
        parse_number(_get(row, RENTALS, f))
        for f in ("damage_fee", "late_fee", "other_fee")
    )

    days_left = max(0, (end - today).days) if end else 0
    if start is None:
        days_out = 0
    else:
        until = min(today, end) if end else today
        days_out = max(0, (until - start).days)

    active = end is None or today <= end
    return {
        "days_left": days_left,
        "days_out": days_out,
        "total_rent_earned": round(days_out * rate + fees, 2),
        "rental_status": RentalStatus.ACTIVE.value if active else RentalStatus.COMPLETED.value,
    }


def recompute(
    snapshot: dict[str, list[list[Any]]],
    today: datetime.date,
) -> dict[str, list[list[Any]]]:
    """Return a copy of ``snapshot`` (data rows per sheet) with derived cells filled."""
    cars = _pad(snapshot.get(CARS.sheet, []), CARS)
    repairs = _pad(snapshot.get(REPAIRS.sheet, []), REPAIRS)
    sales = _pad(snapshot.get(SALES.sheet, []), SALES)
    rentals = _pad(snapshot.get(RENTALS.sheet, []), RENTALS)
    partners = _pad(snapshot.get(PARTNERS.sheet, []), PARTNERS)

    repair_costs: dict[str, float] = defaultdict(float)
    for row in repairs:
        repair_costs[to_text(_get(row, REPAIRS, "car_id"))] += parse_number(
            _get(row, REPAIRS, "cost")
        )

    rental_income: dict[str, float] = defaultdict(float)
    on_rent: set[str] = set()
    for row in rentals:
        if not _has_id(row, RENTALS):
            continue
        values = _rental_values(row, today)
        for field, value in values.items():
            _set(row, RENTALS, field, value)
        car_id = to_text(_get(row, RENTALS, "car_id"))
        rental_income[car_id] += values["total_rent_earned"]
        if values["rental_status"] == RentalStatus.ACTIVE.value:
            on_rent.add(car_id)

    sale_income: dict[str, float] = defaultdict(float)
    for row in sales:
        if _has_id(row, SALES):
            sale_income[to_text(_get(row, SALES, "car_id"))] += parse_number(
                _get(row, SALES, "sale_price")
            )

    total_costs: dict[str, float] = {}
    partner_totals: dict[int, float] = defaultdict(float)
    for row in cars:
        if not _has_id(row, CARS):
            continue
        car_id = to_text(_get(row, CARS, "id"))
        total_cost = parse_number(_get(row, CARS, "purchase_price")) + sum(
            parse_number(_get(row, CARS, f"additional_costs.{f}"))
            for f in ("transport", "inspection", "other")
        )
        total_costs[car_id] = total_cost

        if car_id in sale_income:
            status = CarStatus.SOLD
        elif car_id in on_rent:
            status = CarStatus.ON_RENT
        else:
            status = CarStatus.AVAILABLE

        profit_loss = round(
            sale_income.get(car_id, 0.0)
            + rental_income.get(car_id, 0.0)
            - total_cost
            - repair_costs.get(car_id, 0.0),
            2,
        )
        split = parse_split(_get(row, CARS, "investment_split"))
        returns = [round(profit_loss * share, 2) for share in split]
        for position, amount in enumerate(returns):
            partner_totals[position] += amount

        _set(row, CARS, "current_status", status.value)
        _set(row, CARS, "total_cost", round(total_cost, 2))
        _set(row, CARS, "profit_loss", profit_loss)
        _set(row, CARS, "partner_returns", format_split(returns))

    for row in sales:
        if not _has_id(row, SALES):
            continue
        car_id = to_text(_get(row, SALES, "car_id"))
        price = parse_number(_get(row, SALES, "sale_price"))
        car_cost = total_costs.get(car_id, 0.0)
        repairs_total = round(repair_costs.get(car_id, 0.0), 2)
        _set(row, SALES, "profit", round(price - car_cost, 2))
        _set(row, SALES, "total_repair_costs", repairs_total)
        _set(row, SALES, "net_profit", round(price - car_cost - repairs_total, 2))

    position = 0
    for row in partners:
        if not _has_id(row, PARTNERS):
            continue
        _set(row, PARTNERS, "net_profit", round(partner_totals.get(position, 0.0), 2))
        position += 1

    result = dict(snapshot)
    result.update({
        CARS.sheet: cars,
        REPAIRS.sheet: repairs,
        SALES.sheet: sales,
        RENTALS.sheet: rentals,
        PARTNERS.sheet: partners,
    })
    return result
