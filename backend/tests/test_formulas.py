"""
Tests for the local evaluation of derived columns.
"""

import datetime

import pytest

from carfleet.sheets.codec import parse_amounts
from carfleet.sheets.config import CARS, PARTNERS, RENTALS, REPAIRS, SALES
from carfleet.sheets.formulas import recompute

TODAY = datetime.date(2024, 1, 5)


def blank(layout, **values):
    row = [""] * layout.width
    for field, value in values.items():
        row[layout.column(field).index] = value
    return row


def cell(row, layout, field):
    return row[layout.column(field).index]


def snapshot(cars=(), repairs=(), sales=(), rentals=(), partners=()):
    return {
        "Cars": list(cars),
        "Repairs": list(repairs),
        "Sales": list(sales),
        "Rentals": list(rentals),
        "Partners": list(partners),
    }


class TestCarStatus:
    def test_available(self):
        result = recompute(snapshot(cars=[blank(CARS, id="C1", purchase_price=100)]), TODAY)
        assert cell(result["Cars"][0], CARS, "current_status") == "Available"

    def test_sold_when_a_sale_references_it(self):
        result = recompute(snapshot(
            cars=[blank(CARS, id="C1")],
            sales=[blank(SALES, id="S1", car_id="C1", sale_price=10)],
        ), TODAY)
        assert cell(result["Cars"][0], CARS, "current_status") == "Sold"

    def test_on_rent_while_a_rental_is_active(self):
        result = recompute(snapshot(
            cars=[blank(CARS, id="C1"), blank(CARS, id="C2")],
            rentals=[
                blank(RENTALS, id="RN1", car_id="C1", start_date="2024-01-01", return_date="2024-01-10"),
                blank(RENTALS, id="RN2", car_id="C2", start_date="2023-12-01", return_date="2024-01-04"),
            ],
        ), TODAY)
        assert cell(result["Cars"][0], CARS, "current_status") == "On Rent"
        assert cell(result["Cars"][1], CARS, "current_status") == "Available"

    def test_sold_wins_over_on_rent(self):
        result = recompute(snapshot(
            cars=[blank(CARS, id="C1")],
            sales=[blank(SALES, id="S1", car_id="C1", sale_price=10)],
            rentals=[blank(RENTALS, id="RN1", car_id="C1", start_date="2024-01-01", return_date="2024-01-10")],
        ), TODAY)
        assert cell(result["Cars"][0], CARS, "current_status") == "Sold"


class TestRentals:
    def test_active_rental_counts(self):
        result = recompute(snapshot(rentals=[blank(
            RENTALS, id="RN1", car_id="C1", start_date="2024-01-01", return_date="2024-01-10",
            daily_rate=20, damage_fee=5, late_fee="", other_fee=1,
        )]), TODAY)
        row = result["Rentals"][0]
        assert cell(row, RENTALS, "days_left") == 5
        assert cell(row, RENTALS, "days_out") == 4
        assert cell(row, RENTALS, "total_rent_earned") == 86
        assert cell(row, RENTALS, "rental_status") == "Active"

    def test_completed_rental_stops_at_return_date(self):
        result = recompute(snapshot(rentals=[blank(
            RENTALS, id="RN1", car_id="C1", start_date="2023-12-01", return_date="2023-12-04",
            daily_rate=10,
        )]), TODAY)
        row = result["Rentals"][0]
        assert cell(row, RENTALS, "days_left") == 0
        assert cell(row, RENTALS, "days_out") == 3
        assert cell(row, RENTALS, "total_rent_earned") == 30
        assert cell(row, RENTALS, "rental_status") == "Completed"

    def test_return_day_is_still_active(self):
        result = recompute(snapshot(rentals=[blank(
            RENTALS, id="RN1", car_id="C1", start_date="2024-01-01", return_date="2024-01-05",
        )]), TODAY)
        assert cell(result["Rentals"][0], RENTALS, "rental_status") == "Active"


class TestProfit:
    def test_sale_profit_and_repairs(self):
        result = recompute(snapshot(
            cars=[blank(CARS, id="C1", purchase_price=50000, **{"additional_costs.transport": 1000})],
            repairs=[
                blank(REPAIRS, id="R1", car_id="C1", cost=300),
                blank(REPAIRS, id="R2", car_id="C1", cost=200),
                blank(REPAIRS, id="R3", car_id="C9", cost=999),
            ],
            sales=[blank(SALES, id="S1", car_id="C1", sale_price=60000)],
        ), TODAY)
        sale = result["Sales"][0]
        assert cell(sale, SALES, "profit") == 9000
        assert cell(sale, SALES, "total_repair_costs") == 500
        assert cell(sale, SALES, "net_profit") == 8500
        car = result["Cars"][0]
        assert cell(car, CARS, "total_cost") == 51000
        assert cell(car, CARS, "profit_loss") == 8500

    def test_partner_returns_follow_the_split(self):
        result = recompute(snapshot(
            cars=[blank(CARS, id="C1", purchase_price=50000, investment_split="0.3,0.4,0.3")],
            sales=[blank(SALES, id="S1", car_id="C1", sale_price=60000)],
            partners=[blank(PARTNERS, id=f"P{i}", name=f"Partner {i}") for i in (1, 2, 3)],
        ), TODAY)
        returns = parse_amounts(cell(result["Cars"][0], CARS, "partner_returns"))
        assert returns == [3000, 4000, 3000]
        assert sum(returns) == pytest.approx(10000)
        assert [cell(p, PARTNERS, "net_profit") for p in result["Partners"]] == [3000, 4000, 3000]

    def test_rental_income_counts_toward_profit(self):
        result = recompute(snapshot(
            cars=[blank(CARS, id="C1", purchase_price=1000)],
            rentals=[blank(
                RENTALS, id="RN1", car_id="C1", start_date="2024-01-01",
                return_date="2024-01-03", daily_rate=100,
            )],
        ), TODAY)
        assert cell(result["Cars"][0], CARS, "profit_loss") == -800

    def test_rows_without_id_are_left_alone(self):
        result = recompute(snapshot(cars=[blank(CARS, make="Orphan")]), TODAY)
        assert cell(result["Cars"][0], CARS, "current_status") == ""
