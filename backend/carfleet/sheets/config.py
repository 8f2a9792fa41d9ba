"""Spreadsheet layout configuration.

One column table per sheet, shared by the codec, the range planner and the
stores. Offsets are 0-based positions inside the row (column A = 0). Row 1
of every sheet holds the headers; data starts at row 2.

Derived columns hold formulas owned by the spreadsheet (status, totals,
profit splits, rental day counts). They are decode-only: nothing in the API
layer may write them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Final

from openpyxl.utils import get_column_letter


# Data row range (row 1 = headers)
HEADER_ROW: Final[int] = 1
DATA_START_ROW: Final[int] = 2


class FieldKind(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    INTEGER = "integer"
    SPLIT = "split"  # comma-separated fractions or percentages in one cell
    AMOUNTS = "amounts"  # comma-separated amounts in one cell, never rescaled


@dataclass(frozen=True)
class Column:
    """A single sheet column mapped to a (possibly dotted) record field."""

    field: str
    index: int
    header: str
    kind: FieldKind = FieldKind.TEXT
    derived: bool = False

    @property
    def letter(self) -> str:
        return get_column_letter(self.index + 1)


@dataclass(frozen=True)
class SheetLayout:
    """Column layout for one entity sheet."""

    sheet: str
    id_prefix: str
    columns: tuple[Column, ...]

    @property
    def width(self) -> int:
        return max(col.index for col in self.columns) + 1

    @property
    def first_col(self) -> str:
        return "A"

    @property
    def last_col(self) -> str:
        return get_column_letter(self.width)

    @property
    def id_column(self) -> Column:
        return self.columns[0]

    @property
    def derived_indexes(self) -> frozenset[int]:
        return frozenset(col.index for col in self.columns if col.derived)

    @property
    def headers(self) -> list[str]:
        return [col.header for col in sorted(self.columns, key=lambda c: c.index)]

    def column(self, field: str) -> Column:
        """Look up a column by record field name."""
        for col in self.columns:
            if col.field == field:
                return col
        raise KeyError(f"{self.sheet} has no column for field {field!r}")


class CarStatus(str, enum.Enum):
    AVAILABLE = "Available"
    SOLD = "Sold"
    ON_RENT = "On Rent"


class PaymentStatus(str, enum.Enum):
    PAID = "Paid"
    PENDING = "Pending"
    UNPAID = "Unpaid"


class RentalStatus(str, enum.Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"


_T = FieldKind.TEXT
_N = FieldKind.NUMBER

# Cars: A-V (22 columns)
# I=currentStatus, P=totalCost, U=profitLoss, V=partnerReturns are formulas
CARS: Final[SheetLayout] = SheetLayout(
    sheet="Cars",
    id_prefix="C",
    columns=(
        Column("id", 0, "ID"),
        Column("make", 1, "Make"),
        Column("model", 2, "Model"),
        Column("year", 3, "Year", FieldKind.INTEGER),
        Column("color", 4, "Color"),
        Column("registration_number", 5, "Registration Number"),
        Column("purchase_price", 6, "Purchase Price", _N),
        Column("purchase_date", 7, "Purchase Date"),
        Column("current_status", 8, "Current Status", derived=True),
        Column("condition", 9, "Condition"),
        Column("seller_name", 10, "Seller Name"),
        Column("seller_contact", 11, "Seller Contact"),
        Column("additional_costs.transport", 12, "Transport Cost", _N),
        Column("additional_costs.inspection", 13, "Inspection Cost", _N),
        Column("additional_costs.other", 14, "Other Cost", _N),
        Column("total_cost", 15, "Total Cost", _N, derived=True),
        Column("location", 16, "Location"),
        Column("documents", 17, "Documents"),
        Column("photo", 18, "Photo"),
        Column("investment_split", 19, "Investment Split", FieldKind.SPLIT),
        Column("profit_loss", 20, "Profit/Loss", _N, derived=True),
        Column("partner_returns", 21, "Partner Returns", FieldKind.AMOUNTS, derived=True),
    ),
)

# Repairs: A-I (9 columns), service provider spread over G, H, I
REPAIRS: Final[SheetLayout] = SheetLayout(
    sheet="Repairs",
    id_prefix="R",
    columns=(
        Column("id", 0, "ID"),
        Column("car_id", 1, "Car ID"),
        Column("repair_date", 2, "Repair Date"),
        Column("description", 3, "Description"),
        Column("cost", 4, "Cost", _N),
        Column("mechanic_name", 5, "Mechanic Name"),
        Column("service_provider.name", 6, "Service Provider"),
        Column("service_provider.contact", 7, "Provider Contact"),
        Column("service_provider.address", 8, "Provider Address"),
    ),
)

# Sales: A-J (10 columns)
# G=profit, I=totalRepairCosts, J=netProfit are formulas
SALES: Final[SheetLayout] = SheetLayout(
    sheet="Sales",
    id_prefix="S",
    columns=(
        Column("id", 0, "ID"),
        Column("car_id", 1, "Car ID"),
        Column("sale_date", 2, "Sale Date"),
        Column("sale_price", 3, "Sale Price", _N),
        Column("buyer_name", 4, "Buyer Name"),
        Column("buyer_contact_info", 5, "Buyer Contact"),
        Column("profit", 6, "Profit", _N, derived=True),
        Column("payment_status", 7, "Payment Status"),
        Column("total_repair_costs", 8, "Total Repair Costs", _N, derived=True),
        Column("net_profit", 9, "Net Profit", _N, derived=True),
    ),
)

# Rentals: A-O (15 columns)
# G=daysLeft, H=daysOut, J=totalRentEarned, O=rentalStatus are formulas
RENTALS: Final[SheetLayout] = SheetLayout(
    sheet="Rentals",
    id_prefix="RN",
    columns=(
        Column("id", 0, "ID"),
        Column("car_id", 1, "Car ID"),
        Column("customer_name", 2, "Customer Name"),
        Column("customer_contact", 3, "Customer Contact"),
        Column("start_date", 4, "Start Date"),
        Column("return_date", 5, "Return Date"),
        Column("days_left", 6, "Days Left", FieldKind.INTEGER, derived=True),
        Column("days_out", 7, "Days Out", FieldKind.INTEGER, derived=True),
        Column("daily_rate", 8, "Daily Rate", _N),
        Column("total_rent_earned", 9, "Total Rent Earned", _N, derived=True),
        Column("damage_fee", 10, "Damage Fee", _N),
        Column("late_fee", 11, "Late Fee", _N),
        Column("other_fee", 12, "Other Fee", _N),
        Column("additional_costs_description", 13, "Additional Costs Description"),
        Column("rental_status", 14, "Rental Status", derived=True),
    ),
)

# Partners: A-E (5 columns), E=netProfit is a formula
PARTNERS: Final[SheetLayout] = SheetLayout(
    sheet="Partners",
    id_prefix="P",
    columns=(
        Column("id", 0, "ID"),
        Column("name", 1, "Name"),
        Column("contact_info", 2, "Contact Info"),
        Column("role", 3, "Role"),
        Column("net_profit", 4, "Net Profit", _N, derived=True),
    ),
)

ALL_LAYOUTS: Final[tuple[SheetLayout, ...]] = (CARS, REPAIRS, SALES, RENTALS, PARTNERS)


def get_layout(sheet: str) -> SheetLayout:
    """Get the layout for a sheet name."""
    for layout in ALL_LAYOUTS:
        if layout.sheet == sheet:
            return layout
    raise KeyError(f"Unknown sheet: {sheet}")
