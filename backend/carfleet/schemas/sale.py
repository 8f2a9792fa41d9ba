from datetime import date

from pydantic import Field

from carfleet.schemas.common import CamelModel
from carfleet.sheets.config import PaymentStatus


class Sale(CamelModel):
    id: str
    car_id: str = ""
    sale_date: str = ""
    sale_price: float = 0.0
    buyer_name: str = ""
    buyer_contact_info: str = ""
    payment_status: str = ""

    # Derived by the spreadsheet
    profit: float = 0.0
    total_repair_costs: float = 0.0
    net_profit: float = 0.0


class SaleCreate(CamelModel):
    car_id: str = Field(..., min_length=1)
    sale_date: date
    sale_price: float = Field(..., gt=0)
    buyer_name: str = Field(..., min_length=1, max_length=200)
    buyer_contact_info: str = Field(..., min_length=1, max_length=200)
    payment_status: PaymentStatus


class SaleUpdate(CamelModel):
    sale_date: date | None = None
    sale_price: float | None = Field(None, gt=0)
    buyer_name: str | None = Field(None, min_length=1, max_length=200)
    buyer_contact_info: str | None = Field(None, min_length=1, max_length=200)
    payment_status: PaymentStatus | None = None
