from datetime import date

from pydantic import Field

from carfleet.schemas.common import CamelModel


class Rental(CamelModel):
    id: str
    car_id: str = ""
    customer_name: str = ""
    customer_contact: str = ""
    start_date: str = ""
    return_date: str = ""
    daily_rate: float = 0.0
    damage_fee: float = 0.0
    late_fee: float = 0.0
    other_fee: float = 0.0
    additional_costs_description: str = ""

    # Derived by the spreadsheet
    days_left: int = 0
    days_out: int = 0
    total_rent_earned: float = 0.0
    rental_status: str = ""


class RentalCreate(CamelModel):
    car_id: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_contact: str = Field(..., min_length=1, max_length=200)
    start_date: date
    return_date: date
    daily_rate: float = Field(..., gt=0)
    damage_fee: float = Field(0.0, ge=0)
    late_fee: float = Field(0.0, ge=0)
    other_fee: float = Field(0.0, ge=0)
    additional_costs_description: str = Field("", max_length=1000)


class RentalUpdate(CamelModel):
    customer_name: str | None = Field(None, min_length=1, max_length=200)
    customer_contact: str | None = Field(None, min_length=1, max_length=200)
    start_date: date | None = None
    return_date: date | None = None
    daily_rate: float | None = Field(None, gt=0)
    damage_fee: float | None = Field(None, ge=0)
    late_fee: float | None = Field(None, ge=0)
    other_fee: float | None = Field(None, ge=0)
    additional_costs_description: str | None = Field(None, max_length=1000)
