from datetime import date
from typing import Any

from pydantic import Field, field_validator, model_validator

from carfleet.schemas.common import CamelModel
from carfleet.sheets.codec import parse_split

# Flat form-field names accepted for the additional cost sub-record
_FLAT_COSTS = {
    "transportCost": "transport",
    "transport_cost": "transport",
    "inspectionCost": "inspection",
    "inspection_cost": "inspection",
    "otherCost": "other",
    "other_cost": "other",
}


def _fold_flat_costs(data: Any) -> Any:
    """Collect transportCost / inspectionCost / otherCost into additionalCosts."""
    if not isinstance(data, dict):
        return data
    flat = {
        target: data[name]
        for name, target in _FLAT_COSTS.items()
        if name in data and data[name] not in (None, "")
    }
    if not flat:
        return data
    data = {k: v for k, v in data.items() if k not in _FLAT_COSTS}
    nested = data.get("additionalCosts") or data.get("additional_costs") or {}
    data.pop("additional_costs", None)
    data["additionalCosts"] = {**nested, **flat}
    return data


class AdditionalCosts(CamelModel):
    transport: float = 0.0
    inspection: float = 0.0
    other: float = 0.0


class AdditionalCostsInput(CamelModel):
    transport: float | None = Field(None, ge=0)
    inspection: float | None = Field(None, ge=0)
    other: float | None = Field(None, ge=0)


class Car(CamelModel):
    id: str
    make: str = ""
    model: str = ""
    year: int = 0
    color: str = ""
    registration_number: str = ""
    purchase_price: float = 0.0
    purchase_date: str = ""
    condition: str = ""
    seller_name: str = ""
    seller_contact: str = ""
    additional_costs: AdditionalCosts = Field(default_factory=AdditionalCosts)
    location: str = ""
    documents: str = ""
    photo: str = ""
    investment_split: list[float] = Field(default_factory=list)

    # Derived by the spreadsheet
    current_status: str = ""
    total_cost: float = 0.0
    profit_loss: float = 0.0
    partner_returns: list[float] = Field(default_factory=list)


class CarCreate(CamelModel):
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1900, le=2100)
    color: str = Field("", max_length=50)
    registration_number: str = Field(..., min_length=1, max_length=50)
    purchase_price: float = Field(..., ge=0)
    purchase_date: date
    condition: str = Field("", max_length=100)
    seller_name: str = Field("", max_length=200)
    seller_contact: str = Field("", max_length=200)
    additional_costs: AdditionalCostsInput = Field(default_factory=AdditionalCostsInput)
    location: str = Field("", max_length=200)
    investment_split: list[float] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def fold_flat_costs(cls, data: Any) -> Any:
        return _fold_flat_costs(data)

    @field_validator("investment_split", mode="before")
    @classmethod
    def parse_investment_split(cls, value: Any) -> list[float]:
        return parse_split(value)


class CarUpdate(CamelModel):
    make: str | None = Field(None, min_length=1, max_length=100)
    model: str | None = Field(None, min_length=1, max_length=100)
    year: int | None = Field(None, ge=1900, le=2100)
    color: str | None = Field(None, max_length=50)
    registration_number: str | None = Field(None, min_length=1, max_length=50)
    purchase_price: float | None = Field(None, ge=0)
    purchase_date: date | None = None
    condition: str | None = Field(None, max_length=100)
    seller_name: str | None = Field(None, max_length=200)
    seller_contact: str | None = Field(None, max_length=200)
    additional_costs: AdditionalCostsInput | None = None
    location: str | None = Field(None, max_length=200)
    investment_split: list[float] | None = None

    @model_validator(mode="before")
    @classmethod
    def fold_flat_costs(cls, data: Any) -> Any:
        return _fold_flat_costs(data)

    @field_validator("investment_split", mode="before")
    @classmethod
    def parse_investment_split(cls, value: Any) -> list[float] | None:
        if value is None:
            return None
        return parse_split(value)
