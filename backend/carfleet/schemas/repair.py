from datetime import date

from pydantic import Field

from carfleet.schemas.common import CamelModel


class ServiceProvider(CamelModel):
    name: str = ""
    contact: str = ""
    address: str = ""


class ServiceProviderUpdate(CamelModel):
    name: str | None = Field(None, max_length=200)
    contact: str | None = Field(None, max_length=200)
    address: str | None = Field(None, max_length=300)


class Repair(CamelModel):
    id: str
    car_id: str = ""
    repair_date: str = ""
    description: str = ""
    cost: float = 0.0
    mechanic_name: str = ""
    service_provider: ServiceProvider = Field(default_factory=ServiceProvider)


class RepairCreate(CamelModel):
    car_id: str = Field(..., min_length=1)
    repair_date: date
    description: str = Field(..., min_length=1, max_length=1000)
    cost: float = Field(..., ge=0)
    mechanic_name: str = Field("", max_length=200)
    service_provider: ServiceProvider = Field(default_factory=ServiceProvider)


class RepairUpdate(CamelModel):
    car_id: str | None = Field(None, min_length=1)
    repair_date: date | None = None
    description: str | None = Field(None, min_length=1, max_length=1000)
    cost: float | None = Field(None, ge=0)
    mechanic_name: str | None = Field(None, max_length=200)
    service_provider: ServiceProviderUpdate | None = None
