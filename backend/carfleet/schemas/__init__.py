from carfleet.schemas.common import ErrorResponse, Page, Pagination
from carfleet.schemas.car import Car, CarCreate, CarUpdate
from carfleet.schemas.repair import Repair, RepairCreate, RepairUpdate
from carfleet.schemas.sale import Sale, SaleCreate, SaleUpdate
from carfleet.schemas.rental import Rental, RentalCreate, RentalUpdate
from carfleet.schemas.partner import Partner
from carfleet.schemas.dashboard import Dashboard, RecentEntries

__all__ = [
    "ErrorResponse",
    "Page",
    "Pagination",
    "Car",
    "CarCreate",
    "CarUpdate",
    "Repair",
    "RepairCreate",
    "RepairUpdate",
    "Sale",
    "SaleCreate",
    "SaleUpdate",
    "Rental",
    "RentalCreate",
    "RentalUpdate",
    "Partner",
    "Dashboard",
    "RecentEntries",
]
