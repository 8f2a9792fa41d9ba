from carfleet.schemas.common import CamelModel


class Partner(CamelModel):
    id: str
    name: str = ""
    contact_info: str = ""
    role: str = ""

    # Derived by the spreadsheet
    net_profit: float = 0.0
