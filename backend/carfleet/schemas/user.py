from pydantic import Field

from carfleet.schemas.common import CamelModel


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(CamelModel):
    token: str
    username: str


class TokenValidation(CamelModel):
    valid: bool
    username: str
