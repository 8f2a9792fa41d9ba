from fastapi import APIRouter, Header, Response

from carfleet.errors import AuthenticationError
from carfleet.schemas.user import LoginRequest, TokenResponse, TokenValidation
from carfleet.utils.auth import authenticate, create_token, destroy_token, validate_token

router = APIRouter(prefix="/auth", tags=["auth"])


def _bearer_token(authorization: str | None) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Not authenticated")
    return token.strip()


@router.post("/login")
async def login(body: LoginRequest) -> TokenResponse:
    if not authenticate(body.username, body.password):
        raise AuthenticationError("Invalid username or password")
    return TokenResponse(token=create_token(body.username), username=body.username)


@router.get("/validate")
async def validate(
    authorization: str | None = Header(None),
) -> TokenValidation:
    token_data = validate_token(_bearer_token(authorization))
    if token_data is None:
        raise AuthenticationError("Invalid or expired token")
    return TokenValidation(valid=True, username=token_data["username"])


@router.post("/logout", status_code=204)
async def logout(
    authorization: str | None = Header(None),
) -> Response:
    destroy_token(_bearer_token(authorization))
    return Response(status_code=204)
