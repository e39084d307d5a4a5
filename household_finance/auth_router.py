import secrets

from fastapi import APIRouter
from pydantic import BaseModel

from household_finance.auth import create_access_token
from household_finance.config import settings
from household_finance.exceptions import UnauthorizedError

router = APIRouter()


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest) -> TokenResponse:
    username_ok = secrets.compare_digest(data.username, settings.auth_username)
    password_ok = secrets.compare_digest(data.password, settings.auth_password)
    if not (username_ok and password_ok):
        raise UnauthorizedError("Invalid credentials")

    return TokenResponse(
        access_token=create_access_token(data.username),
        expires_in=settings.jwt_expire_minutes * 60,
    )
