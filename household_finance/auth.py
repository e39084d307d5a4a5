from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from household_finance.config import settings
from household_finance.exceptions import UnauthorizedError

_bearer = HTTPBearer()


def create_access_token(subject: str, expire_minutes: int | None = None) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=expire_minutes or settings.jwt_expire_minutes)
    payload = {"sub": subject, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer),  # noqa: B008
) -> dict:
    try:
        return jwt.decode(credentials.credentials, settings.jwt_secret, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired") from None
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token") from None


async def get_current_user(payload: dict = Depends(verify_token)) -> str:  # noqa: B008
    """The user id every request acts on, taken from the token subject."""
    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Token has no subject")
    return str(user_id)
