"""FastAPI dependencies: current identity and its account session.

Usage in any protected router:
    from src.tk_gateway.auth.dependencies import get_account_session

    @router.get("/orders")
    async def orders(session: AccountSession = Depends(get_account_session)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.tk_account.registry import get_registry
from src.tk_account.session import AccountSession, Identity
from src.tk_common.errors import InvalidCredentialsError
from src.tk_gateway.auth.jwt_handler import decode_token

# Tokens come from the external identity provider; tokenUrl only feeds Swagger UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    """Validate the bearer token and return the signed-in identity (HTTP 401 otherwise)."""
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return Identity(user_id=payload["sub"], email=payload.get("email"))


async def get_account_session(
    identity: Identity = Depends(get_current_identity),
) -> AccountSession:
    return await get_registry().session_for(identity)
