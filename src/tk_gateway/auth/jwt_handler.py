"""Identity tokens issued by the external identity provider.

The provider signs HS256 tokens with the shared JWT_SECRET:
  {"sub": <user id>, "email": <email, optional>, "exp": ...}
A "type" claim is optional; tokens typed anything other than "access"
(refresh tokens) are refused.

This service only verifies them. create_access_token exists for local
development and tests, where no provider is running.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.tk_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(user_id: str, email: str | None = None) -> str:
    now = datetime.now(UTC)
    payload: dict[str, object] = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    if email:
        payload["email"] = email
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: bad signature, expired, no subject, or a non-access token type.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    # Provider tokens carry no "type"; when one is present it must be "access".
    if payload.get("type", "access") != "access" or not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload
