"""JWT verification for identities issued by the external identity provider.

The engine trusts but does not issue identities: production tokens come from
the identity provider and share its HS256 secret. ``create_access_token`` is
used by local tooling and tests to mint tokens with the same claims.

Claims read:
  sub   — stable listener / artist identity (used as account id)
  role  — "listener" | "artist" | "operator" (defaults to "listener")
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.sb_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_DEFAULT_EXPIRE = timedelta(minutes=30)


def create_access_token(
    user_id: str, role: str = "listener", expires_in: timedelta = _DEFAULT_EXPIRE
) -> str:
    """Issue an access token with the same claims the identity provider uses."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + expires_in,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: Token invalid, expired or not an access token.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    return payload
