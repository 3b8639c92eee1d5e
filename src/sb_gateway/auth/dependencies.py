"""FastAPI dependencies: get_principal / require_operator.

Usage in any protected router:
    from src.sb_gateway.auth.dependencies import Principal, get_principal

    @router.get("/protected")
    async def protected(principal: Principal = Depends(get_principal)):
        ...

The principal is passed explicitly into every service call; services never
read an ambient "current user".
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.sb_common.enums import Role
from src.sb_common.errors import ForbiddenError, InvalidCredentialsError
from src.sb_gateway.auth.jwt_handler import decode_token

# Tokens come from the identity provider; tokenUrl is only used by Swagger UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: Role

    @property
    def is_operator(self) -> bool:
        return self.role == Role.OPERATOR


async def get_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """Extract and validate the Bearer token, return the caller's identity.

    Raises HTTP 401 if the token is missing, invalid, expired or has no subject.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    try:
        role = Role(payload.get("role", Role.LISTENER.value))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None
    return Principal(user_id=user_id, role=role)


async def require_artist(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Battles are created and joined by artists (operators may act for them)."""
    if principal.role not in (Role.ARTIST, Role.OPERATOR):
        raise ForbiddenError("Artist account required")
    return principal


async def require_operator(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Operator-only endpoints: end/cancel battles, assign bot tasks, audits."""
    if not principal.is_operator:
        raise ForbiddenError("Operator account required")
    return principal
