"""FastAPI dependencies: get_current_user / require_admin.

Usage in any protected router:
    from src.au_gateway.auth.dependencies import CurrentUser, get_current_user

    @router.post("/bids")
    async def place_bid(user: CurrentUser = Depends(get_current_user)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.au_common.errors import AdminRequiredError, InvalidCredentialsError
from src.au_gateway.auth.jwt_handler import ROLE_ADMIN, ROLE_USER, decode_token

# Tokens come from the identity service; tokenUrl only feeds the Swagger "Authorize" button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Validate the JWT Bearer token and return the caller's identity.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return CurrentUser(user_id=payload["sub"], role=payload.get("role", ROLE_USER))


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Verify the caller holds the admin role (auction management, sweeps)."""
    if not current_user.is_admin:
        raise AdminRequiredError()
    return current_user
