"""
Caller identity from bearer tokens.

Tokens are issued by the platform's identity service and signed with the
shared SECRET_KEY. Claims used here:
    sub   account id
    role  one of AccountRole (guest is implied by the absence of a token)

No token means a guest principal; a token that is present but invalid is
always a 401, never a silent downgrade to guest.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from marketplace.core.config import get_settings
from marketplace.domain.roles import GUEST, AccountRole, Principal

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_principal(token: str) -> Principal:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        account_id = int(payload["sub"])
        role = AccountRole(payload.get("role", AccountRole.USER.value))
    except (JWTError, KeyError, ValueError, TypeError):
        raise credentials_exception

    if role == AccountRole.GUEST:
        raise credentials_exception
    return Principal(account_id=account_id, role=role)


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Caller identity; guests are allowed through."""
    if credentials is None:
        return GUEST
    return decode_principal(credentials.credentials)


async def get_current_principal(principal: Principal = Depends(get_principal)) -> Principal:
    """Caller identity; guests are rejected with 401."""
    if principal.is_guest:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal
