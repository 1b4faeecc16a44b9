"""
Caller identity for request handlers.

Tokens are issued elsewhere; here a Bearer JWT is only verified and turned
into an ``Actor`` (user id + role). Reservation creation accepts anonymous
callers, so both a required and an optional dependency are provided.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt

from .config import JWT_ALGORITHM, SECRET_KEY
from .constants import UserRole
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT


def create_access_token(user_id: int, role: str) -> str:
    """Sign a token for ``user_id``; used by the identity provider integration and tests"""
    return jose_jwt.encode({"sub": str(user_id), "role": role}, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Actor:
    try:
        payload = jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise AuthenticationError("Invalid or expired token") from e

    try:
        return Actor(user_id=int(payload["sub"]), role=UserRole(payload.get("role", "client")))
    except (KeyError, ValueError) as e:
        logger.warning(f"Access token with invalid claims: {e}")
        raise AuthenticationError("Invalid token claims") from e


async def get_optional_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Actor]:
    """Actor of the request, or None for anonymous callers"""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


async def get_current_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise AuthenticationError("Not authenticated. Please provide a valid Bearer token.")
    return actor
