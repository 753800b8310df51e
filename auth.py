"""
Identity for customers and admins.

Customers present the session token issued by the identity provider (Clerk);
admins present a token minted by ``issue_admin_token``. Both resolve to the
same ``Identity`` value so routes never care which scheme was used.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import config
from errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: str
    is_admin: bool = False


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing token.")
    return credentials.credentials


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Identity:
    token = _token(credentials)
    if not config.CLERK_JWT_KEY:
        logger.error("CLERK_JWT_KEY is not configured; customer tokens cannot be verified")
        raise Unauthorized("Invalid or expired token.")
    try:
        claims = jwt.decode(token, config.CLERK_JWT_KEY, algorithms=["RS256"])
    except jwt.PyJWTError as e:
        logger.info("Rejected customer token: %s", e)
        raise Unauthorized("Invalid or expired token.")

    azp = claims.get("azp")
    if config.CLERK_AUTHORIZED_PARTIES and azp not in config.CLERK_AUTHORIZED_PARTIES:
        logger.info("Rejected customer token from unauthorized party %s", azp)
        raise Unauthorized("Invalid or expired token.")
    if not claims.get("sub"):
        raise Unauthorized("Invalid or expired token.")
    return Identity(user_id=claims["sub"])


def issue_admin_token(email: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "role": "admin",
        "iat": now,
        "exp": now + timedelta(days=config.ADMIN_TOKEN_TTL_DAYS),
    }
    return jwt.encode(payload, config.ADMIN_JWT_SECRET, algorithm="HS256")


def require_admin(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Identity:
    token = _token(credentials)
    try:
        claims = jwt.decode(token, config.ADMIN_JWT_SECRET, algorithms=["HS256"])
    except jwt.PyJWTError:
        raise Unauthorized("Invalid or expired token.")

    if claims.get("role") != "admin" or claims.get("sub") not in config.ADMIN_EMAILS:
        logger.warning("Admin access denied for %s", claims.get("sub"))
        raise Forbidden("Forbidden.")
    return Identity(user_id=claims["sub"], is_admin=True)
