"""
Authentication utilities - JWT, password hashing, and role checks
"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Dict

import bcrypt
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from hotel_app.config.settings import settings
from hotel_app.utils.exceptions import AuthenticationError, PermissionDeniedError

logger = logging.getLogger(__name__)

STAFF_ROLES = ("admin", "staff")

# JWT Bearer token; optional so guest endpoints can run anonymously
security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt directly"""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash"""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        return False


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict:
    """Decode and verify a JWT token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning("JWT verification failed: %s", e)
        raise AuthenticationError("Invalid or expired session. Please login again.")


def normalise_role(payload: Dict) -> str:
    return (payload.get("role") or "").strip().lower()


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Dict]:
    """Resolved identity when a valid token is sent, None for anonymous callers"""
    if credentials is None:
        return None
    try:
        return decode_access_token(credentials.credentials)
    except AuthenticationError:
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict:
    """Get current authenticated user from JWT token"""
    if credentials is None:
        raise AuthenticationError("Not authenticated. Please login.")
    payload = decode_access_token(credentials.credentials)
    if not payload.get("sub"):
        logger.warning("Auth rejected: token without subject")
        raise AuthenticationError("Invalid authentication credentials")
    return payload


async def require_staff(current_user: Dict = Depends(get_current_user)) -> Dict:
    """Dependency to require admin or staff access"""
    if normalise_role(current_user) not in STAFF_ROLES:
        raise PermissionDeniedError("Access denied. Admin privileges required.")
    return current_user

