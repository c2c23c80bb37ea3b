"""
JWT helpers for the bearer tokens recruiters authenticate with.

Tokens carry the user id in `sub`; role lookup happens against the database
on every request so a demoted user loses capabilities immediately.
"""

from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
from app.core.config import settings
from app.core.timeutils import utcnow


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token.

    Args:
        data: Claims to encode (typically {"sub": user_id})
        expires_delta: Optional lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT as a string
    """
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT.

    Raises:
        JWTError: If token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise
