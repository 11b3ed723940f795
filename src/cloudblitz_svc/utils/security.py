from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from passlib.context import CryptContext
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from cloudblitz_svc import config

_logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Module level CryptContext using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password.

    Raises ValueError for invalid inputs. Returns True when verified, False
    on mismatch or unexpected errors (errors are logged with exc_info).
    """
    if not isinstance(plain_password, str) or not plain_password:
        raise ValueError("plain_password must be a non-empty string")
    if not isinstance(hashed_password, str) or not hashed_password:
        raise ValueError("hashed_password must be a non-empty string")

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        _logger.error(e, exc_info=True)
        return False


def get_password_hash(password: str) -> str:
    """Return a secure hash for the provided password.

    Raises ValueError for invalid input. Unexpected errors are logged and re-raised.
    """
    if not isinstance(password, str) or not password:
        raise ValueError("password must be a non-empty string")

    try:
        return pwd_context.hash(password)
    except Exception as e:
        _logger.error(e, exc_info=True)
        raise


def _secret_for(token_type: str) -> str:
    return config.REFRESH_SECRET_KEY if token_type == REFRESH_TOKEN_TYPE else config.SECRET_KEY


def create_token(
    data: Dict[str, object],
    token_type: str = ACCESS_TOKEN_TYPE,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT of the given type with expiration embedded.

    data must be a non-empty dict. Access and refresh tokens are signed with
    different secrets so one can never be replayed as the other.
    """
    if not isinstance(data, dict) or not data:
        raise ValueError("data must be a non-empty dict")

    if expires_delta is None:
        minutes = (
            config.REFRESH_TOKEN_EXPIRE_MINUTES
            if token_type == REFRESH_TOKEN_TYPE
            else config.ACCESS_TOKEN_EXPIRE_MINUTES
        )
        expires_delta = timedelta(minutes=minutes)

    to_encode = data.copy()
    try:
        now = datetime.now(timezone.utc)
        to_encode.update({"exp": now + expires_delta, "type": token_type})
        return jwt.encode(to_encode, _secret_for(token_type), algorithm=config.ALGORITHM)
    except Exception as e:
        _logger.error(e, exc_info=True)
        raise


def create_access_token(data: Dict[str, object], expires_delta: Optional[timedelta] = None) -> str:
    return create_token(data, ACCESS_TOKEN_TYPE, expires_delta)


def create_refresh_token(data: Dict[str, object], expires_delta: Optional[timedelta] = None) -> str:
    return create_token(data, REFRESH_TOKEN_TYPE, expires_delta)


def decode_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> Optional[Dict[str, object]]:
    """Decode a JWT and return the payload dict or None on failure/expiration.

    Safe for callers: returns None when token is invalid, expired or of the
    wrong type.
    """
    if not isinstance(token, str) or not token:
        return None

    try:
        payload = jwt.decode(token, _secret_for(token_type), algorithms=[config.ALGORITHM])
    except ExpiredSignatureError as e:
        _logger.warning("Rejected expired %s token: %s", token_type, e)
        return None
    except JWTError as e:
        _logger.error(e, exc_info=True)
        return None
    except Exception as e:
        _logger.error(e, exc_info=True)
        return None

    if payload.get("type") != token_type:
        return None
    return dict(payload)


def decode_access_token(token: str) -> Optional[Dict[str, object]]:
    return decode_token(token, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Optional[Dict[str, object]]:
    return decode_token(token, REFRESH_TOKEN_TYPE)


def access_token_lifetime_seconds() -> int:
    return int(config.ACCESS_TOKEN_EXPIRE_MINUTES) * 60
