from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple
import jwt
from jwt.exceptions import InvalidTokenError as JWTError
import secrets

from pwdlib import PasswordHash
import hashlib
import hmac
from user_agents import parse

from intranet.config.settings import settings
from intranet.utils.exceptions import NotAuthenticatedException

password_hasher = PasswordHash.recommended()


def hash_password(password: str) -> str:
    """Hash a password using Argon2."""
    return password_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hashed password."""
    try:
        return password_hasher.verify(plain_password, hashed_password)
    except Exception:
        return False


def get_token_hash(token: str) -> str:
    """Keyed SHA-256 of a one-time token; only this digest is stored."""
    key = settings.JWT_SECRET_KEY.encode()
    return hmac.new(key, token.encode(), hashlib.sha256).hexdigest()


def create_access_token(
    user_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(
        payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def verify_token_type(token: str, expected_type: str) -> dict[str, Any]:
    """Universal token decoder and type verifier."""
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise NotAuthenticatedException("Could not validate credentials")

    if payload.get("type") != expected_type:
        raise NotAuthenticatedException(f"Invalid token type. Expected {expected_type}")
    return payload


def generate_reset_token() -> Tuple[str, str, datetime]:
    """
    Create a password reset token.

    Returns (raw token for the link, digest to store, expiry).
    """
    raw = secrets.token_hex(20)
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
    )
    return raw, get_token_hash(raw), expire


def get_device_info(user_agent_str: Optional[str]) -> dict[str, Any]:
    """
    Parse user agent.
    """
    user_agent = parse(user_agent_str or "")
    return {
        "browser": user_agent.browser.family,
        "os": user_agent.os.family,
        "device": user_agent.device.family,
        "is_mobile": user_agent.is_mobile,
        "is_pc": user_agent.is_pc,
        "is_bot": user_agent.is_bot,
    }
