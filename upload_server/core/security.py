import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt
from upload_server.core.config import Settings, settings as default_settings

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None, settings: Optional[Settings] = None) -> str:
    """
    Create a JWT access token with an optional expiration time.
    """
    settings = settings or default_settings
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def verify_token(token: str, settings: Optional[Settings] = None) -> dict:
    """
    Decode and verify a JWT token, returning the payload if valid.
    """
    settings = settings or default_settings
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

def verify_credentials(username: str, password: str, settings: Settings) -> bool:
    # both comparisons always run
    user_ok = hmac.compare_digest(username.encode(), settings.AUTH_USERNAME.encode())
    password_ok = hmac.compare_digest(password.encode(), settings.AUTH_PASSWORD.encode())
    return user_ok and password_ok
