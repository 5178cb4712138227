# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Password hashing (bcrypt) and session tokens (JWT)."""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from relief_service.core.config import settings
from relief_service.core.errors import AuthenticationError

TOKEN_COOKIE = "token"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def issue_token(account_id: str, role: str, expires_in: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": account_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in or settings.JWT_EXPIRES_SECONDS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Return the token claims. Raises AuthenticationError when invalid or expired."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Unauthorized: Token expired") from None
    except jwt.InvalidTokenError:
        raise AuthenticationError("Unauthorized: Invalid token") from None
    if not claims.get("id") or not claims.get("role"):
        raise AuthenticationError("Unauthorized: Invalid token")
    return claims
